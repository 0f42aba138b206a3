# -*- coding: utf-8 -*-
"""
Shift rows: single CRUD, open-shift claiming, recurring bulk creation and
best-effort batch edit / delete.
"""
import logging
from datetime import date

import validators as v
from calendar_grid import days_between, iso_day
from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from extensions import db
from models import SHIFT_ROLES, BatchResult, Profile, Schedule, commit
from staff import ensure_manager

logger = logging.getLogger(__name__)

WEEKDAY_KEYS = ("sunday", "monday", "tuesday", "wednesday",
                "thursday", "friday", "saturday")
DEFAULT_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")
DEFAULT_TEMPLATE = {"shift_role": "kitchen", "start_time": "16:00", "end_time": "22:00"}

CLAIM_CONFLICT = "This shift was already claimed. Refresh and try again."


# ────────────────────────── field parsing ──────────────────────────
def shift_fields(data):
    """Validated column values from a form / JSON mapping."""
    out = {}
    if "employee_id" in data:
        out["employee_id"] = v.optional_id(data.get("employee_id"), "employee_id")
    out["date"] = v.day(data.get("date"))
    out["start_time"] = v.hhmm(data.get("start_time"), "Start time")
    out["end_time"] = v.hhmm(data.get("end_time"), "End time")
    out["shift_role"] = v.choice(data.get("shift_role") or "kitchen", SHIFT_ROLES, "Role")
    if "notes" in data:
        out["notes"] = v.text(data, "notes", "Notes", required=False, max_len=500)
    return out


def _check_assignee(employee_id):
    if employee_id is None:
        return
    prof = db.session.get(Profile, employee_id)
    if prof is None or not prof.is_active:
        raise ValidationError("Assigned employee does not exist or is inactive")


def get_shift(shift_id):
    shift = db.session.get(Schedule, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")
    return shift


# ────────────────────────── single rows ──────────────────────────
def create_shift(caller, data, *, open_shift=False):
    ensure_manager(caller, "create shifts")
    fields = shift_fields(data)
    if open_shift:
        fields["employee_id"] = None
    elif fields.get("employee_id") is None:
        raise ValidationError("Employee is required")
    _check_assignee(fields.get("employee_id"))
    shift = Schedule(created_by=caller.id, **fields)
    db.session.add(shift)
    commit()
    logger.info("shift %s created by %s (%s %s-%s, employee=%s)", shift.id, caller.id,
                shift.date, shift.start_time, shift.end_time, shift.employee_id)
    return shift


def create_open_shift(caller, data):
    return create_shift(caller, data, open_shift=True)


def update_shift(caller, shift_id, data):
    ensure_manager(caller, "edit shifts")
    shift = get_shift(shift_id)
    fields = shift_fields(data)
    _check_assignee(fields.get("employee_id"))
    for k, val in fields.items():
        setattr(shift, k, val)
    commit()
    logger.info("shift %s updated by %s", shift.id, caller.id)
    return shift


def delete_shift(caller, shift_id):
    ensure_manager(caller, "delete shifts")
    shift = get_shift(shift_id)
    db.session.delete(shift)
    commit()
    logger.info("shift %s deleted by %s", shift_id, caller.id)


# ────────────────────────── open-shift claim ──────────────────────────
def claim_open_shift(shift_id, employee):
    """
    Take an open shift.

    The write is one conditional UPDATE (`employee_id IS NULL` in the WHERE
    clause), so of two simultaneous claims exactly one matches a row.
    """
    if employee is None or not employee.is_active or employee.role != "employee":
        raise AuthorizationError("Only active employees can claim open shifts")
    get_shift(shift_id)

    matched = (Schedule.query
               .filter(Schedule.id == shift_id, Schedule.employee_id.is_(None))
               .update({Schedule.employee_id: employee.id}, synchronize_session=False))
    commit()
    if not matched:
        logger.info("claim of shift %s by %s lost: already claimed", shift_id, employee.id)
        raise ConflictError(CLAIM_CONFLICT)
    logger.info("shift %s claimed by %s", shift_id, employee.id)
    return db.session.get(Schedule, shift_id)


# ────────────────────────── recurring bulk creation ──────────────────────────
def generate_bulk_shifts(start, end, weekdays, templates, notes="", created_by=None):
    """
    Rows for every selected weekday in [start, end] × every employee template.

    templates: [{"employee_id", "shift_role", "start_time", "end_time"}, ...]
    """
    wanted = {WEEKDAY_KEYS.index(w) for w in weekdays}
    rows = []
    for d in days_between(start, end):
        if (d.weekday() + 1) % 7 not in wanted:
            continue
        for t in templates:
            rows.append({
                "employee_id": t["employee_id"],
                "date": iso_day(d),
                "start_time": t["start_time"],
                "end_time": t["end_time"],
                "shift_role": t["shift_role"],
                "notes": notes,
                "created_by": created_by,
            })
    return rows


def bulk_create_shifts(caller, start, end, weekdays, templates, notes=""):
    ensure_manager(caller, "create shifts")
    if not templates:
        raise ValidationError("Please select at least one employee")
    weekdays = [w for w in weekdays if w in WEEKDAY_KEYS]
    if not weekdays:
        raise ValidationError("Please select at least one day of the week")
    start, end = date.fromisoformat(v.day(start, "Start date")), date.fromisoformat(v.day(end, "End date"))
    if end < start:
        raise ValidationError("End date must be after start date")

    clean = []
    for t in templates:
        eid = v.int_id(t.get("employee_id"), "employee_id")
        _check_assignee(eid)
        clean.append({
            "employee_id": eid,
            "shift_role": v.choice(t.get("shift_role") or "kitchen", SHIFT_ROLES, "Role"),
            "start_time": v.hhmm(t.get("start_time"), "Start time"),
            "end_time": v.hhmm(t.get("end_time"), "End time"),
        })

    rows = generate_bulk_shifts(start, end, weekdays, clean, notes, caller.id)
    if not rows:
        raise ValidationError("No shifts to create based on your selection")
    db.session.add_all(Schedule(**r) for r in rows)
    commit()
    logger.info("bulk created %d shifts by %s", len(rows), caller.id)
    return len(rows)


# ────────────────────────── batch edit / delete ──────────────────────────
def bulk_update_shifts(caller, ids, data):
    ensure_manager(caller, "edit shifts")
    if not ids:
        raise ValidationError("No shifts selected")
    patch = {}
    if data.get("employee_id"):
        patch["employee_id"] = v.int_id(data["employee_id"], "employee_id")
        _check_assignee(patch["employee_id"])
    if data.get("start_time"):
        patch["start_time"] = v.hhmm(data["start_time"], "Start time")
    if data.get("end_time"):
        patch["end_time"] = v.hhmm(data["end_time"], "End time")
    if data.get("shift_role"):
        patch["shift_role"] = v.choice(data["shift_role"], SHIFT_ROLES, "Role")
    if not patch:
        raise ValidationError("Please specify at least one field to update")

    def apply(sid):
        shift = db.session.get(Schedule, sid)
        if shift is None:
            return False
        for k, val in patch.items():
            setattr(shift, k, val)
        return True

    result = run_batch(ids, apply)
    logger.info("bulk shift update by %s: %s", caller.id, result.message("update", "shift"))
    return result


def bulk_delete_shifts(caller, ids):
    ensure_manager(caller, "delete shifts")
    if not ids:
        raise ValidationError("No shifts selected")

    def apply(sid):
        return Schedule.query.filter_by(id=sid).delete(synchronize_session=False) > 0

    result = run_batch(ids, apply)
    logger.info("bulk shift delete by %s: %s", caller.id, result.message("delete", "shift"))
    return result


def run_batch(ids, apply):
    """
    Apply `apply(id)` to each id in its own transaction.

    A False return (row missing) or a database error counts as one failure;
    rows already committed stay committed.
    """
    ids = [v.int_id(raw, "id") for raw in ids]
    result = BatchResult(total=len(ids))
    for sid in ids:
        def step(sid=sid):
            if not apply(sid):
                raise NotFoundError(f"shift {sid} not found")
            commit()

        try:
            result.attempt(sid, step)
        except NotFoundError as e:
            db.session.rollback()
            result.fail(sid, e.description)
    return result


# ────────────────────────── queries ──────────────────────────
def shifts_between(start, end, employee_id=None, include_open=False):
    q = Schedule.query.filter(Schedule.date >= iso_day(start), Schedule.date <= iso_day(end))
    if employee_id is not None:
        cond = Schedule.employee_id == employee_id
        if include_open:
            cond = db.or_(cond, Schedule.employee_id.is_(None))
        q = q.filter(cond)
    return q.order_by(Schedule.date, Schedule.start_time).all()


def shifts_for_day(day):
    return (Schedule.query.filter_by(date=iso_day(day))
            .order_by(Schedule.start_time).all())


def employee_shifts(employee_id):
    return (Schedule.query.filter_by(employee_id=employee_id)
            .order_by(Schedule.date, Schedule.start_time).all())
