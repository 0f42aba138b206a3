"""
Employee accounts: sign-in, bearer tokens and the manager-only account
operations (create, update credentials, remove, bulk edit).
"""
import logging
from datetime import date

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

import validators as v
from calendar_grid import iso_day
from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from extensions import db
from models import ROLES, BatchResult, Profile, Schedule, commit

logger = logging.getLogger(__name__)

TOKEN_SALT = "portal-access-token"


# ────────────────────────── sign-in / session ──────────────────────────
def authenticate(email, password):
    """Active profile matching the credentials, or None."""
    prof = Profile.query.filter_by(email=(email or "").strip().lower()).first()
    if prof is None or not prof.is_active or not prof.check_password(password or ""):
        return None
    return prof


def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(profile):
    return _serializer().dumps({"uid": profile.id})


def load_token(token):
    """Profile behind a bearer token; None when invalid, expired or deactivated."""
    try:
        data = _serializer().loads(token, max_age=current_app.config["TOKEN_TTL_SEC"])
    except (BadSignature, SignatureExpired):
        return None
    prof = db.session.get(Profile, data.get("uid"))
    if prof is None or not prof.is_active:
        return None
    return prof


def ensure_manager(caller, action="do this"):
    if caller is None or not caller.is_active or not caller.is_manager:
        raise AuthorizationError(f"Only managers can {action}")


# ────────────────────────── account operations ──────────────────────────
def create_employee(caller, data):
    ensure_manager(caller, "create employees")
    missing = [k for k in ("email", "full_name", "role", "password", "hourly_wage")
               if not str(data.get(k) or "").strip()]
    if missing:
        raise ValidationError("Missing required fields", required=missing)

    email = v.email(data["email"])
    prof = Profile(
        email=email,
        full_name=v.text(data, "full_name", "Full name", max_len=80),
        role=v.choice(data["role"], ROLES, "Role"),
        hourly_wage=v.amount(data["hourly_wage"], "Hourly wage"),
        is_active=True,
    )
    prof.set_password(v.password(data["password"]))

    if Profile.query.filter_by(email=email).first():
        raise ConflictError(f"An account for {email} already exists")

    db.session.add(prof)
    commit()
    logger.info("manager %s created profile %s (%s)", caller.id, prof.id, prof.role)
    return prof


def update_employee(caller, data):
    """
    Edit profile fields and, optionally, credentials.

    Only keys present in `data` change; a blank password means "keep".
    """
    ensure_manager(caller, "update employees")
    prof = db.session.get(Profile, v.int_id(data.get("user_id") or data.get("id"), "user_id"))
    if prof is None:
        raise NotFoundError("Employee not found")

    if data.get("full_name") is not None:
        prof.full_name = v.text(data, "full_name", "Full name", max_len=80)
    if data.get("role") is not None:
        prof.role = v.choice(data["role"], ROLES, "Role")
    if data.get("hourly_wage") not in (None, ""):
        prof.hourly_wage = v.amount(data["hourly_wage"], "Hourly wage")
    if data.get("email"):
        email = v.email(data["email"])
        clash = Profile.query.filter(Profile.email == email, Profile.id != prof.id).first()
        if clash:
            raise ConflictError(f"An account for {email} already exists")
        prof.email = email
    if data.get("password"):
        prof.set_password(v.password(data["password"]))

    commit()
    logger.info("manager %s updated profile %s", caller.id, prof.id)
    return prof


def remove_employee(caller, employee_id, today=None):
    """
    Deactivate a profile and drop its shifts dated today or later.

    Earlier shifts stay, so payroll history keeps its employee reference.
    Returns the number of shifts removed.
    """
    ensure_manager(caller, "remove employees")
    prof = db.session.get(Profile, v.int_id(employee_id, "employee_id"))
    if prof is None:
        raise NotFoundError("Employee not found")
    if not prof.is_active:
        raise ValidationError("Employee is already deactivated")

    prof.is_active = False
    removed = (Schedule.query
               .filter(Schedule.employee_id == prof.id,
                       Schedule.date >= iso_day(today or date.today()))
               .delete(synchronize_session=False))
    commit()
    logger.info("manager %s removed profile %s, %d future shifts deleted",
                caller.id, prof.id, removed)
    return removed


def bulk_update_employees(caller, edits):
    """edits: {employee_id: {"role": ..., "hourly_wage": ...}}; best effort."""
    ensure_manager(caller, "update employees")
    if not edits:
        raise ValidationError("No employees selected")

    # validate everything first: a bad value aborts the whole batch untouched
    clean = {}
    for eid, patch in edits.items():
        clean[v.int_id(eid, "employee_id")] = {
            "role": v.choice(patch.get("role"), ROLES, "Role"),
            "hourly_wage": v.amount(patch.get("hourly_wage"), "Hourly wage"),
        }

    result = BatchResult(total=len(clean))
    for eid, patch in clean.items():
        prof = db.session.get(Profile, eid)
        if prof is None:
            result.fail(eid, "not found")
            continue
        prof.role = patch["role"]
        prof.hourly_wage = patch["hourly_wage"]
        result.attempt(eid, commit)
    logger.info("bulk employee update by %s: %s", caller.id, result.message("update", "employee"))
    return result


# ────────────────────────── lookups ──────────────────────────
def list_profiles(search="", active_only=False):
    q = Profile.query
    if active_only:
        q = q.filter(Profile.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(db.or_(Profile.full_name.ilike(like), Profile.email.ilike(like)))
    return q.order_by(Profile.full_name).all()


def wage_table():
    return {p.id: p.hourly_wage for p in Profile.query.all()}
