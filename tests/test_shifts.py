from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

import shifts
from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from extensions import db
from models import Profile, Schedule


@pytest.fixture
def people(ctx, ids):
    return (db.session.get(Profile, ids.manager), db.session.get(Profile, ids.alice),
            db.session.get(Profile, ids.bob))


def _form(**kw):
    data = {"date": "2026-10-21", "start_time": "08:00", "end_time": "16:00", "shift_role": "kitchen"}
    data.update(kw)
    return data


def test_create_requires_manager(people):
    _, alice, _ = people
    with pytest.raises(AuthorizationError):
        shifts.create_shift(alice, _form(employee_id=alice.id))


def test_create_and_validate(people):
    mgr, alice, _ = people
    s = shifts.create_shift(mgr, _form(employee_id=str(alice.id), start_time="9:05", notes=" cover "))
    assert (s.employee_id, s.start_time, s.notes, s.created_by) == (alice.id, "09:05", "cover", mgr.id)

    with pytest.raises(ValidationError, match="Employee is required"):
        shifts.create_shift(mgr, _form())
    with pytest.raises(ValidationError, match="Start time"):
        shifts.create_shift(mgr, _form(employee_id=alice.id, start_time="25:00"))
    with pytest.raises(ValidationError, match="Date"):
        shifts.create_shift(mgr, _form(employee_id=alice.id, date="21-10-2026"))
    with pytest.raises(ValidationError, match="Role"):
        shifts.create_shift(mgr, _form(employee_id=alice.id, shift_role="chef"))


def test_cannot_assign_inactive_employee(people):
    mgr, _, bob = people
    bob.is_active = False
    db.session.commit()
    with pytest.raises(ValidationError, match="inactive"):
        shifts.create_shift(mgr, _form(employee_id=bob.id))


def test_update_and_delete(people):
    mgr, alice, bob = people
    s = shifts.create_shift(mgr, _form(employee_id=alice.id))
    shifts.update_shift(mgr, s.id, _form(employee_id=bob.id, end_time="02:00"))
    assert (s.employee_id, s.end_time) == (bob.id, "02:00")
    shifts.update_shift(mgr, s.id, _form(employee_id="open"))
    assert s.is_open

    shifts.delete_shift(mgr, s.id)
    assert db.session.get(Schedule, s.id) is None
    with pytest.raises(NotFoundError):
        shifts.delete_shift(mgr, s.id)


def test_first_claim_wins(people):
    mgr, alice, bob = people
    s = shifts.create_open_shift(mgr, _form(employee_id=alice.id))
    assert s.is_open

    claimed = shifts.claim_open_shift(s.id, alice)
    assert claimed.employee_id == alice.id

    with pytest.raises(ConflictError) as exc:
        shifts.claim_open_shift(s.id, bob)
    assert exc.value.description == shifts.CLAIM_CONFLICT
    db.session.expire_all()
    assert db.session.get(Schedule, s.id).employee_id == alice.id


def test_claim_race_after_both_loaded_open_shift(people, monkeypatch):
    mgr, alice, bob = people
    s = shifts.create_open_shift(mgr, _form())
    real_get = shifts.get_shift
    seen_open = []

    def interleaved(shift_id):
        shift = real_get(shift_id)
        seen_open.append(shift.is_open)
        if len(seen_open) == 1:
            # bob loads and claims while alice still holds her open copy
            shifts.claim_open_shift(shift_id, bob)
        return shift

    monkeypatch.setattr(shifts, "get_shift", interleaved)
    with pytest.raises(ConflictError) as exc:
        shifts.claim_open_shift(s.id, alice)

    assert seen_open == [True, True]
    assert exc.value.description == shifts.CLAIM_CONFLICT
    db.session.expire_all()
    assert db.session.get(Schedule, s.id).employee_id == bob.id


def test_only_active_employees_claim(people):
    mgr, alice, _ = people
    s = shifts.create_open_shift(mgr, _form())
    with pytest.raises(AuthorizationError):
        shifts.claim_open_shift(s.id, mgr)
    alice.is_active = False
    with pytest.raises(AuthorizationError):
        shifts.claim_open_shift(s.id, alice)
    with pytest.raises(NotFoundError):
        shifts.claim_open_shift(12345, people[2])


def test_generate_bulk_shifts_picks_weekdays():
    rows = shifts.generate_bulk_shifts(
        date(2026, 10, 18), date(2026, 10, 31), ["monday", "wednesday"],
        [{"employee_id": 1, "shift_role": "kitchen", "start_time": "16:00", "end_time": "22:00"},
         {"employee_id": 2, "shift_role": "delivery", "start_time": "17:00", "end_time": "23:00"}],
        notes="recurring", created_by=9)
    assert len(rows) == 8
    assert sorted({r["date"] for r in rows}) == ["2026-10-19", "2026-10-21", "2026-10-26", "2026-10-28"]
    assert all(r["notes"] == "recurring" and r["created_by"] == 9 for r in rows)


def test_bulk_create(people):
    mgr, alice, bob = people
    templates = [{"employee_id": str(alice.id), "shift_role": "kitchen",
                  "start_time": "16:00", "end_time": "22:00"},
                 {"employee_id": str(bob.id), "shift_role": "delivery",
                  "start_time": "17:00", "end_time": "23:00"}]
    n = shifts.bulk_create_shifts(mgr, "2026-10-18", "2026-10-31", ["monday", "wednesday"], templates)
    assert n == 8
    assert Schedule.query.count() == 8
    assert Schedule.query.filter_by(employee_id=bob.id, shift_role="delivery").count() == 4


def test_bulk_create_rejects_empty_selections(people):
    mgr, alice, _ = people
    tpl = [{"employee_id": alice.id, "start_time": "16:00", "end_time": "22:00"}]
    with pytest.raises(ValidationError, match="at least one employee"):
        shifts.bulk_create_shifts(mgr, "2026-10-18", "2026-10-31", ["monday"], [])
    with pytest.raises(ValidationError, match="day of the week"):
        shifts.bulk_create_shifts(mgr, "2026-10-18", "2026-10-31", [], tpl)
    with pytest.raises(ValidationError, match="after start"):
        shifts.bulk_create_shifts(mgr, "2026-10-31", "2026-10-18", ["monday"], tpl)
    # a single Sunday with only Monday selected
    with pytest.raises(ValidationError, match="No shifts to create"):
        shifts.bulk_create_shifts(mgr, "2026-10-18", "2026-10-18", ["monday"], tpl)
    assert Schedule.query.count() == 0


def test_bulk_update_counts_missing_rows(people):
    mgr, alice, bob = people
    a = shifts.create_shift(mgr, _form(employee_id=alice.id))
    b = shifts.create_shift(mgr, _form(employee_id=alice.id, date="2026-10-22"))
    result = shifts.bulk_update_shifts(mgr, [str(a.id), "9999", str(b.id)],
                                       {"employee_id": str(bob.id), "shift_role": "cashier"})
    assert (result.total, result.failed, result.succeeded) == (3, 1, 2)
    assert result.message("update", "shift") == "Failed to update 1 of 3 shift(s)"
    db.session.expire_all()
    assert {s.employee_id for s in Schedule.query} == {bob.id}
    assert {s.shift_role for s in Schedule.query} == {"cashier"}


def test_bulk_update_needs_a_field(people):
    mgr, alice, _ = people
    s = shifts.create_shift(mgr, _form(employee_id=alice.id))
    with pytest.raises(ValidationError, match="at least one field"):
        shifts.bulk_update_shifts(mgr, [s.id], {"employee_id": "", "start_time": ""})


def test_bulk_delete(people):
    mgr, alice, _ = people
    keep = shifts.create_shift(mgr, _form(employee_id=alice.id))
    gone = [shifts.create_shift(mgr, _form(employee_id=alice.id, date=f"2026-10-2{i}")).id
            for i in range(2, 5)]
    result = shifts.bulk_delete_shifts(mgr, gone)
    assert result.message("delete", "shift") == "Successfully deleted 3 shift(s)"
    assert [s.id for s in Schedule.query] == [keep.id]
    with pytest.raises(ValidationError):
        shifts.bulk_delete_shifts(mgr, [])


def test_batch_keeps_earlier_commits_when_backend_fails(people):
    mgr, alice, _ = people
    rows = [shifts.create_shift(mgr, _form(employee_id=alice.id, date=f"2026-10-2{i}")).id
            for i in range(1, 4)]

    def apply(sid):
        if sid == rows[1]:
            raise OperationalError("UPDATE schedules", {}, Exception("database is locked"))
        db.session.get(Schedule, sid).notes = "touched"
        return True

    result = shifts.run_batch(rows, apply)
    assert (result.failed, result.succeeded) == (1, 2)
    assert result.errors[0][0] == rows[1]
    db.session.expire_all()
    assert [db.session.get(Schedule, sid).notes for sid in rows] == ["touched", "", "touched"]


def test_queries(people):
    mgr, alice, bob = people
    shifts.create_shift(mgr, _form(employee_id=alice.id, date="2026-10-20", start_time="12:00"))
    shifts.create_shift(mgr, _form(employee_id=alice.id, date="2026-10-20"))
    shifts.create_shift(mgr, _form(employee_id=bob.id, date="2026-10-21"))
    shifts.create_open_shift(mgr, _form(date="2026-10-22"))
    shifts.create_shift(mgr, _form(employee_id=alice.id, date="2026-11-02"))

    window = (date(2026, 10, 18), date(2026, 10, 24))
    assert len(shifts.shifts_between(*window)) == 4
    mine = shifts.shifts_between(*window, employee_id=alice.id)
    assert [s.start_time for s in mine] == ["08:00", "12:00"]
    assert len(shifts.shifts_between(*window, employee_id=alice.id, include_open=True)) == 3
    assert len(shifts.shifts_for_day(date(2026, 10, 20))) == 2
    assert len(shifts.employee_shifts(alice.id)) == 3
