from conftest import get, login, seq_token
from models import Schedule
from sequencing import SESSION_KEY, RequestSequencer, form_op


def test_only_latest_token_is_current():
    store = {}
    seq = RequestSequencer(store)
    first = seq.issue("shift:1")
    second = seq.issue("shift:1")
    assert second == first + 1
    assert not seq.is_current("shift:1", first)
    assert seq.is_current("shift:1", str(second))
    assert store[SESSION_KEY] == {"shift:1": 2}


def test_operations_are_independent():
    seq = RequestSequencer({})
    seq.issue("shift:1")
    assert seq.latest("shift:2") == 0
    assert seq.issue(form_op("shift", 2)) == 1


def test_garbage_token_is_stale():
    seq = RequestSequencer({})
    seq.issue("x")
    assert not seq.is_current("x", None)
    assert not seq.is_current("x", "abc")


def test_old_edit_form_is_rejected(app, client, ids, add_shift):
    sid = add_shift(ids.alice, "2026-10-21")
    login(client, "manager@paprika.nl")

    old = seq_token(client.get(f"/schedule/shift/{sid}/edit").get_data(as_text=True))
    new = seq_token(client.get(f"/schedule/shift/{sid}/edit").get_data(as_text=True))
    form = {"employee_id": str(ids.bob), "date": "2026-10-21", "start_time": "10:00",
            "end_time": "18:00", "shift_role": "cashier", "notes": ""}

    # the edit form issues a fresh token on GET; read the banner on the calendar
    resp = client.post(f"/schedule/shift/{sid}/edit", data={**form, "seq": old})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith(f"/schedule/shift/{sid}/edit")
    assert "This form is out of date" in client.get("/schedule/").get_data(as_text=True)
    with app.app_context():
        assert get(Schedule, sid).employee_id == ids.alice

    resp = client.post(f"/schedule/shift/{sid}/edit", data={**form, "seq": new})
    assert resp.status_code == 302
    with app.app_context():
        shift = get(Schedule, sid)
        assert (shift.employee_id, shift.start_time, shift.shift_role) == (ids.bob, "10:00", "cashier")

    # the token was consumed: replaying it is stale too
    resp = client.post(f"/schedule/shift/{sid}/edit", data={**form, "seq": new, "start_time": "11:00"})
    with app.app_context():
        assert get(Schedule, sid).start_time == "10:00"
