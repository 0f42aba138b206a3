from datetime import date

from blueprints.dashboard import STORE_KEY
from conftest import get, login, seq_token
from extensions import db
from models import Announcement, Complaint, Profile, Schedule
from store_settings import get_settings


def _html(resp):
    return resp.get_data(as_text=True)


# ────────────────────────── sign-in ──────────────────────────
def test_login_flow(client):
    assert client.get("/login").status_code == 200

    resp = client.post("/login", data={"email": "alice@paprika.nl", "password": "bad"})
    assert "Invalid email or password" in _html(resp)

    resp = login(client, "alice@paprika.nl")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/schedule/")

    client.get("/logout")
    assert client.get("/schedule/").status_code == 302


def test_anonymous_is_sent_to_login(client):
    resp = client.get("/payroll/")
    assert resp.status_code == 302
    assert "/login?next=" in resp.headers["Location"]


def test_login_ignores_offsite_next(client):
    resp = client.post("/login", data={"email": "bob@paprika.nl", "password": "bob-pass",
                                       "next": "//evil.example/"})
    assert resp.headers["Location"].endswith("/schedule/")


def test_deactivated_profile_loses_session(app, client, ids):
    login(client, "bob@paprika.nl")
    with app.app_context():
        get(Profile, ids.bob).is_active = False
        db.session.commit()
    assert client.get("/schedule/").status_code == 302


def test_employee_is_kept_out_of_manager_pages(client):
    login(client, "alice@paprika.nl")
    for url in ("/payroll/", "/employees/", "/schedule/shift/new", "/schedule/bulk-create"):
        resp = client.get(url)
        assert resp.status_code == 403, url
        assert "Managers only" in _html(resp)


# ────────────────────────── schedule ──────────────────────────
def test_employee_calendar_shows_own_and_open_shifts(client, ids, add_shift):
    add_shift(ids.alice, "2026-10-21", "08:00", "16:00")
    add_shift(ids.bob, "2026-10-22", "09:00", "13:00")
    add_shift(None, "2026-10-23", "17:00", "23:00")
    login(client, "alice@paprika.nl")

    html = _html(client.get("/schedule/?mode=month&ref=2026-10-21"))
    assert "October 2026" in html
    assert "08:00-16:00" in html
    assert "17:00-23:00" in html and "Claim" in html
    assert "09:00-13:00" not in html
    assert "8.00 h" in html and "160.00" in html

    html = _html(client.get("/schedule/?mode=week&ref=2026-10-21"))
    assert "2026-10-18 - 2026-10-24" in html


def test_manager_filter(client, ids, add_shift):
    add_shift(ids.alice, "2026-10-21", "08:00", "16:00")
    add_shift(ids.bob, "2026-10-22", "09:00", "13:00")
    login(client, "manager@paprika.nl")
    html = _html(client.get("/schedule/?ref=2026-10-21&q=bob"))
    assert "09:00-13:00" in html
    assert "08:00-16:00" not in html


def test_day_view(client, ids, add_shift):
    add_shift(ids.alice, "2026-10-21", "08:00", "16:00")
    add_shift(ids.bob, "2026-10-21", "22:00", "02:00")
    login(client, "manager@paprika.nl")
    html = _html(client.get("/schedule/day/2026-10-21"))
    assert "Wednesday 2026-10-21" in html
    assert "Bob Brown" in html and "4.00" in html
    assert client.get("/schedule/day/not-a-day").status_code == 400


def test_create_open_shift_and_claim(app, client, ids):
    login(client, "manager@paprika.nl")
    resp = client.post("/schedule/shift/new", data={
        "employee_id": "open", "date": "2026-10-24", "start_time": "17:00",
        "end_time": "23:00", "shift_role": "delivery"}, follow_redirects=True)
    assert "Open shift created" in _html(resp)
    with app.app_context():
        sid = Schedule.query.one().id

    alice = app.test_client()
    login(alice, "alice@paprika.nl")
    resp = alice.post(f"/schedule/shift/{sid}/claim", follow_redirects=True)
    assert "You claimed the shift on 2026-10-24 17:00-23:00" in _html(resp)

    bob = app.test_client()
    login(bob, "bob@paprika.nl")
    resp = bob.post(f"/schedule/shift/{sid}/claim", follow_redirects=True)
    assert "This shift was already claimed. Refresh and try again." in _html(resp)
    with app.app_context():
        assert get(Schedule, sid).employee_id == ids.alice


def test_invalid_shift_form_flashes(client, ids):
    login(client, "manager@paprika.nl")
    resp = client.post("/schedule/shift/new", data={
        "employee_id": str(ids.alice), "date": "2026-10-24", "start_time": "7pm",
        "end_time": "23:00"}, headers={"Referer": "/schedule/shift/new"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/schedule/shift/new")
    assert "Start time must be HH:MM" in _html(client.get("/schedule/shift/new"))


def test_form_error_without_referrer_goes_to_dashboard(client, ids, caplog):
    login(client, "manager@paprika.nl")
    with caplog.at_level("INFO", logger="app"):
        resp = client.post("/schedule/shift/new", data={
            "employee_id": str(ids.alice), "date": "bad", "start_time": "09:00",
            "end_time": "17:00"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard/")
    assert any("-> 400" in r.getMessage() for r in caplog.records)


def test_recurring_and_bulk_tools(app, client, ids):
    login(client, "manager@paprika.nl")
    form = {"start": "2026-10-18", "end": "2026-10-31", "weekdays": ["monday", "wednesday"],
            "employee_ids": [str(ids.alice), str(ids.bob)], "notes": "recurring"}
    for eid in (ids.alice, ids.bob):
        form.update({f"role_{eid}": "kitchen", f"start_{eid}": "16:00", f"end_{eid}": "22:00"})
    resp = client.post("/schedule/bulk-create", data=form, follow_redirects=True)
    assert "Successfully created 8 shifts" in _html(resp)

    with app.app_context():
        alice_ids = [str(s.id) for s in Schedule.query.filter_by(employee_id=ids.alice)]
    resp = client.post("/schedule/bulk", data={"action": "update", "ids": alice_ids,
                                               "shift_role": "cashier"}, follow_redirects=True)
    assert "Successfully updated 4 shift(s)" in _html(resp)

    resp = client.post("/schedule/bulk", data={"action": "delete", "ids": alice_ids + ["999"]},
                       follow_redirects=True)
    assert "Failed to delete 1 of 5 shift(s)" in _html(resp)
    with app.app_context():
        assert Schedule.query.count() == 4


def test_delete_shift_route(app, client, ids, add_shift):
    sid = add_shift(ids.alice, "2026-10-21")
    login(client, "manager@paprika.nl")
    client.post(f"/schedule/shift/{sid}/delete")
    with app.app_context():
        assert get(Schedule, sid) is None


# ────────────────────────── payroll ──────────────────────────
def test_daily_payroll_against_limit(client, ids, add_shift):
    add_shift(ids.alice, "2026-10-21", "08:00", "16:00")
    add_shift(ids.bob, "2026-10-21", "08:00", "18:00")
    login(client, "manager@paprika.nl")

    html = _html(client.get("/payroll/?mode=daily&ref=2026-10-21"))
    assert "310.00" in html
    assert "within budget, 190.00 remaining" in html

    resp = client.post("/payroll/limit", data={"limit": "250", "seq": seq_token(html)},
                       follow_redirects=True)
    assert "Daily payroll limit set to 250.00" in _html(resp)

    html = _html(client.get("/payroll/?mode=daily&ref=2026-10-21"))
    assert "over by 60.00, 24% over" in html

    html = _html(client.get("/payroll/?mode=weekly&ref=2026-10-21"))
    assert "2026-10-18 - 2026-10-24" in html
    assert "% over" not in html


def test_stale_limit_form_is_ignored(app, client):
    login(client, "manager@paprika.nl")
    old = seq_token(_html(client.get("/payroll/")))
    client.get("/payroll/")
    resp = client.post("/payroll/limit", data={"limit": "1", "seq": old}, follow_redirects=True)
    assert "This form is out of date" in _html(resp)
    with app.app_context():
        assert str(get_settings().daily_payroll_limit) == "500.00"


def test_my_earnings(client, ids, add_shift):
    add_shift(ids.alice, "2026-10-21", "22:00", "02:00")
    add_shift(ids.bob, "2026-10-21", "08:00", "16:00")
    login(client, "alice@paprika.nl")
    html = _html(client.get("/payroll/me?ref=2026-10-05"))
    assert "My earnings: October 2026" in html
    assert "4.00 h" in html and "80.00" in html
    assert "08:00-16:00" not in html


# ────────────────────────── announcements ──────────────────────────
def test_announcements_rank_by_priority(app, client, ids):
    login(client, "manager@paprika.nl")
    for title, priority in (("Menu change", "normal"), ("Fryer broken", "urgent"),
                            ("Inventory Friday", "high")):
        client.post("/announcements/new", data={"title": title, "content": "...",
                                                "category": "general", "priority": priority})
    html = _html(client.get("/announcements/"))
    assert html.index("Fryer broken") < html.index("Inventory Friday") < html.index("Menu change")

    with app.app_context():
        aid = Announcement.query.filter_by(title="Menu change").one().id
    client.post(f"/announcements/{aid}/edit", data={"title": "Menu change", "content": "new",
                                                    "category": "rules", "priority": "urgent"})
    html = _html(client.get("/announcements/?category=rules"))
    assert "Menu change" in html and "Fryer broken" not in html


def test_employees_cannot_post_announcements(client):
    login(client, "alice@paprika.nl")
    resp = client.post("/announcements/new", data={"title": "x", "content": "y"})
    assert resp.status_code == 403


# ────────────────────────── complaints ──────────────────────────
def test_complaint_lifecycle(app, client, ids):
    login(client, "alice@paprika.nl")
    client.post("/complaints/new", data={"title": "Freezer noisy", "description": "Rattles",
                                         "category": "equipment", "urgency": "high"})
    with app.app_context():
        cid = Complaint.query.one().id

    bob = app.test_client()
    login(bob, "bob@paprika.nl")
    assert "Freezer noisy" not in _html(bob.get("/complaints/"))

    mgr = app.test_client()
    login(mgr, "manager@paprika.nl")
    assert "Alice Adams" in _html(mgr.get("/complaints/"))

    mgr.post(f"/complaints/{cid}/status", data={"status": "resolved"})
    with app.app_context():
        c = get(Complaint, cid)
        assert (c.status, c.resolved_by) == ("resolved", ids.manager)

    mgr.post(f"/complaints/{cid}/status", data={"status": "in_progress"})
    with app.app_context():
        c = get(Complaint, cid)
        assert (c.status, c.resolved_by) == ("in_progress", None)

    resp = mgr.post(f"/complaints/{cid}/status", data={"status": "closed"}, follow_redirects=True)
    assert "Status must be one of" in _html(resp)

    mgr.post(f"/complaints/{cid}/delete")
    with app.app_context():
        assert Complaint.query.count() == 0


# ────────────────────────── employees ──────────────────────────
def test_employee_pages(app, client, ids, add_shift):
    login(client, "manager@paprika.nl")
    resp = client.post("/employees/add", data={"full_name": "Carol Cook", "email": "carol@paprika.nl",
                                               "role": "employee", "hourly_wage": "18",
                                               "password": "carol-pass"}, follow_redirects=True)
    assert "Employee Carol Cook created" in _html(resp)

    html = _html(client.get("/employees/?q=carol"))
    assert "carol@paprika.nl" in html and "alice@paprika.nl" not in html

    resp = client.post("/employees/bulk", data={"ids": [str(ids.alice)], f"role_{ids.alice}": "employee",
                                                f"wage_{ids.alice}": "21.25"}, follow_redirects=True)
    assert "Successfully updated 1 employee(s)" in _html(resp)

    add_shift(ids.bob, "2099-01-01")
    resp = client.post(f"/employees/delete/{ids.bob}", follow_redirects=True)
    assert "Employee removed, 1 upcoming shift(s) deleted" in _html(resp)

    with app.app_context():
        assert str(get(Profile, ids.alice).hourly_wage) == "21.25"
        assert get(Profile, ids.bob).is_active is False


def test_employee_edit_form(app, client, ids):
    login(client, "manager@paprika.nl")
    token = seq_token(_html(client.get(f"/employees/edit/{ids.bob}")))
    client.post(f"/employees/edit/{ids.bob}", data={"seq": token, "full_name": "Robert Brown",
                                                    "email": "bob@paprika.nl", "role": "employee",
                                                    "hourly_wage": "15.00", "password": ""})
    with app.app_context():
        bob = get(Profile, ids.bob)
        assert bob.full_name == "Robert Brown"
        assert bob.check_password("bob-pass")


# ────────────────────────── checklist dashboard ──────────────────────────
def test_dashboard_views(client):
    resp = client.get("/")
    assert resp.headers["Location"].endswith("/dashboard/")
    assert client.get("/dashboard/").headers["Location"].endswith("/dashboard/worker")
    for view in ("worker", "manager", "oil-tracker", "events", "notifications"):
        assert client.get(f"/dashboard/{view}").status_code == 200, view
    assert client.get("/dashboard/kitchen").status_code == 404
    assert "Teodora" in _html(client.get("/dashboard/worker?employee=emp-10"))


def test_oil_tracker_shows_assigned_worker(client):
    html = _html(client.get("/dashboard/oil-tracker"))
    assert "Assigned: Marko Petrović" in html
    assert "Assigned: Nikola Ilić" in html
    assert "Assigned: no morning shift worker" in html


def test_dashboard_task_update_and_reset(app, client):
    store = app.extensions[STORE_KEY]
    client.post("/dashboard/worker/emp-1/task", data={
        "checklist_id": "checklist-emp-1-cleaning", "task_id": "task-1", "value": ["", "1"]})
    cl = next(c for c in store.checklists if c.id == "checklist-emp-1-cleaning")
    assert cl.tasks[0].completed

    client.post("/dashboard/worker/emp-1/task", data={
        "checklist_id": "checklist-emp-1-cleaning", "task_id": "task-1", "value": [""]})
    assert not cl.tasks[0].completed

    client.post("/dashboard/reset")
    assert app.extensions[STORE_KEY] is not store


def test_dashboard_forms(app, client):
    store = app.extensions[STORE_KEY]
    resp = client.post("/dashboard/oil-tracker/record", data={
        "location_id": "location-2", "fryer": "3", "employee_id": "emp-4"}, follow_redirects=True)
    assert "Oil change recorded" in _html(resp)
    assert store.oil_changes[-1].fryer_id == "fryer-3"

    resp = client.post("/dashboard/events", data={"title": "", "date": "", "time": ""},
                       follow_redirects=True)
    assert "Please fill in all required fields" in _html(resp)

    client.post("/dashboard/events", data={"title": "Pest control", "date": date.today().isoformat(),
                                           "time": "06:00", "type": "custom", "location": "all"})
    assert store.events[-1].title == "Pest control"

    unread = sum(1 for n in store.notifications if not n.read)
    client.post("/dashboard/notifications/summary")
    assert store.notifications[0].type == "daily-summary"
    client.post(f"/dashboard/notifications/{store.notifications[0].id}/read")
    assert sum(1 for n in store.notifications if not n.read) == unread
