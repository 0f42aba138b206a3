import re
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app import create_app
from config import TestConfig
from extensions import db
from models import Profile, Schedule

PASSWORDS = {
    "manager@paprika.nl": "manager-pass",
    "alice@paprika.nl": "alice-pass",
    "bob@paprika.nl": "bob-pass",
}


def _profile(email, name, role, wage):
    p = Profile(email=email, full_name=name, role=role,
                hourly_wage=Decimal(wage), is_active=True)
    p.set_password(PASSWORDS[email])
    db.session.add(p)
    return p


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        mgr = _profile("manager@paprika.nl", "Maria Manager", "manager", "25.00")
        alice = _profile("alice@paprika.nl", "Alice Adams", "employee", "20.00")
        bob = _profile("bob@paprika.nl", "Bob Brown", "employee", "15.00")
        db.session.commit()
        app.test_ids = SimpleNamespace(manager=mgr.id, alice=alice.id, bob=bob.id)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ids(app):
    return app.test_ids


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield
        db.session.rollback()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def add_shift(app, ids):
    """Insert a schedule row directly; returns its id."""
    def _add(employee_id, day, start="08:00", end="16:00", role="kitchen", notes=""):
        with app.app_context():
            s = Schedule(employee_id=employee_id, date=day, start_time=start, end_time=end,
                         shift_role=role, notes=notes, created_by=ids.manager)
            db.session.add(s)
            db.session.commit()
            return s.id
    return _add


def login(client, email):
    return client.post("/login", data={"email": email, "password": PASSWORDS[email]})


def bearer(client, email):
    resp = client.post("/api/auth/token", json={"email": email, "password": PASSWORDS[email]})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


def seq_token(html):
    m = re.search(r'name="seq" value="(\d+)"', html)
    assert m, "form has no seq token"
    return m.group(1)


def get(model, pk):
    """Fresh read in a new session."""
    return db.session.get(model, pk)
