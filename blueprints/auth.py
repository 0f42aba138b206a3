from functools import wraps

from flask import (Blueprint, flash, g, redirect, request, session, url_for)

from errors import AuthenticationError, AuthorizationError
from extensions import db
from models import Profile
from staff import authenticate, load_token

from . import page

auth_bp = Blueprint("auth", __name__)

LOGIN = """{% extends "layout.html" %}{% block content %}
<h2>{{ config.STORE_NAME }} staff login</h2>
{% if err %}<p class="flash error">{{ err }}</p>{% endif %}
<form method="post">
  <input type="email" name="email" placeholder="Email" value="{{ email }}" required><br>
  <input type="password" name="password" placeholder="Password" required><br>
  <input type="hidden" name="next" value="{{ next }}">
  <button>Log in</button>
</form>
{% endblock %}"""


@auth_bp.before_app_request
def load_profile():
    g.profile = None
    uid = session.get("uid")
    if uid is None:
        return
    prof = db.session.get(Profile, uid)
    if prof is None or not prof.is_active:
        session.pop("uid", None)
        return
    g.profile = prof


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    err = ""
    email = ""
    nxt = request.values.get("next") or ""
    if request.method == "POST":
        email = request.form.get("email", "")
        prof = authenticate(email, request.form.get("password", ""))
        if prof:
            session.clear()
            session["uid"] = prof.id
            flash(f"Welcome, {prof.full_name}", "success")
            # only same-site paths
            if not nxt.startswith("/") or nxt.startswith("//"):
                nxt = url_for("schedule.calendar")
            return redirect(nxt)
        err = "Invalid email or password"
    return page(LOGIN, title="Log in", err=err, email=email, next=nxt)


@auth_bp.route("/logout")
def logout():
    session.clear()
    return redirect(url_for("auth.login"))


def current_profile():
    return g.get("profile")


def require(role=None):
    """
    View decorator: signed-in profile required; role="manager" narrows it.

    Anonymous HTML requests go to the login page, wrong role is a 403.
    """
    def deco(fn):
        @wraps(fn)
        def wrapper(*a, **kw):
            prof = current_profile()
            if prof is None:
                return redirect(url_for("auth.login", next=request.full_path))
            if role == "manager" and not prof.is_manager:
                raise AuthorizationError("Managers only")
            return fn(*a, **kw)
        return wrapper
    return deco


def bearer_profile():
    """Profile of the `Authorization: Bearer <token>` header; 401 otherwise."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError()
    prof = load_token(token.strip())
    if prof is None:
        raise AuthenticationError()
    return prof
