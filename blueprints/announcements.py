"""Announcement board: everyone reads, managers write."""
import logging

from flask import Blueprint, flash, redirect, request, url_for
from sqlalchemy import case

import validators as v
from extensions import db
from models import ANNOUNCEMENT_CATEGORIES, PRIORITIES, Announcement, commit, names_by_id
from staff import ensure_manager

from . import page
from .auth import current_profile, require

logger = logging.getLogger(__name__)

ann_bp = Blueprint("announcements", __name__, url_prefix="/announcements")

# urgent first; the stored strings do not sort that way alphabetically
PRIORITY_RANK = case({"urgent": 0, "high": 1, "normal": 2}, value=Announcement.priority, else_=3)

BOARD = """{% extends "layout.html" %}{% block content %}
<h2>Announcements</h2>
<form method="get">
  <select name="category" onchange="this.form.submit()">
    <option value="">All categories</option>
    {% for c in categories %}<option value="{{ c }}" {{ 'selected' if c == category }}>{{ c }}</option>{% endfor %}
  </select>
</form>
{% if g.profile.is_manager %}
<form method="post" action="{{ url_for('announcements.create') }}">
  <input name="title" placeholder="Title" required>
  <select name="category">{% for c in categories %}<option>{{ c }}</option>{% endfor %}</select>
  <select name="priority">{% for p in priorities %}<option>{{ p }}</option>{% endfor %}</select><br>
  <textarea name="content" rows="3" cols="60" placeholder="Message" required></textarea><br>
  <button>Post</button>
</form>
{% endif %}
{% for a in items %}
  <div class="flash {{ 'error' if a.priority == 'urgent' else 'warn' if a.priority == 'high' else '' }}">
    <strong>{{ a.title }}</strong> <span class="muted">[{{ a.category }} / {{ a.priority }}]</span>
    <p>{{ a.content }}</p>
    <small class="muted">{{ names.get(a.created_by, 'Unknown') }}, {{ a.created_at.strftime('%Y-%m-%d %H:%M') }}</small>
    {% if g.profile.is_manager %}
    <details><summary>Edit</summary>
      <form method="post" action="{{ url_for('announcements.edit', aid=a.id) }}">
        <input name="title" value="{{ a.title }}" required>
        <select name="category">{% for c in categories %}<option {{ 'selected' if c == a.category }}>{{ c }}</option>{% endfor %}</select>
        <select name="priority">{% for p in priorities %}<option {{ 'selected' if p == a.priority }}>{{ p }}</option>{% endfor %}</select><br>
        <textarea name="content" rows="3" cols="60" required>{{ a.content }}</textarea><br>
        <button>Save</button>
        <button formaction="{{ url_for('announcements.delete', aid=a.id) }}"
                onclick="return confirm('Delete this announcement?')">Delete</button>
      </form>
    </details>
    {% endif %}
  </div>
{% else %}
  <p class="muted">No announcements</p>
{% endfor %}
{% endblock %}"""


def ranked(category=None, limit=None):
    q = Announcement.query
    if category:
        q = q.filter_by(category=category)
    q = q.order_by(PRIORITY_RANK, Announcement.created_at.desc(), Announcement.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def _fields(form):
    return {
        "title": v.text(form, "title", "Title", max_len=120),
        "content": v.text(form, "content", "Content"),
        "category": v.choice(form.get("category") or "general", ANNOUNCEMENT_CATEGORIES, "Category"),
        "priority": v.choice(form.get("priority") or "normal", PRIORITIES, "Priority"),
    }


@ann_bp.route("/")
@require()
def index():
    category = request.args.get("category") or None
    return page(BOARD, title="Announcements", items=ranked(category), category=category,
                categories=ANNOUNCEMENT_CATEGORIES, priorities=PRIORITIES, names=names_by_id())


@ann_bp.route("/new", methods=["POST"])
@require("manager")
def create():
    caller = current_profile()
    ensure_manager(caller, "post announcements")
    a = Announcement(created_by=caller.id, **_fields(request.form))
    db.session.add(a)
    commit()
    logger.info("announcement %s posted by %s", a.id, caller.id)
    flash("Announcement posted", "success")
    return redirect(url_for("announcements.index"))


@ann_bp.route("/<int:aid>/edit", methods=["POST"])
@require("manager")
def edit(aid):
    a = db.get_or_404(Announcement, aid)
    for k, val in _fields(request.form).items():
        setattr(a, k, val)
    commit()
    flash("Announcement updated", "success")
    return redirect(url_for("announcements.index"))


@ann_bp.route("/<int:aid>/delete", methods=["POST"])
@require("manager")
def delete(aid):
    a = db.get_or_404(Announcement, aid)
    db.session.delete(a)
    commit()
    logger.info("announcement %s deleted by %s", aid, current_profile().id)
    flash("Announcement deleted", "success")
    return redirect(url_for("announcements.index"))
