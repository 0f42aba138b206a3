"""Equipment / supply complaints: employees report, managers triage."""
import logging

from flask import Blueprint, abort, flash, redirect, request, url_for

import validators as v
from extensions import db
from models import (COMPLAINT_CATEGORIES, COMPLAINT_STATUSES, URGENCIES,
                    Complaint, commit)
from staff import ensure_manager

from . import page
from .auth import current_profile, require

logger = logging.getLogger(__name__)

comp_bp = Blueprint("complaints", __name__, url_prefix="/complaints")

INDEX = """{% extends "layout.html" %}{% block content %}
<h2>Complaints</h2>
{% if not g.profile.is_manager %}
<form method="post" action="{{ url_for('complaints.submit') }}">
  <input name="title" placeholder="Short title" required>
  <select name="category">{% for c in categories %}<option>{{ c }}</option>{% endfor %}</select>
  <select name="urgency">{% for u in urgencies %}<option {{ 'selected' if u == 'medium' }}>{{ u }}</option>{% endfor %}</select><br>
  <textarea name="description" rows="3" cols="60" placeholder="What is wrong?" required></textarea><br>
  <button>Submit</button>
</form>
{% endif %}
<table>
  <tr><th>Title</th><th>Category</th><th>Urgency</th><th>Status</th>
      {% if g.profile.is_manager %}<th>Submitted by</th><th></th>{% endif %}<th>Created</th></tr>
  {% for c in items %}
  <tr>
    <td><strong>{{ c.title }}</strong><br><span class="muted">{{ c.description }}</span></td>
    <td>{{ c.category }}</td>
    <td class="{{ 'error' if c.urgency in ('high', 'critical') }}">{{ c.urgency }}</td>
    <td>{{ c.status.replace('_', ' ') }}</td>
    {% if g.profile.is_manager %}
    <td>{{ c.submitter.full_name if c.submitter else '?' }}</td>
    <td>
      <form method="post" action="{{ url_for('complaints.set_status', cid=c.id) }}">
        {% for s in statuses %}
          <button name="status" value="{{ s }}" {{ 'disabled' if s == c.status }}>{{ s.replace('_', ' ') }}</button>
        {% endfor %}
        <button formaction="{{ url_for('complaints.delete', cid=c.id) }}"
                onclick="return confirm('Delete this complaint?')">Delete</button>
      </form>
    </td>
    {% endif %}
    <td>{{ c.created_at.strftime('%Y-%m-%d %H:%M') }}</td>
  </tr>
  {% else %}
  <tr><td colspan="7" class="muted">No complaints</td></tr>
  {% endfor %}
</table>
{% endblock %}"""


def visible_to(prof):
    q = Complaint.query
    if not prof.is_manager:
        q = q.filter_by(submitted_by=prof.id)
    return q.order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()


def change_status(caller, complaint, status):
    """Any status may follow any other; resolved_by tracks who closed it."""
    ensure_manager(caller, "update complaints")
    complaint.status = v.choice(status, COMPLAINT_STATUSES, "Status")
    complaint.resolved_by = caller.id if status == "resolved" else None
    commit()
    logger.info("complaint %s -> %s by %s", complaint.id, status, caller.id)
    return complaint


@comp_bp.route("/")
@require()
def index():
    return page(INDEX, title="Complaints", items=visible_to(current_profile()),
                categories=COMPLAINT_CATEGORIES, urgencies=URGENCIES,
                statuses=COMPLAINT_STATUSES)


@comp_bp.route("/new", methods=["POST"])
@require()
def submit():
    prof = current_profile()
    f = request.form
    c = Complaint(
        title=v.text(f, "title", "Title", max_len=120),
        description=v.text(f, "description", "Description"),
        category=v.choice(f.get("category"), COMPLAINT_CATEGORIES, "Category"),
        urgency=v.choice(f.get("urgency") or "medium", URGENCIES, "Urgency"),
        status="open",
        submitted_by=prof.id,
    )
    db.session.add(c)
    commit()
    logger.info("complaint %s submitted by %s (%s)", c.id, prof.id, c.urgency)
    flash("Complaint submitted", "success")
    return redirect(url_for("complaints.index"))


@comp_bp.route("/<int:cid>/status", methods=["POST"])
@require("manager")
def set_status(cid):
    c = db.get_or_404(Complaint, cid)
    change_status(current_profile(), c, request.form.get("status"))
    flash(f"Complaint marked {c.status.replace('_', ' ')}", "success")
    return redirect(url_for("complaints.index"))


@comp_bp.route("/<int:cid>/delete", methods=["POST"])
@require("manager")
def delete(cid):
    c = db.session.get(Complaint, cid)
    if c is None:
        abort(404)
    db.session.delete(c)
    commit()
    flash("Complaint deleted", "success")
    return redirect(url_for("complaints.index"))
