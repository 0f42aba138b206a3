# -*- coding: utf-8 -*-
"""
Checklist dashboard over the in-memory demo store.

One URL per view; every render function takes the store explicitly and the
store lives in `app.extensions["demo_store"]` until reset.
"""
import random
from datetime import date, datetime

from flask import Blueprint, abort, current_app, flash, redirect, request, url_for

from checklists import (EVENT_TYPES, EventScheduler, ManagerOverview, NotificationCenter,
                        OilTracker, View, WorkerChecklist, relative_time, status_label)
from demo_data import DemoStore
from errors import ValidationError

from . import page

dash_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")

STORE_KEY = "demo_store"

TABS = """{% extends "layout.html" %}{% block content %}
<p>
  {% for v in views %}
    <a href="{{ url_for('dashboard.show', view=v.value) }}">{{ '<b>'|safe if v == current }}{{ v.value.replace('-', ' ')|title }}{{ '</b>'|safe if v == current }}</a> |
  {% endfor %}
  <form method="post" action="{{ url_for('dashboard.reset') }}" style="display:inline"><button>Reset demo data</button></form>
</p>
{% block view %}{% endblock %}
{% endblock %}"""

WORKER = """{% extends "tabs.html" %}{% block view %}
<form method="get">
  <select name="employee" onchange="this.form.submit()">
    {% for e in store.employees %}<option value="{{ e.id }}" {{ 'selected' if e.id == ctl.employee_id }}>{{ e.name }}</option>{% endfor %}
  </select>
</form>
<h2>Today's checklists: {{ ctl.progress() }}%</h2>
<div class="bar"><div style="width: {{ ctl.progress() }}%"></div></div>
{% for cl in ctl.checklists %}
  <h3>{{ cl.title }} <small class="{{ 'success' if cl.status == 'complete' else 'warn' }}">{{ 'Complete' if cl.status == 'complete' else 'In Progress' }}</small></h3>
  <p class="muted">{{ cl.location_name }} | last updated {{ cl.last_updated.strftime('%H:%M') }} | {{ cl.completed_count }}/{{ cl.tasks|length }} tasks</p>
  {% for t in cl.tasks %}
  <form method="post" enctype="multipart/form-data"
        action="{{ url_for('dashboard.update_task', employee_id=ctl.employee_id) }}">
    <input type="hidden" name="checklist_id" value="{{ cl.id }}">
    <input type="hidden" name="task_id" value="{{ t.id }}">
    {% if t.type == 'checkbox' %}
      <input type="hidden" name="value" value="">
      <label><input type="checkbox" name="value" value="1" {{ 'checked' if t.completed }} onchange="this.form.submit()"> {{ t.title }}</label>
    {% elif t.type == 'number' %}
      {{ t.title }} <input type="number" name="value" value="{{ t.value or '' }}"> {{ t.unit or '' }} <button>Save</button>
    {% elif t.type == 'text' %}
      {{ t.title }}<br><textarea name="value" rows="2" cols="40">{{ t.value or '' }}</textarea> <button>Save</button>
    {% else %}
      {{ t.title }} <input type="file" name="photo" accept="image/*"> <button>Upload</button>
      {% if t.completed %}<span class="success">Photo uploaded</span>{% endif %}
    {% endif %}
    {% if t.timestamp %}<small class="muted">{{ t.timestamp.strftime('%H:%M') }}</small>{% endif %}
  </form>
  {% endfor %}
{% endfor %}
{% endblock %}"""

MANAGER = """{% extends "tabs.html" %}{% block view %}
{% set st = ctl.stats() %}
<p>Total {{ st.total }} | Completed {{ st.completed }} | Pending {{ st.pending }} | Incomplete {{ st.incomplete }}</p>
<table>
  <tr><th>Location</th><th>Employee</th><th>Checklist</th><th>Progress</th><th>Status</th><th>Updated</th></tr>
  {% for c in ctl.rows() %}
  <tr>
    <td><strong>{{ c.location_name }}</strong></td>
    <td>{{ c.employee_name }}</td>
    <td><a href="{{ url_for('dashboard.show', view='manager', detail=c.id) }}">{{ c.title }}</a></td>
    <td><div class="bar"><div style="width: {{ c.progress }}%"></div></div>{{ c.progress }}%</td>
    <td>{{ label(c) }}</td>
    <td>{{ ago(c.last_updated) }}</td>
  </tr>
  {% endfor %}
</table>
{% if detail %}
  <h3>{{ detail.title }}: {{ detail.employee_name }}, {{ detail.location_name }} ({{ detail.completed_count }}/{{ detail.tasks|length }} tasks)</h3>
  <ul>
  {% for t in detail.tasks %}
    <li>{{ '&#10003;'|safe if t.completed else '&#9675;'|safe }} {{ t.title }}
      {% if t.value %}: {{ t.value }} {{ t.unit or '' }}{% endif %}
      {% if t.timestamp %}<small class="muted">{{ ago(t.timestamp) }}</small>{% endif %}</li>
  {% endfor %}
  </ul>
{% endif %}
{% endblock %}"""

OIL = """{% extends "tabs.html" %}{% block view %}
{% set nxt = ctl.next_scheduled() %}
{% if nxt %}<p>Next scheduled change: <strong>{{ store.locations[nxt.location_id].name }} {{ nxt.fryer_id }}</strong> on {{ nxt.next_due }}</p>{% endif %}
{% for loc, cards in ctl.fryers() %}
  <h3>{{ loc.name }}</h3>
  {% set worker = ctl.assigned_worker(loc.id) %}
  <p class="muted">Assigned: {{ worker.name if worker else "no morning shift worker" }}</p>
  <table>
    <tr><th>Fryer</th><th>Status</th><th>Last changed</th><th>Changed by</th><th>Next due</th></tr>
    {% for f in cards %}
    <tr>
      <td>Fryer {{ f.number }}</td>
      <td class="{{ 'error' if f.status == 'Overdue' else 'warn' if f.status in ('Due Soon', 'No history') else 'success' }}">{{ f.status }}</td>
      {% if f.last_change %}
        <td>{{ f.last_change.date }} ({{ f.days_ago }} days ago)</td>
        <td>{{ f.last_change.employee_name }}</td>
        <td>{{ f.last_change.next_due }}</td>
      {% else %}
        <td colspan="3" class="muted">No change history available</td>
      {% endif %}
    </tr>
    {% endfor %}
  </table>
{% endfor %}
<h3>Record an oil change</h3>
<form method="post" action="{{ url_for('dashboard.record_oil_change') }}">
  <select name="location_id">{% for l in store.locations.values() %}<option value="{{ l.id }}">{{ l.name }}</option>{% endfor %}</select>
  Fryer <input type="number" name="fryer" min="1" value="1" size="3">
  <select name="employee_id">{% for e in store.employees %}<option value="{{ e.id }}">{{ e.name }}</option>{% endfor %}</select>
  <input type="date" name="date" value="{{ store.today }}">
  <button>Save</button>
</form>
{% endblock %}"""

EVENTS = """{% extends "tabs.html" %}{% block view %}
<h3>Upcoming events</h3>
{% for e in ctl.upcoming() %}
  <div class="flash">
    <strong>{{ e.title }}</strong> ({{ types.get(e.type, e.type) }})<br>
    {{ e.date.strftime('%A, %B %d, %Y') }} at {{ e.time }} | {{ e.location_name }} |
    <strong>{{ ctl.days_until(e) }}</strong> days
    <p>{{ e.description }}</p>
    <small class="muted">Reminders: {{ e.reminders|length }}</small>
  </div>
{% else %}
  <p class="muted">No upcoming events scheduled</p>
{% endfor %}
<h3>New event</h3>
<form method="post" action="{{ url_for('dashboard.create_event') }}">
  <select name="type">{% for k, label in types.items() %}<option value="{{ k }}">{{ label }}</option>{% endfor %}</select>
  <input name="title" placeholder="Title" required>
  <input type="date" name="date" required> <input type="time" name="time" required>
  <select name="location"><option value="all">All Locations</option>
    {% for l in store.locations.values() %}<option value="{{ l.id }}">{{ l.name }}</option>{% endfor %}</select><br>
  <textarea name="description" rows="2" cols="60" placeholder="Description"></textarea><br>
  <button>Create</button>
</form>
{% endblock %}"""

NOTIFICATIONS = """{% extends "tabs.html" %}{% block view %}
<p>{{ ctl.unread_count() }} unread</p>
<form method="post" style="display:inline" action="{{ url_for('dashboard.send_summary') }}"><button>Send end-of-day summary</button></form>
<form method="post" style="display:inline" action="{{ url_for('dashboard.shift_reminders') }}"><button>Run shift-end reminders</button></form>
{% for n in ctl.newest_first() %}
  <div class="flash {{ '' if n.read else 'warn' }}">
    <strong>{{ n.title }}</strong>
    <p>{{ n.message }}</p>
    <small class="muted">To: {{ n.recipient_name }} | {{ ago(n.timestamp) }}</small>
    {% if not n.read %}
      <form method="post" style="display:inline" action="{{ url_for('dashboard.mark_read', notification_id=n.id) }}"><button>Mark read</button></form>
    {% endif %}
  </div>
{% else %}
  <p class="muted">No notifications yet</p>
{% endfor %}
{% endblock %}"""


def new_store(app=None):
    app = app or current_app
    seed = app.config.get("DEMO_SEED")
    rng = random.Random(int(seed)) if seed else random.Random()
    return DemoStore.generate(date.today(), rng)


def store():
    return current_app.extensions[STORE_KEY]


def _ago(ts):
    return relative_time(ts, datetime.now())


# ────────────────────────── render functions ──────────────────────────
def render_worker(st):
    ctl = WorkerChecklist(st, request.args.get("employee") or st.employees[0]["id"])
    return page(WORKER, title="My checklists", views=View, current=View.WORKER, store=st, ctl=ctl)


def render_manager(st):
    ctl = ManagerOverview(st)
    detail = ctl.checklist(request.args["detail"]) if request.args.get("detail") else None
    return page(MANAGER, title="Manager overview", views=View, current=View.MANAGER, store=st,
                ctl=ctl, detail=detail, label=status_label, ago=_ago)


def render_oil_tracker(st):
    ctl = OilTracker(st, interval=current_app.config["OIL_CHANGE_INTERVAL_DAYS"])
    return page(OIL, title="Oil tracker", views=View, current=View.OIL_TRACKER, store=st, ctl=ctl)


def render_events(st):
    return page(EVENTS, title="Events", views=View, current=View.EVENTS, store=st,
                ctl=EventScheduler(st), types=EVENT_TYPES)


def render_notifications(st):
    return page(NOTIFICATIONS, title="Notifications", views=View, current=View.NOTIFICATIONS,
                store=st, ctl=NotificationCenter(st), ago=_ago)


VIEWS = {
    View.WORKER: render_worker,
    View.MANAGER: render_manager,
    View.OIL_TRACKER: render_oil_tracker,
    View.EVENTS: render_events,
    View.NOTIFICATIONS: render_notifications,
}


# ────────────────────────── routes ──────────────────────────
@dash_bp.route("/")
def index():
    return redirect(url_for("dashboard.show", view=View.WORKER.value))


@dash_bp.route("/<view>")
def show(view):
    try:
        v = View(view)
    except ValueError:
        abort(404)
    return VIEWS[v](store())


@dash_bp.route("/reset", methods=["POST"])
def reset():
    current_app.extensions[STORE_KEY] = new_store()
    flash("Demo data regenerated", "success")
    return redirect(url_for("dashboard.index"))


@dash_bp.route("/worker/<employee_id>/task", methods=["POST"])
def update_task(employee_id):
    f = request.form
    ctl = WorkerChecklist(store(), employee_id)
    photo = request.files.get("photo")
    values = [x for x in f.getlist("value") if x] or [""]
    value = photo.filename if photo and photo.filename else values[-1]
    ctl.update_task(f.get("checklist_id"), f.get("task_id"), value)
    return redirect(url_for("dashboard.show", view=View.WORKER.value, employee=employee_id))


@dash_bp.route("/oil-tracker/record", methods=["POST"])
def record_oil_change():
    f = request.form
    ctl = OilTracker(store(), interval=current_app.config["OIL_CHANGE_INTERVAL_DAYS"])
    try:
        on = date.fromisoformat(f.get("date")) if f.get("date") else None
    except ValueError:
        raise ValidationError("Date must be YYYY-MM-DD") from None
    oc = ctl.record_change(f.get("location_id"), f"fryer-{f.get('fryer', '1')}",
                           f.get("employee_id"), on)
    flash(f"Oil change recorded, next due {oc.next_due}", "success")
    return redirect(url_for("dashboard.show", view=View.OIL_TRACKER.value))


@dash_bp.route("/events", methods=["POST"])
def create_event():
    EventScheduler(store()).create_event(request.form)
    flash("Event created successfully! Reminders will be sent 7, 3, and 1 day before.", "success")
    return redirect(url_for("dashboard.show", view=View.EVENTS.value))


@dash_bp.route("/notifications/<notification_id>/read", methods=["POST"])
def mark_read(notification_id):
    NotificationCenter(store()).mark_read(notification_id)
    return redirect(url_for("dashboard.show", view=View.NOTIFICATIONS.value))


@dash_bp.route("/notifications/summary", methods=["POST"])
def send_summary():
    center = NotificationCenter(store())
    center.send("daily-summary", "End of Day Summary", center.end_of_day_summary(),
                "manager", "General Manager")
    flash("End of Day Summary sent", "success")
    return redirect(url_for("dashboard.show", view=View.NOTIFICATIONS.value))


@dash_bp.route("/notifications/shift-reminders", methods=["POST"])
def shift_reminders():
    sent = NotificationCenter(store()).shift_end_reminders(datetime.now())
    flash(f"{len(sent)} shift-end reminder(s) sent" if sent
          else "Shift-end reminders only go out at 15:00", "success" if sent else "warn")
    return redirect(url_for("dashboard.show", view=View.NOTIFICATIONS.value))
