# -*- coding: utf-8 -*-
"""
Week / month schedule, the day list, shift editing, open-shift claims and
the batch tools (recurring creation, bulk edit, bulk delete).
"""
from datetime import date

from flask import Blueprint, flash, redirect, request, session, url_for

import calendar_grid as cg
import validators as v
from errors import ConflictError
from models import SHIFT_ROLES, names_by_id
from sequencing import RequestSequencer, form_op
from shifts import (DEFAULT_TEMPLATE, DEFAULT_WEEKDAYS, WEEKDAY_KEYS,
                    bulk_create_shifts, bulk_delete_shifts, bulk_update_shifts,
                    claim_open_shift, create_shift, delete_shift, get_shift,
                    shifts_between, shifts_for_day, update_shift)
from staff import list_profiles
from wages import aggregate_payroll, shift_hours

from . import fmt_hours, fmt_money, page, selected_ids
from .announcements import ranked
from .auth import current_profile, require

sched_bp = Blueprint("schedule", __name__, url_prefix="/schedule")

CALENDAR = """{% extends "layout.html" %}{% block content %}
<h2>Schedule: {{ heading }}</h2>
<p>
  <a href="{{ url_for('schedule.calendar', mode=mode, ref=iso(prev_ref), q=q) }}">&laquo; Previous</a>
  <a href="{{ url_for('schedule.calendar', mode=mode, q=q) }}">Today</a>
  <a href="{{ url_for('schedule.calendar', mode=mode, ref=iso(next_ref), q=q) }}">Next &raquo;</a>
  |
  {% for m in modes %}<a href="{{ url_for('schedule.calendar', mode=m, ref=iso(ref), q=q) }}">{{ m|title }}</a> {% endfor %}
  |
  <a href="{{ url_for('export.calendar_ics') }}">Export my calendar (.ics)</a>
  {% if g.profile.is_manager %}
    | <a href="{{ url_for('export.month_grid', ym=ref.strftime('%Y-%m'), months=1) }}">Printable month (.xlsx)</a>
    | <a href="{{ url_for('schedule.new_shift') }}">New shift</a>
    | <a href="{{ url_for('schedule.bulk_create') }}">Recurring shifts</a>
  {% endif %}
</p>

{% if g.profile.is_manager %}
<form method="get">
  <input type="hidden" name="mode" value="{{ mode }}"><input type="hidden" name="ref" value="{{ iso(ref) }}">
  <input name="q" value="{{ q }}" placeholder="Filter by employee">
  <button>Filter</button>
</form>
{% else %}
<p>This {{ mode }}: <strong>{{ hours(stats.hours) }} h</strong> scheduled,
   estimated earnings <strong>{{ money(stats.pay) }}</strong> at {{ money(g.profile.hourly_wage) }}/h</p>
{% if announcements %}
  <h3>Announcements</h3>
  {% for a in announcements %}
    <div class="flash {{ 'error' if a.priority == 'urgent' else 'warn' if a.priority == 'high' else '' }}">
      <strong>{{ a.title }}</strong>: {{ a.content }}
    </div>
  {% endfor %}
{% endif %}
{% endif %}

<form method="post" action="{{ url_for('schedule.bulk_action') }}">
<table class="grid">
  <tr>{% for n in weekday_names %}<th>{{ n }}</th>{% endfor %}</tr>
  {% for week in weeks %}
  <tr>
    {% for day in week %}
    <td>
      {% if day %}
        <a href="{{ url_for('schedule.day', day=iso(day)) }}"><strong>{{ day.day }}</strong></a>
        {% for s in by_day.get(iso(day), []) %}
          <div class="{{ 'open' if s.is_open }}">
            {% if g.profile.is_manager %}<input type="checkbox" name="ids" value="{{ s.id }}">{% endif %}
            {{ 'OPEN' if s.is_open else names.get(s.employee_id, '?') }}
            {{ s.start_time }}-{{ s.end_time }} <span class="muted">{{ s.shift_role }}</span>
            {% if g.profile.is_manager %}
              <a href="{{ url_for('schedule.edit_shift', shift_id=s.id) }}">edit</a>
            {% elif s.is_open %}
              <button formaction="{{ url_for('schedule.claim', shift_id=s.id) }}">Claim</button>
            {% endif %}
          </div>
        {% endfor %}
      {% endif %}
    </td>
    {% endfor %}
  </tr>
  {% endfor %}
</table>
{% if g.profile.is_manager %}
  <fieldset>
    <legend>Selected shifts</legend>
    Employee: <select name="employee_id"><option value="">(keep)</option>
      {% for e in employees %}<option value="{{ e.id }}">{{ e.full_name }}</option>{% endfor %}</select>
    Start: <input type="time" name="start_time">
    End: <input type="time" name="end_time">
    Role: <select name="shift_role"><option value="">(keep)</option>
      {% for r in roles %}<option>{{ r }}</option>{% endfor %}</select>
    <button name="action" value="update">Update selected</button>
    <button name="action" value="delete" onclick="return confirm('Delete the selected shifts?')">Delete selected</button>
  </fieldset>
{% endif %}
</form>
{% endblock %}"""

DAY = """{% extends "layout.html" %}{% block content %}
<h2>{{ weekday }} {{ day }}</h2>
<table>
  <tr><th>Employee</th><th>Time</th><th>Hours</th><th>Role</th><th>Notes</th><th></th></tr>
  {% for s in shifts %}
  <tr>
    <td class="{{ 'open' if s.is_open }}">{{ 'OPEN' if s.is_open else names.get(s.employee_id, '?') }}</td>
    <td>{{ s.start_time }}-{{ s.end_time }}</td>
    <td>{{ hours(length(s.start_time, s.end_time)) }}</td>
    <td>{{ s.shift_role }}</td>
    <td>{{ s.notes }}</td>
    <td>
      {% if g.profile.is_manager %}
        <a href="{{ url_for('schedule.edit_shift', shift_id=s.id) }}">Edit</a>
      {% elif s.is_open %}
        <form method="post" action="{{ url_for('schedule.claim', shift_id=s.id) }}"><button>Claim</button></form>
      {% endif %}
    </td>
  </tr>
  {% else %}
  <tr><td colspan="6" class="muted">No shifts</td></tr>
  {% endfor %}
</table>
<a href="{{ url_for('schedule.calendar', ref=day) }}">Back to calendar</a>
{% endblock %}"""

SHIFT_FORM = """{% extends "layout.html" %}{% block content %}
<h2>{{ 'Edit shift' if shift else 'New shift' }}</h2>
<form method="post">
  {% if seq %}<input type="hidden" name="seq" value="{{ seq }}">{% endif %}
  Employee: <select name="employee_id">
    <option value="open">OPEN (claimable)</option>
    {% for e in employees %}
      <option value="{{ e.id }}" {{ 'selected' if shift and shift.employee_id == e.id }}>{{ e.full_name }}</option>
    {% endfor %}
  </select><br>
  Date: <input type="date" name="date" value="{{ shift.date if shift else today }}" required><br>
  Start: <input type="time" name="start_time" value="{{ shift.start_time if shift else '16:00' }}" required>
  End: <input type="time" name="end_time" value="{{ shift.end_time if shift else '22:00' }}" required><br>
  Role: <select name="shift_role">
    {% for r in roles %}<option {{ 'selected' if shift and shift.shift_role == r }}>{{ r }}</option>{% endfor %}
  </select><br>
  Notes: <input name="notes" value="{{ shift.notes if shift else '' }}" size="40"><br>
  <button>Save</button>
  {% if shift %}
    <button formaction="{{ url_for('schedule.remove_shift', shift_id=shift.id) }}"
            onclick="return confirm('Delete this shift?')">Delete</button>
  {% endif %}
  <a href="{{ url_for('schedule.calendar') }}">Back</a>
</form>
{% endblock %}"""

BULK = """{% extends "layout.html" %}{% block content %}
<h2>Recurring shifts</h2>
<form method="post">
  From <input type="date" name="start" value="{{ start }}" required>
  to <input type="date" name="end" value="{{ end }}" required><br>
  {% for w in weekday_keys %}
    <label><input type="checkbox" name="weekdays" value="{{ w }}" {{ 'checked' if w in default_days }}>{{ w[:3]|title }}</label>
  {% endfor %}
  <table>
    <tr><th></th><th>Employee</th><th>Role</th><th>Start</th><th>End</th></tr>
    {% for e in employees %}
    <tr>
      <td><input type="checkbox" name="employee_ids" value="{{ e.id }}"></td>
      <td>{{ e.full_name }}</td>
      <td><select name="role_{{ e.id }}">{% for r in roles %}<option {{ 'selected' if r == tpl.shift_role }}>{{ r }}</option>{% endfor %}</select></td>
      <td><input type="time" name="start_{{ e.id }}" value="{{ tpl.start_time }}"></td>
      <td><input type="time" name="end_{{ e.id }}" value="{{ tpl.end_time }}"></td>
    </tr>
    {% endfor %}
  </table>
  Notes: <input name="notes" size="40"><br>
  <button>Create shifts</button>
</form>
{% endblock %}"""


def _ref():
    try:
        return cg.parse_day(request.args.get("ref", ""))
    except ValueError:
        return date.today()


@sched_bp.route("/")
@require()
def calendar():
    prof = current_profile()
    mode = request.args.get("mode", "month")
    if mode not in cg.VIEW_MODES:
        mode = "month"
    ref = _ref()
    q = request.args.get("q", "").strip()
    start, end = cg.view_range(ref, mode)

    if prof.is_manager:
        rows = shifts_between(start, end)
        if q:
            match = {p.id for p in list_profiles(q)}
            rows = [s for s in rows if s.employee_id in match]
    else:
        rows = shifts_between(start, end, employee_id=prof.id, include_open=True)

    mine = [s for s in rows if s.employee_id == prof.id]
    summary = aggregate_payroll(mine, {prof.id: prof.hourly_wage})
    heading = (ref.strftime("%B %Y") if mode == "month"
               else f"{cg.iso_day(start)} - {cg.iso_day(end)}")

    return page(
        CALENDAR, title="Schedule", heading=heading, mode=mode, modes=cg.VIEW_MODES,
        ref=ref, q=q,
        prev_ref=cg.shift_ref(ref, mode, -1), next_ref=cg.shift_ref(ref, mode, 1),
        weeks=cg.weeks(cg.cells(ref, mode)), weekday_names=cg.WEEKDAY_NAMES,
        by_day=cg.bucket_by_day(rows), names=names_by_id(),
        stats={"hours": summary.total_hours, "pay": summary.total_pay},
        announcements=[] if prof.is_manager else ranked(limit=5),
        employees=list_profiles(active_only=True) if prof.is_manager else [],
        roles=SHIFT_ROLES, iso=cg.iso_day, money=fmt_money, hours=fmt_hours,
    )


@sched_bp.route("/day/<day>")
@require()
def day(day):
    prof = current_profile()
    d = cg.parse_day(v.day(day))
    rows = shifts_for_day(d)
    if not prof.is_manager:
        rows = [s for s in rows if s.employee_id in (prof.id, None)]
    return page(DAY, title=day, day=cg.iso_day(d), weekday=cg.WEEKDAY_NAMES[(d.weekday() + 1) % 7],
                shifts=rows, names=names_by_id(), length=shift_hours, hours=fmt_hours)


@sched_bp.route("/shift/new", methods=["GET", "POST"])
@require("manager")
def new_shift():
    if request.method == "POST":
        shift = create_shift(current_profile(), request.form,
                             open_shift=request.form.get("employee_id") in ("", "open"))
        flash("Open shift created" if shift.is_open else "Shift created", "success")
        return redirect(url_for("schedule.calendar", ref=shift.date))
    return page(SHIFT_FORM, title="New shift", shift=None, seq=None,
                employees=list_profiles(active_only=True), roles=SHIFT_ROLES,
                today=cg.iso_day(date.today()))


@sched_bp.route("/shift/<int:shift_id>/edit", methods=["GET", "POST"])
@require("manager")
def edit_shift(shift_id):
    shift = get_shift(shift_id)
    seq = RequestSequencer(session)
    op = form_op("shift", shift_id)
    if request.method == "POST":
        if not seq.is_current(op, request.form.get("seq")):
            flash("This form is out of date. Reload the page and try again.", "warn")
            return redirect(url_for("schedule.edit_shift", shift_id=shift_id))
        update_shift(current_profile(), shift_id, request.form)
        seq.issue(op)
        flash("Shift updated", "success")
        return redirect(url_for("schedule.calendar", ref=shift.date))
    return page(SHIFT_FORM, title="Edit shift", shift=shift, seq=seq.issue(op),
                employees=list_profiles(active_only=True), roles=SHIFT_ROLES,
                today=cg.iso_day(date.today()))


@sched_bp.route("/shift/<int:shift_id>/delete", methods=["POST"])
@require("manager")
def remove_shift(shift_id):
    delete_shift(current_profile(), shift_id)
    flash("Shift deleted", "success")
    return redirect(url_for("schedule.calendar"))


@sched_bp.route("/shift/<int:shift_id>/claim", methods=["POST"])
@require()
def claim(shift_id):
    try:
        shift = claim_open_shift(shift_id, current_profile())
    except ConflictError as e:
        flash(e.description, "error")
        return redirect(url_for("schedule.calendar"))
    flash(f"You claimed the shift on {shift.date} {shift.start_time}-{shift.end_time}", "success")
    return redirect(url_for("schedule.calendar", ref=shift.date))


@sched_bp.route("/bulk", methods=["POST"])
@require("manager")
def bulk_action():
    ids = selected_ids(request.form)
    if request.form.get("action") == "delete":
        result = bulk_delete_shifts(current_profile(), ids)
        msg = result.message("delete", "shift")
    else:
        result = bulk_update_shifts(current_profile(), ids, request.form)
        msg = result.message("update", "shift")
    flash(msg, "warn" if result.failed else "success")
    return redirect(request.referrer or url_for("schedule.calendar"))


@sched_bp.route("/bulk-create", methods=["GET", "POST"])
@require("manager")
def bulk_create():
    employees = list_profiles(active_only=True)
    if request.method == "POST":
        f = request.form
        templates = [{"employee_id": eid,
                      "shift_role": f.get(f"role_{eid}"),
                      "start_time": f.get(f"start_{eid}"),
                      "end_time": f.get(f"end_{eid}")}
                     for eid in selected_ids(f, "employee_ids")]
        n = bulk_create_shifts(current_profile(), f.get("start"), f.get("end"),
                               f.getlist("weekdays"), templates, f.get("notes", ""))
        flash(f"Successfully created {n} shifts", "success")
        return redirect(url_for("schedule.calendar", ref=f.get("start")))
    today = date.today()
    _, last = cg.month_bounds(today)
    return page(BULK, title="Recurring shifts", employees=employees, roles=SHIFT_ROLES,
                weekday_keys=WEEKDAY_KEYS, default_days=DEFAULT_WEEKDAYS,
                tpl=DEFAULT_TEMPLATE, start=cg.iso_day(today), end=cg.iso_day(last))
