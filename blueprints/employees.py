# blueprints/employees.py
# -*- coding: utf-8 -*-
"""Manager pages for employee accounts."""
from datetime import date

from flask import Blueprint, flash, redirect, request, session, url_for

from errors import ValidationError
from extensions import db
from models import ROLES, Profile
from sequencing import RequestSequencer, form_op
from staff import (bulk_update_employees, create_employee, list_profiles,
                   remove_employee, update_employee)

from . import page, selected_ids
from .auth import current_profile, require

emp_bp = Blueprint("emp", __name__, url_prefix="/employees")

LIST = """{% extends "layout.html" %}{% block content %}
<h2>Employees</h2>
<form method="get">
  <input name="q" value="{{ q }}" placeholder="Search name or email">
  <button>Search</button>
  <a href="{{ url_for('emp.add_employee') }}">Add employee</a>
</form>
<form method="post" action="{{ url_for('emp.bulk_edit') }}">
<table>
  <tr><th></th><th>Name</th><th>Email</th><th>Role</th><th>Hourly wage</th><th>Status</th><th></th></tr>
  {% for e in employees %}
  <tr class="{{ '' if e.is_active else 'muted' }}">
    <td>{% if e.is_active %}<input type="checkbox" name="ids" value="{{ e.id }}">{% endif %}</td>
    <td>{{ e.full_name }}</td>
    <td>{{ e.email }}</td>
    <td>
      <select name="role_{{ e.id }}">
        {% for r in roles %}<option value="{{ r }}" {{ 'selected' if r == e.role }}>{{ r }}</option>{% endfor %}
      </select>
    </td>
    <td><input name="wage_{{ e.id }}" value="{{ '%.2f'|format(e.hourly_wage) }}" size="7"></td>
    <td>{{ 'active' if e.is_active else 'removed' }}</td>
    <td>
      {% if e.is_active %}
      <a href="{{ url_for('emp.edit_employee', eid=e.id) }}">Edit</a>
      <button formaction="{{ url_for('emp.delete_employee', eid=e.id) }}"
              onclick="return confirm('Remove {{ e.full_name }}? Their future shifts will be deleted.')">Remove</button>
      {% endif %}
    </td>
  </tr>
  {% else %}
  <tr><td colspan="7" class="muted">No employees</td></tr>
  {% endfor %}
</table>
<button>Save selected</button>
</form>
{% endblock %}"""

FORM = """{% extends "layout.html" %}{% block content %}
<h2>{{ 'Edit ' ~ emp.full_name if emp else 'Add employee' }}</h2>
<form method="post">
  {% if seq %}<input type="hidden" name="seq" value="{{ seq }}">{% endif %}
  Full name: <input name="full_name" value="{{ emp.full_name if emp else '' }}" required><br>
  Email: <input type="email" name="email" value="{{ emp.email if emp else '' }}" required><br>
  Role: <select name="role">
    {% for r in roles %}<option value="{{ r }}" {{ 'selected' if emp and r == emp.role }}>{{ r }}</option>{% endfor %}
  </select><br>
  Hourly wage: <input name="hourly_wage" value="{{ '%.2f'|format(emp.hourly_wage) if emp else '' }}" required><br>
  Password: <input type="password" name="password" {{ '' if emp else 'required' }}
                   placeholder="{{ 'leave blank to keep' if emp else 'at least ' ~ config.MIN_PASSWORD_LENGTH ~ ' characters' }}"><br>
  <button type="submit">Save</button>
  <a href="{{ url_for('emp.list_employees') }}">Back</a>
</form>
{% endblock %}"""


@emp_bp.route("/")
@require("manager")
def list_employees():
    q = request.args.get("q", "")
    return page(LIST, title="Employees", employees=list_profiles(q), q=q,
                roles=ROLES)


@emp_bp.route("/add", methods=["GET", "POST"])
@require("manager")
def add_employee():
    if request.method == "POST":
        try:
            prof = create_employee(current_profile(), request.form)
        except ValidationError as e:
            flash(e.description, "error")
        else:
            flash(f"Employee {prof.full_name} created", "success")
            return redirect(url_for("emp.list_employees"))
    return page(FORM, title="Add employee", emp=None, seq=None, roles=ROLES)


@emp_bp.route("/edit/<int:eid>", methods=["GET", "POST"])
@require("manager")
def edit_employee(eid):
    emp = db.get_or_404(Profile, eid)
    seq = RequestSequencer(session)
    op = form_op("employee", eid)
    if request.method == "POST":
        if not seq.is_current(op, request.form.get("seq")):
            flash("This form is out of date. Reload the page and try again.", "warn")
            return redirect(url_for("emp.edit_employee", eid=eid))
        try:
            update_employee(current_profile(), {**request.form.to_dict(), "user_id": eid})
        except ValidationError as e:
            flash(e.description, "error")
        else:
            seq.issue(op)
            flash("Employee updated", "success")
            return redirect(url_for("emp.list_employees"))
    return page(FORM, title="Edit employee", emp=emp, seq=seq.issue(op),
                roles=ROLES)


@emp_bp.route("/delete/<int:eid>", methods=["POST"])
@require("manager")
def delete_employee(eid):
    removed = remove_employee(current_profile(), eid, date.today())
    flash(f"Employee removed, {removed} upcoming shift(s) deleted", "success")
    return redirect(url_for("emp.list_employees"))


@emp_bp.route("/bulk", methods=["POST"])
@require("manager")
def bulk_edit():
    ids = selected_ids(request.form)
    edits = {i: {"role": request.form.get(f"role_{i}"),
                 "hourly_wage": request.form.get(f"wage_{i}")} for i in ids}
    try:
        result = bulk_update_employees(current_profile(), edits)
    except ValidationError as e:
        flash(e.description, "error")
    else:
        flash(result.message("update", "employee"), "warn" if result.failed else "success")
    return redirect(url_for("emp.list_employees"))
