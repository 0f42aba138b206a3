"""Payroll calculator (managers) and the employee's own earnings page."""
from datetime import date

from flask import Blueprint, flash, redirect, request, session, url_for

import calendar_grid as cg
from models import names_by_id
from sequencing import RequestSequencer
from shifts import shifts_between
from staff import wage_table
from store_settings import get_settings, set_payroll_limit
from wages import PAYROLL_MODES, aggregate_payroll, compare_budget, payroll_range, shift_hours

from . import fmt_hours, fmt_money, page
from .auth import current_profile, require

payroll_bp = Blueprint("payroll", __name__, url_prefix="/payroll")

LIMIT_OP = "payroll-limit"

REPORT = """{% extends "layout.html" %}{% block content %}
<h2>Payroll calculator</h2>
<form method="get">
  {% for m in modes %}
    <label><input type="radio" name="mode" value="{{ m }}" {{ 'checked' if m == mode }}>{{ m|title }}</label>
  {% endfor %}
  <input type="date" name="ref" value="{{ iso(ref) }}">
  <button>Show</button>
  <a href="{{ url_for('export.payroll', mode=mode, ref=iso(ref)) }}">Export (.xlsx)</a>
</form>
<p>{{ iso(start) }}{% if end != start %} - {{ iso(end) }}{% endif %}</p>

<form method="post" action="{{ url_for('payroll.update_limit') }}">
  <input type="hidden" name="seq" value="{{ seq }}">
  Daily payroll limit: <input name="limit" value="{{ '%.2f'|format(settings.daily_payroll_limit) }}" size="8">
  <button>Save limit</button>
</form>

{% if budget %}
  <div class="flash {{ 'error' if budget.state == 'over' else 'success' if budget.state == 'within' else 'warn' }}">
    Total {{ money(summary.total_pay) }}: {{ budget.message }}
    {% if budget.limit %}<div class="bar"><div style="width: {{ budget.used_percent|round(0) }}%"></div></div>{% endif %}
  </div>
{% endif %}

<table>
  <tr><th>Employee</th><th>Hours</th><th>Hourly wage</th><th>Pay</th></tr>
  {% for line in summary.lines.values() %}
  <tr>
    <td>{{ names.get(line.employee_id, '?') }}</td>
    <td>{{ hours(line.hours) }}</td>
    <td>{{ money(line.wage) }}</td>
    <td>{{ money(line.pay) }}</td>
  </tr>
  {% else %}
  <tr><td colspan="4" class="muted">No scheduled shifts in this period</td></tr>
  {% endfor %}
  <tr><th>Total</th><th>{{ hours(summary.total_hours) }}</th><th></th><th>{{ money(summary.total_pay) }}</th></tr>
</table>
{% endblock %}"""

EARNINGS = """{% extends "layout.html" %}{% block content %}
<h2>My earnings: {{ ref.strftime('%B %Y') }}</h2>
<p>
  <a href="{{ url_for('payroll.earnings', ref=iso(prev_ref)) }}">&laquo; Previous</a>
  <a href="{{ url_for('payroll.earnings', ref=iso(next_ref)) }}">Next &raquo;</a>
</p>
<p>Hourly wage {{ money(g.profile.hourly_wage) }} | {{ hours(summary.total_hours) }} h | <strong>{{ money(summary.total_pay) }}</strong></p>
<table>
  <tr><th>Date</th><th>Time</th><th>Hours</th><th>Role</th></tr>
  {% for s in shifts %}
  <tr><td>{{ s.date }}</td><td>{{ s.start_time }}-{{ s.end_time }}</td>
      <td>{{ hours(length(s.start_time, s.end_time)) }}</td><td>{{ s.shift_role }}</td></tr>
  {% else %}
  <tr><td colspan="4" class="muted">No shifts this month</td></tr>
  {% endfor %}
</table>
{% endblock %}"""


def payroll_for(mode, ref):
    """(start, end, summary) for one payroll view."""
    start, end = payroll_range(mode, ref)
    summary = aggregate_payroll(shifts_between(start, end), wage_table())
    return start, end, summary


def _ref():
    try:
        return cg.parse_day(request.args.get("ref", ""))
    except ValueError:
        return date.today()


@payroll_bp.route("/")
@require("manager")
def report():
    mode = request.args.get("mode", "daily")
    if mode not in PAYROLL_MODES:
        mode = "daily"
    ref = _ref()
    start, end, summary = payroll_for(mode, ref)
    settings = get_settings()
    # the limit is per day, so only the daily view is compared against it
    budget = compare_budget(summary.total_pay, settings.daily_payroll_limit) if mode == "daily" else None
    return page(REPORT, title="Payroll", mode=mode, modes=PAYROLL_MODES, ref=ref,
                start=start, end=end, summary=summary, budget=budget, settings=settings,
                seq=RequestSequencer(session).issue(LIMIT_OP), names=names_by_id(),
                iso=cg.iso_day, money=fmt_money, hours=fmt_hours)


@payroll_bp.route("/limit", methods=["POST"])
@require("manager")
def update_limit():
    seq = RequestSequencer(session)
    if not seq.is_current(LIMIT_OP, request.form.get("seq")):
        flash("This form is out of date. Reload the page and try again.", "warn")
    else:
        row = set_payroll_limit(current_profile(), request.form.get("limit"))
        seq.issue(LIMIT_OP)
        flash(f"Daily payroll limit set to {fmt_money(row.daily_payroll_limit)}", "success")
    return redirect(request.referrer or url_for("payroll.report"))


@payroll_bp.route("/me")
@require()
def earnings():
    prof = current_profile()
    ref = _ref()
    start, end = cg.month_bounds(ref)
    rows = shifts_between(start, end, employee_id=prof.id)
    summary = aggregate_payroll(rows, {prof.id: prof.hourly_wage})
    return page(EARNINGS, title="My earnings", ref=ref, shifts=rows, summary=summary,
                prev_ref=cg.shift_ref(ref, "month", -1), next_ref=cg.shift_ref(ref, "month", 1),
                length=shift_hours, iso=cg.iso_day, money=fmt_money, hours=fmt_hours)
