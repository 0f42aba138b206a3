"""
Shared layout, CSS and small view helpers
"""
from decimal import Decimal

from flask import render_template_string

# shared CSS
CSS = """<style>
body{font-family:Arial,"Noto Sans",sans-serif;margin:0;background:#faf7f5;color:#222}
nav{background:#c0392b;padding:10px 16px}
nav a{color:#fff;margin-right:14px;text-decoration:none;font-weight:bold}
main{max-width:1100px;margin:0 auto;padding:20px}
table{border-collapse:collapse;width:100%;margin:10px 0}
th,td{border:1px solid #ccc;padding:6px 10px;text-align:left;vertical-align:top}
th{background:#f0e6e3}
input,select,textarea,button{font-size:15px;margin:4px;padding:6px 10px}
button{cursor:pointer}
.flash{padding:10px 14px;margin:8px 0;border-radius:6px}
.success{color:#1e7b34;background:#e3f6e8}
.warn{color:#8a5a00;background:#fff4d6}
.error{color:#9a1c1c;background:#ffeef0}
.open{color:#c0392b;font-weight:bold}
.muted{color:#777}
.bar{height:8px;background:#eee;border-radius:4px}
.bar>div{height:8px;background:#c0392b;border-radius:4px}
.grid td{height:80px;width:14%}
</style>"""

# Every page extends this; registered on the app's Jinja loader as "layout.html"
LAYOUT = """<!doctype html>
<html><head><meta charset="utf-8">
<title>{{ title or config.STORE_NAME }}</title>""" + CSS + """</head>
<body>
<nav>
  <a href="{{ url_for('dashboard.index') }}">Checklists</a>
  {% if g.profile %}
    <a href="{{ url_for('schedule.calendar') }}">Schedule</a>
    <a href="{{ url_for('announcements.index') }}">Announcements</a>
    <a href="{{ url_for('complaints.index') }}">Complaints</a>
    {% if g.profile.is_manager %}
      <a href="{{ url_for('emp.list_employees') }}">Employees</a>
      <a href="{{ url_for('payroll.report') }}">Payroll</a>
    {% else %}
      <a href="{{ url_for('payroll.earnings') }}">My earnings</a>
    {% endif %}
    <a href="{{ url_for('auth.logout') }}">Log out ({{ g.profile.full_name }})</a>
  {% else %}
    <a href="{{ url_for('auth.login') }}">Log in</a>
  {% endif %}
</nav>
<main>
{% with msgs = get_flashed_messages(with_categories=true) %}
  {% for cat, msg in msgs %}<div class="flash {{ cat }}" data-dismiss>{{ msg }}</div>{% endfor %}
{% endwith %}
{% block content %}{% endblock %}
</main>
<script>
setTimeout(function(){
  document.querySelectorAll('[data-dismiss]').forEach(function(e){ e.remove(); });
}, {{ config.FLASH_DISMISS_MS }});
</script>
</body></html>"""

ERROR_PAGE = """{% extends "layout.html" %}{% block content %}
<h2>{{ code }}</h2>
<p class="error flash">{{ message }}</p>
<p><a href="{{ back or url_for('dashboard.index') }}">Back</a></p>
{% endblock %}"""


def page(template, **ctx):
    return render_template_string(template, **ctx)


def fmt_money(value):
    return f"{Decimal(value or 0):,.2f}"


def fmt_hours(value):
    return f"{float(value or 0):.2f}"


def selected_ids(form, name="ids"):
    return [x for x in form.getlist(name) if x]
