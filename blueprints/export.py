# blueprints/export.py
# -*- coding: utf-8 -*-
"""
Read-only exports:

1) /export/calendar.ics           the signed-in user's shifts as an iCalendar feed
2) /export/grid?ym=YYYY-MM&months=N printable month grid, one landscape sheet per month
3) /export/payroll?mode=&ref=      payroll table of one daily / weekly / monthly view

Workbooks are written with pandas' ExcelWriter on the xlsxwriter engine.
"""
import io
import re
from datetime import date, datetime, timedelta

import pandas as pd
from flask import Blueprint, Response, current_app, request, send_file

import calendar_grid as cg
from errors import ValidationError
from models import names_by_id
from shifts import employee_shifts, shifts_between
from store_settings import get_settings
from wages import PAYROLL_MODES, compare_budget, to_minutes

from .auth import current_profile, require
from .payroll import payroll_for

exp_bp = Blueprint("export", __name__, url_prefix="/export")

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ROLE_NAMES = {"kitchen": "Kitchen", "delivery": "Delivery", "cashier": "Cashier", "manager": "Manager"}
MAX_GRID_MONTHS = 12


# ────────────────────────── iCalendar ──────────────────────────
def _ics_stamp(d, hhmm):
    return f"{d:%Y%m%d}T{hhmm[:2]}{hhmm[3:5]}00"


def ics_escape(text):
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return (text.replace("\\", "\\\\").replace(";", "\\;")
                .replace(",", "\\,").replace("\n", "\\n"))


def ics_fold(line, limit=75):
    """Split a content line into CRLF + space continuations of at most `limit` octets."""
    parts, chunk, size = [], "", 0
    for ch in line:
        n = len(ch.encode("utf-8"))
        if size + n > limit:
            parts.append(chunk)
            chunk, size = " ", 1
        chunk += ch
        size += n
    parts.append(chunk)
    return "\r\n".join(parts)


def build_ics(shifts, stamp, domain="paprika.nl", store_name="Paprika"):
    """
    VCALENDAR text with one VEVENT per shift, CRLF line endings, long lines folded.

    A shift whose end is at or before its start ends on the next day.
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{store_name}//Schedule//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{store_name} Schedule",
    ]
    for s in shifts:
        day = cg.parse_day(s.date)
        end_day = day + timedelta(days=1) if to_minutes(s.end_time) <= to_minutes(s.start_time) else day
        role = ROLE_NAMES.get(s.shift_role, s.shift_role)
        desc = f"Role: {role}"
        if s.notes:
            desc += f"\\nNotes: {ics_escape(s.notes)}"
        lines += [
            "BEGIN:VEVENT",
            f"UID:{s.id}@{domain}",
            f"DTSTAMP:{stamp:%Y%m%dT%H%M%S}",
            f"DTSTART:{_ics_stamp(day, s.start_time)}",
            f"DTEND:{_ics_stamp(end_day, s.end_time)}",
            f"SUMMARY:Work: {role}",
            f"DESCRIPTION:{desc}",
            f"LOCATION:{store_name}",
            "STATUS:CONFIRMED",
            "END:VEVENT",
        ]
    lines.append("END:VCALENDAR")
    return "\r\n".join(ics_fold(l) for l in lines) + "\r\n"


@exp_bp.route("/calendar.ics")
@require()
def calendar_ics():
    prof = current_profile()
    cfg = current_app.config
    body = build_ics(employee_shifts(prof.id), datetime.utcnow(),
                     cfg["ICS_DOMAIN"], cfg["STORE_NAME"])
    return Response(body, mimetype="text/calendar",
                    headers={"Content-Disposition": "attachment; filename=schedule.ics"})


# ────────────────────────── printable month grid ──────────────────────────
def grid_cell_text(day, shifts, names):
    if day is None:
        return ""
    todays = cg.shifts_on(shifts, day)
    if not todays:
        return f"{day.day}\nNo shifts"
    entries = [f"{'OPEN' if s.employee_id is None else names.get(s.employee_id, '?')} "
               f"{s.start_time}-{s.end_time}"
               for s in sorted(todays, key=lambda s: s.start_time)]
    return "\n".join([str(day.day)] + entries)


def build_month_grid(months, shifts, names):
    """Workbook bytes: one landscape, Sunday-first calendar sheet per month."""
    buf = io.BytesIO()
    writer = pd.ExcelWriter(buf, engine="xlsxwriter")
    book = writer.book

    title_fmt = book.add_format({'bold': True, 'font_size': 16, 'align': 'center'})
    hdr_fmt   = book.add_format({'bold': True, 'border': 1, 'align': 'center', 'bg_color': '#F0E6E3'})
    day_fmt   = book.add_format({'border': 1, 'valign': 'top', 'text_wrap': True, 'font_size': 9})
    blank_fmt = book.add_format({'border': 1, 'bg_color': '#EEEEEE'})

    for first in months:
        ws = book.add_worksheet(first.strftime("%Y-%m"))
        ws.set_landscape()
        ws.set_paper(9)              # A4
        ws.fit_to_pages(1, 1)
        ws.set_column(0, 6, 22)
        ws.merge_range(0, 0, 0, 6, first.strftime("%B %Y"), title_fmt)
        ws.write_row(1, 0, cg.WEEKDAY_NAMES, hdr_fmt)

        for r, week in enumerate(cg.weeks(cg.month_cells(first)), start=2):
            ws.set_row(r, 90)
            for c, day in enumerate(week):
                ws.write(r, c, grid_cell_text(day, shifts, names),
                         day_fmt if day else blank_fmt)

    writer.close()
    buf.seek(0)
    return buf.getvalue()


def _month_arg(ym):
    if ym and re.fullmatch(r"\d{4}-\d{2}", ym):
        try:
            return cg.parse_month(ym)
        except ValueError:
            pass
    if ym:
        raise ValidationError("ym must be YYYY-MM")
    return date.today().replace(day=1)


@exp_bp.route("/grid")
@require("manager")
def month_grid():
    first = _month_arg(request.args.get("ym"))
    try:
        n = int(request.args.get("months", 1))
    except ValueError:
        raise ValidationError("months must be a number") from None
    if not 1 <= n <= MAX_GRID_MONTHS:
        raise ValidationError(f"months must be between 1 and {MAX_GRID_MONTHS}")

    months = [cg.shift_ref(first, "month", i) for i in range(n)]
    _, last = cg.month_bounds(months[-1])
    data = build_month_grid(months, shifts_between(first, last), names_by_id())
    return send_file(io.BytesIO(data), as_attachment=True,
                     download_name=f"schedule_{first:%Y-%m}.xlsx", mimetype=XLSX)


# ────────────────────────── payroll table ──────────────────────────
def build_payroll_workbook(summary, names, start, end, budget=None):
    rows = [{
        "Employee": names.get(line.employee_id, "?"),
        "Hours": round(line.hours, 2),
        "Hourly wage": float(line.wage),
        "Pay": float(line.pay),
    } for line in summary.lines.values()]
    df = pd.DataFrame(rows, columns=["Employee", "Hours", "Hourly wage", "Pay"])

    buf = io.BytesIO()
    writer = pd.ExcelWriter(buf, engine="xlsxwriter")
    df.to_excel(writer, sheet_name="Payroll", index=False, startrow=2)
    book, ws = writer.book, writer.sheets["Payroll"]

    bold = book.add_format({'bold': True})
    ws.write(0, 0, f"Payroll {cg.iso_day(start)} - {cg.iso_day(end)}", bold)
    total_row = 3 + len(df)
    ws.write_row(total_row, 0, ["Total", round(summary.total_hours, 2), "", float(summary.total_pay)], bold)
    if budget is not None:
        ws.write(total_row + 1, 0, f"Budget: {budget.message}")
    ws.set_column(0, 0, 26)
    ws.set_column(1, 3, 12)

    writer.close()
    buf.seek(0)
    return buf.getvalue()


@exp_bp.route("/payroll")
@require("manager")
def payroll():
    mode = request.args.get("mode", "daily")
    if mode not in PAYROLL_MODES:
        raise ValidationError(f"mode must be one of: {', '.join(PAYROLL_MODES)}")
    try:
        ref = cg.parse_day(request.args.get("ref") or cg.iso_day(date.today()))
    except ValueError:
        raise ValidationError("ref must be YYYY-MM-DD") from None
    start, end, summary = payroll_for(mode, ref)
    budget = (compare_budget(summary.total_pay, get_settings().daily_payroll_limit)
              if mode == "daily" else None)
    data = build_payroll_workbook(summary, names_by_id(), start, end, budget)
    return send_file(io.BytesIO(data), as_attachment=True,
                     download_name=f"payroll_{mode}_{cg.iso_day(ref)}.xlsx", mimetype=XLSX)
