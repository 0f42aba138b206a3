# -*- coding: utf-8 -*-
"""
Calendar grid helpers for the schedule views and the printable export.

Weeks start on Sunday. Every date that is compared, stored or rendered goes
through `iso_day`, so producers and consumers always agree on YYYY-MM-DD.
"""
import calendar
from datetime import date, timedelta

VIEW_MODES = ("week", "month")
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday",
                 "Thursday", "Friday", "Saturday")

_CAL = calendar.Calendar(firstweekday=6)  # 6: Sunday


# ────────────────────────── date strings ──────────────────────────
def iso_day(d: date) -> str:
    """The one date format used everywhere: local calendar date, no timezone."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_day(s: str) -> date:
    return date.fromisoformat(s.strip())


def parse_month(ym: str) -> date:
    """'YYYY-MM' → first day of that month."""
    y, m = map(int, ym.strip().split("-"))
    return date(y, m, 1)


# ────────────────────────── ranges ──────────────────────────
def week_start(ref: date) -> date:
    """Most recent Sunday on or before ref."""
    return ref - timedelta(days=(ref.weekday() + 1) % 7)


def month_bounds(ref: date):
    first = ref.replace(day=1)
    last = first.replace(day=calendar.monthrange(ref.year, ref.month)[1])
    return first, last


def view_range(ref: date, mode: str):
    if mode == "week":
        start = week_start(ref)
        return start, start + timedelta(days=6)
    if mode == "month":
        return month_bounds(ref)
    raise ValueError(f"unknown view mode: {mode!r}")


def shift_ref(ref: date, mode: str, step: int) -> date:
    """Move ±step weeks or months; month moves land on the 1st."""
    if mode == "week":
        return ref + timedelta(days=7 * step)
    y, m = divmod(ref.month - 1 + step, 12)
    return date(ref.year + y, m + 1, 1)


def days_between(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


# ────────────────────────── cells ──────────────────────────
def week_cells(ref: date):
    start = week_start(ref)
    return [start + timedelta(days=i) for i in range(7)]


def month_cells(ref: date):
    """
    Cells of a Sunday-first month grid.

    Days outside the month are None, so a month starting on a Wednesday has
    three leading blanks and the list length is always a multiple of 7.
    """
    return [d if d.month == ref.month else None
            for d in _CAL.itermonthdates(ref.year, ref.month)]


def cells(ref: date, mode: str):
    if mode == "week":
        return week_cells(ref)
    if mode == "month":
        return month_cells(ref)
    raise ValueError(f"unknown view mode: {mode!r}")


def weeks(cell_list):
    return [cell_list[i:i + 7] for i in range(0, len(cell_list), 7)]


# ────────────────────────── bucketing ──────────────────────────
def shifts_on(shifts, day: date):
    """Shifts whose date string equals the day's ISO string."""
    key = iso_day(day)
    return [s for s in shifts if s.date == key]


def bucket_by_day(shifts):
    out = {}
    for s in shifts:
        out.setdefault(s.date, []).append(s)
    return out
