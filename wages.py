"""
Payroll arithmetic: scheduled hours per shift, per-employee totals and the
daily budget check. Pure functions; callers fetch shifts and wages.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Mapping, Optional

from calendar_grid import month_bounds, week_start

CENT = Decimal("0.01")
PAYROLL_MODES = ("daily", "weekly", "monthly")


def to_minutes(hhmm: str) -> int:
    """'HH:MM' (or 'HH:MM:SS') → minutes since midnight."""
    parts = hhmm.strip().split(":")
    h, m = int(parts[0]), int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"invalid time: {hhmm!r}")
    return h * 60 + m


# ────────────────────────── shift length ──────────────────────────
def shift_minutes(start: str, end: str) -> int:
    """
    Minutes between start and end.

    An end at or before the start means the shift crosses midnight:
    22:00-02:00 is 240 minutes, 09:00-09:00 is a full 24 h.
    """
    s, e = to_minutes(start), to_minutes(end)
    if e <= s:
        e += 24 * 60
    return e - s


def shift_hours(start: str, end: str) -> float:
    return shift_minutes(start, end) / 60


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ────────────────────────── aggregation ──────────────────────────
@dataclass
class PayLine:
    employee_id: int
    minutes: int
    wage: Decimal

    @property
    def hours(self) -> float:
        return self.minutes / 60

    @property
    def pay(self) -> Decimal:
        return money(self.wage * self.minutes / 60)


@dataclass
class PayrollSummary:
    lines: Dict[int, PayLine] = field(default_factory=dict)

    @property
    def total_hours(self) -> float:
        return sum(l.minutes for l in self.lines.values()) / 60

    @property
    def total_pay(self) -> Decimal:
        return sum((l.pay for l in self.lines.values()), Decimal("0.00"))


def aggregate_payroll(shifts: Iterable, wages: Mapping[int, Decimal]) -> PayrollSummary:
    """
    Sum scheduled hours per employee and price them at the employee's wage.

    `shifts` are objects (or mappings) with employee_id, start_time, end_time.
    Open shifts and employees missing from `wages` are left out, the same way
    the payroll table only lists known staff.
    """
    summary = PayrollSummary()
    for s in shifts:
        eid = _field(s, "employee_id")
        if eid is None or eid not in wages:
            continue
        line = summary.lines.get(eid)
        if line is None:
            line = summary.lines[eid] = PayLine(eid, 0, Decimal(wages[eid]))
        line.minutes += shift_minutes(_field(s, "start_time"), _field(s, "end_time"))
    return summary


def _field(row, name):
    return row.get(name) if isinstance(row, Mapping) else getattr(row, name)


# ────────────────────────── budget check ──────────────────────────
@dataclass
class BudgetStatus:
    state: str                       # within / over / no_limit
    total: Decimal
    limit: Optional[Decimal]
    remaining: Decimal = Decimal("0.00")
    overage: Decimal = Decimal("0.00")
    percent_over: Decimal = Decimal("0")

    @property
    def message(self) -> str:
        if self.state == "no_limit":
            return "no limit configured"
        if self.state == "over":
            pct = f"{self.percent_over:.1f}".rstrip("0").rstrip(".")
            return f"over by {self.overage:.2f}, {pct}% over"
        return f"within budget, {self.remaining:.2f} remaining"

    @property
    def used_percent(self) -> Decimal:
        """Bar width for the budget gauge, capped at 100."""
        if not self.limit:
            return Decimal("0")
        return min(self.total / self.limit * 100, Decimal("100"))


def compare_budget(total, limit) -> BudgetStatus:
    total = money(total)
    if limit is None or Decimal(limit) <= 0:
        return BudgetStatus("no_limit", total, None)
    limit = money(limit)
    if total > limit:
        return BudgetStatus(
            "over", total, limit,
            overage=total - limit,
            percent_over=((total / limit) - 1) * 100,
        )
    return BudgetStatus("within", total, limit, remaining=limit - total)


# ────────────────────────── date windows ──────────────────────────
def payroll_range(mode: str, ref: date):
    """(start, end) dates covered by the daily / weekly / monthly views."""
    if mode == "daily":
        return ref, ref
    if mode == "weekly":
        start = week_start(ref)
        return start, start + timedelta(days=6)
    if mode == "monthly":
        return month_bounds(ref)
    raise ValueError(f"unknown payroll mode: {mode!r}")
