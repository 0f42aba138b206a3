"""
Boundary parsing for form and JSON input.

Each helper either returns a clean value or raises ValidationError, so the
services never see a half-valid record.
"""
import re
from datetime import date
from decimal import Decimal, InvalidOperation

from flask import current_app

from calendar_grid import iso_day
from errors import ValidationError

TIME_RE = re.compile(r"\d{1,2}:\d{2}(:\d{2})?")
EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
# largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def _str(value):
    return "" if value is None else str(value).strip()


def text(data, name, label=None, *, required=True, max_len=None):
    value = _str(data.get(name))
    if required and not value:
        raise ValidationError(f"{label or name} is required")
    if max_len and len(value) > max_len:
        raise ValidationError(f"{label or name} is too long (max {max_len})")
    return value


def choice(value, allowed, label):
    if value not in allowed:
        raise ValidationError(f"{label} must be one of: {', '.join(allowed)}")
    return value


def hhmm(value, label="Time"):
    """Accepts H:MM, HH:MM or HH:MM:SS; returns HH:MM."""
    value = _str(value)
    if not TIME_RE.fullmatch(value):
        raise ValidationError(f"{label} must be HH:MM")
    h, m = (int(x) for x in value.split(":")[:2])
    if h > 23 or m > 59:
        raise ValidationError(f"{label} must be HH:MM")
    return f"{h:02d}:{m:02d}"


def day(value, label="Date"):
    try:
        return iso_day(date.fromisoformat(_str(value)))
    except ValueError:
        raise ValidationError(f"{label} must be YYYY-MM-DD") from None


def amount(value, label="Amount"):
    """Non-negative decimal with two places (wages, payroll limit)."""
    try:
        num = Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ValidationError(f"{label} must be a number") from None
    if not num.is_finite() or num < 0:
        raise ValidationError(f"{label} must be a non-negative number")
    if num > MAX_AMOUNT:
        raise ValidationError(f"{label} must be at most {MAX_AMOUNT}")
    return num.quantize(Decimal("0.01"))


def email(value):
    value = _str(value).lower()
    if not EMAIL_RE.fullmatch(value):
        raise ValidationError("A valid email address is required")
    return value


def password(value):
    min_len = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"Password must be at least {min_len} characters")
    return value


def int_id(value, label="id"):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer") from None


def optional_id(value, label="id"):
    if value in (None, "", "open", "null"):
        return None
    return int_id(value, label)
