# models.py
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from errors import BackendError
from extensions import db

logger = logging.getLogger(__name__)

ROLES = ("employee", "manager")
SHIFT_ROLES = ("kitchen", "delivery", "cashier", "manager")
ANNOUNCEMENT_CATEGORIES = ("general", "hours", "emergency", "rules")
PRIORITIES = ("normal", "high", "urgent")
COMPLAINT_CATEGORIES = ("equipment", "supplies", "pos", "other")
URGENCIES = ("low", "medium", "high", "critical")
COMPLAINT_STATUSES = ("open", "in_progress", "resolved")


def _now():
    return datetime.utcnow()


class Profile(db.Model):
    __tablename__ = 'profiles'
    id            = db.Column(db.Integer, primary_key=True)
    email         = db.Column(db.String(120), nullable=False, unique=True)
    full_name     = db.Column(db.String(80), nullable=False)
    role          = db.Column(db.String(10), nullable=False, default="employee")
    hourly_wage   = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))
    # soft delete: rows stay so old shifts keep their employee reference
    is_active     = db.Column(db.Boolean, nullable=False, default=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at    = db.Column(db.DateTime, nullable=False, default=_now)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_manager(self):
        return self.role == "manager"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "hourly_wage": float(self.hourly_wage or 0),
            "is_active": self.is_active,
        }


class Schedule(db.Model):
    __tablename__ = 'schedules'
    id          = db.Column(db.Integer, primary_key=True)
    # NULL = open shift, claimable by any active employee
    employee_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=True)
    date        = db.Column(db.String(10), nullable=False)   # YYYY-MM-DD
    start_time  = db.Column(db.String(5), nullable=False)    # HH:MM
    end_time    = db.Column(db.String(5), nullable=False)    # HH:MM
    shift_role  = db.Column(db.String(10), nullable=False, default="kitchen")
    notes       = db.Column(db.String(500), nullable=False, default="")
    created_by  = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    created_at  = db.Column(db.DateTime, nullable=False, default=_now)

    employee = db.relationship("Profile", foreign_keys=[employee_id])

    __table_args__ = (
        db.Index('ix_schedules_date', 'date'),
    )

    @property
    def is_open(self):
        return self.employee_id is None

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "shift_role": self.shift_role,
            "notes": self.notes,
        }


class Announcement(db.Model):
    __tablename__ = 'announcements'
    id         = db.Column(db.Integer, primary_key=True)
    title      = db.Column(db.String(120), nullable=False)
    content    = db.Column(db.Text, nullable=False)
    category   = db.Column(db.String(10), nullable=False, default="general")
    priority   = db.Column(db.String(10), nullable=False, default="normal")
    created_by = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=_now, onupdate=_now)


class Complaint(db.Model):
    __tablename__ = 'complaints'
    id           = db.Column(db.Integer, primary_key=True)
    title        = db.Column(db.String(120), nullable=False)
    description  = db.Column(db.Text, nullable=False)
    category     = db.Column(db.String(10), nullable=False)
    urgency      = db.Column(db.String(10), nullable=False)
    status       = db.Column(db.String(12), nullable=False, default="open")
    submitted_by = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    resolved_by  = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=True)
    created_at   = db.Column(db.DateTime, nullable=False, default=_now)
    updated_at   = db.Column(db.DateTime, nullable=False, default=_now, onupdate=_now)

    submitter = db.relationship("Profile", foreign_keys=[submitted_by])


class StoreSettings(db.Model):
    __tablename__ = 'store_settings'
    id                  = db.Column(db.Integer, primary_key=True)
    daily_payroll_limit = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("500.00"))
    updated_by          = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=True)
    updated_at          = db.Column(db.DateTime, nullable=False, default=_now, onupdate=_now)
    created_at          = db.Column(db.DateTime, nullable=False, default=_now)


def commit():
    """Commit the session; a database failure rolls back and surfaces as BackendError."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("commit failed")
        raise BackendError(str(getattr(e, "orig", None) or e)) from e


def names_by_id():
    return {pid: name for pid, name in db.session.query(Profile.id, Profile.full_name)}


class BatchResult:
    """Outcome of a best-effort batch: every item is tried, failures are counted."""

    def __init__(self, total):
        self.total = total
        self.failed = 0
        self.errors = []          # [(key, reason)]

    @property
    def succeeded(self):
        return self.total - self.failed

    def fail(self, key, reason):
        self.failed += 1
        self.errors.append((key, reason))

    def attempt(self, key, op):
        """Run one sub-operation in its own transaction; a backend failure is counted."""
        try:
            op()
        except (BackendError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.warning("batch item %s failed: %s", key, e)
            self.fail(key, getattr(e, "description", None) or str(e))

    def message(self, verb, noun):
        if self.failed:
            return f"Failed to {verb} {self.failed} of {self.total} {noun}(s)"
        return f"Successfully {verb}d {self.total} {noun}(s)"

    def to_dict(self):
        return {"total": self.total, "failed": self.failed,
                "errors": [{"id": k, "error": r} for k, r in self.errors]}
