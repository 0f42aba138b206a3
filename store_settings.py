import logging
from decimal import Decimal

from flask import current_app

import validators as v
from extensions import db
from models import StoreSettings, commit
from staff import ensure_manager

logger = logging.getLogger(__name__)


def get_settings():
    """The store_settings singleton, created with the configured default on first use."""
    row = StoreSettings.query.order_by(StoreSettings.id).first()
    if row is None:
        row = StoreSettings(daily_payroll_limit=Decimal(current_app.config["DEFAULT_PAYROLL_LIMIT"]))
        db.session.add(row)
        commit()
    return row


def set_payroll_limit(caller, value):
    ensure_manager(caller, "change the payroll limit")
    limit = v.amount(value, "Daily payroll limit")
    row = get_settings()
    row.daily_payroll_limit = limit
    row.updated_by = caller.id
    commit()
    logger.info("daily payroll limit set to %s by %s", limit, caller.id)
    return row
