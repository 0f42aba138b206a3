"""
JSON endpoints for account management and open-shift claims.

Bodies are `{"success": true, ...}` on success; failures come back through
the app's PortalError handler as `{"error": "..."}` with the matching status.
"""
import logging
from datetime import date

from flask import Blueprint, jsonify, request

from errors import AuthenticationError, ValidationError
from shifts import claim_open_shift
from staff import (authenticate, create_employee, issue_token, remove_employee,
                   update_employee)

from .auth import bearer_profile

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@api_bp.route("/auth/token", methods=["POST"])
def token():
    data = _body()
    prof = authenticate(data.get("email"), data.get("password"))
    if prof is None:
        raise AuthenticationError("Invalid email or password")
    return jsonify(success=True, token=issue_token(prof), user=prof.to_dict())


@api_bp.route("/create-employee", methods=["POST"])
def api_create_employee():
    caller = bearer_profile()
    prof = create_employee(caller, _body())
    return jsonify(success=True, user=prof.to_dict()), 201


@api_bp.route("/update-employee", methods=["POST"])
def api_update_employee():
    caller = bearer_profile()
    prof = update_employee(caller, _body())
    return jsonify(success=True, user=prof.to_dict())


@api_bp.route("/remove-employee", methods=["POST"])
def api_remove_employee():
    caller = bearer_profile()
    data = _body()
    if data.get("employee_id") in (None, ""):
        raise ValidationError("Missing employee_id")
    removed = remove_employee(caller, data["employee_id"], date.today())
    return jsonify(success=True, message="Employee deactivated successfully",
                   deleted_shifts=removed)


@api_bp.route("/shifts/<int:shift_id>/claim", methods=["POST"])
def api_claim_shift(shift_id):
    shift = claim_open_shift(shift_id, bearer_profile())
    return jsonify(success=True, shift=shift.to_dict())
