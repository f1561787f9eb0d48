"""
Pool administration blueprint.

Admin-only routes. Authorization is enforced by the engine: the calling
account must be the pool admin, otherwise the request fails with 403.
"""

from flask import Blueprint, g, jsonify, request

from .state import get_engine, save_state
from .utils import require_api_key, require_caller, validate_json_schema

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("/interest-rate", methods=["POST"])
@require_api_key
@require_caller
def set_interest_rate():
    """
    Change the annual interest rate.

    Request body:
    {
        "rate": 12    // integer percent, 5 to 25
    }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(data, required_fields={"rate": int})
    if not is_valid:
        return jsonify({"error": error}), 400

    result = get_engine().set_interest_rate(g.caller, data["rate"])
    save_state()
    return jsonify(result)


@admin_bp.route("/claim-cooldown", methods=["POST"])
@require_api_key
@require_caller
def set_claim_cooldown():
    """
    Change the claim cooldown.

    Request body:
    {
        "seconds": 600
    }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(data, required_fields={"seconds": int})
    if not is_valid:
        return jsonify({"error": error}), 400

    result = get_engine().set_claim_cooldown(g.caller, data["seconds"])
    save_state()
    return jsonify(result)


@admin_bp.route("/max-stake", methods=["POST"])
@require_api_key
@require_caller
def set_max_stake():
    """
    Change the per-account stake cap.

    Request body:
    {
        "amount": 1000000
    }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(data, required_fields={"amount": int})
    if not is_valid:
        return jsonify({"error": error}), 400

    result = get_engine().set_max_stake(g.caller, data["amount"])
    save_state()
    return jsonify(result)


@admin_bp.route("/emergency-withdraw", methods=["POST"])
@require_api_key
@require_caller
def emergency_withdraw():
    """
    Drain the whole pool balance to the admin.

    Break-glass only: account stakes and rewards stay recorded but can no
    longer be paid out.
    """
    result = get_engine().emergency_withdraw(g.caller)
    save_state()
    return jsonify(result)
