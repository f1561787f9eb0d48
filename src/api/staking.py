"""
Staking operations blueprint.

Account-facing routes:
- Stake, unstake and claim for the calling account
- Account, referral and pool views
- Event log
"""

from flask import Blueprint, g, jsonify, request

from .state import get_engine, save_state
from .utils import (
    MAX_ACCOUNT_ID_LENGTH,
    bounded_limit,
    require_api_key,
    require_caller,
    validate_json_schema,
)

staking_bp = Blueprint("staking", __name__)


@staking_bp.route("/stake", methods=["POST"])
@require_api_key
@require_caller
def stake():
    """
    Stake tokens for the calling account.

    Request body:
    {
        "amount": 1000,            // positive integer, smallest asset unit
        "referrer": "0xabc..."     // optional, only the first referrer sticks
    }

    Returns:
        Stake result with the new staked amount
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(
        data,
        required_fields={"amount": int},
        optional_fields={"referrer": str},
        max_lengths={"referrer": MAX_ACCOUNT_ID_LENGTH},
    )
    if not is_valid:
        return jsonify({"error": error}), 400

    result = get_engine().stake(g.caller, data["amount"], referrer=data.get("referrer"))
    save_state()
    return jsonify(result), 201


@staking_bp.route("/unstake", methods=["POST"])
@require_api_key
@require_caller
def unstake():
    """
    Withdraw staked principal.

    Request body:
    {
        "amount": 500
    }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(data, required_fields={"amount": int})
    if not is_valid:
        return jsonify({"error": error}), 400

    result = get_engine().unstake(g.caller, data["amount"])
    save_state()
    return jsonify(result)


@staking_bp.route("/claim", methods=["POST"])
@require_api_key
@require_caller
def claim():
    """Claim accrued rewards for the calling account."""
    result = get_engine().claim(g.caller)
    save_state()
    return jsonify(result)


@staking_bp.route("/accounts/<account>", methods=["GET"])
def get_account(account):
    """
    Get an account's staking record.

    Includes what a claim would pay right now, before and after the cap.
    """
    return jsonify(get_engine().get_account(account))


@staking_bp.route("/referrals/<referrer>", methods=["GET"])
def get_referral_rewards(referrer):
    """Get the referral credit accumulated by a referrer."""
    engine = get_engine()
    return jsonify({
        "referrer": referrer,
        "referral_rewards": engine.get_referral_rewards(referrer),
        "referees": len(engine.referrals.referees_of(referrer)),
    })


@staking_bp.route("/pool", methods=["GET"])
def get_pool():
    """Get pool policy and aggregate totals."""
    return jsonify(get_engine().get_pool_stats())


@staking_bp.route("/events", methods=["GET"])
def get_events():
    """
    Get recent staking events.

    Query params:
        limit: Maximum events to return (default 100, max 1000)
        type: Optional event type filter (e.g. "Claimed")
    """
    limit = bounded_limit(request.args.get("limit"))
    event_type = request.args.get("type")
    events = get_engine().get_events(limit=limit, event_type=event_type)
    return jsonify({"count": len(events), "events": events})
