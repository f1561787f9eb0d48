"""
Shared utilities for the StakePool API.

Authentication, caller resolution and payload validation used by
every blueprint.
"""

import os
import secrets
from functools import wraps
from typing import Any

from flask import g, jsonify, request

# ============================================================
# Security Configuration
# ============================================================

API_KEY = os.getenv("STAKEPOOL_API_KEY", None)
# SECURITY: Default to requiring authentication for production safety
API_KEY_REQUIRED = os.getenv("STAKEPOOL_REQUIRE_AUTH", "true").lower() == "true"

# Header set by the trusted identity layer in front of the service
ACCOUNT_HEADER = "X-Account-ID"

MAX_ACCOUNT_ID_LENGTH = 128
MAX_EVENTS = 1000
DEFAULT_EVENTS_LIMIT = 100


# ============================================================
# Validation Utilities
# ============================================================

def validate_json_schema(
    data: Any,
    required_fields: dict[str, type | tuple],
    optional_fields: dict[str, type | tuple] | None = None,
    max_lengths: dict[str, int] | None = None
) -> tuple[bool, str | None]:
    """
    Validate a JSON payload against a simple schema.

    Booleans are rejected where an integer is expected.

    Args:
        data: The JSON data to validate
        required_fields: Dict mapping field names to expected types
        optional_fields: Dict mapping optional field names to expected types
        max_lengths: Dict mapping field names to maximum string lengths

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    def _type_ok(value: Any, expected: type | tuple) -> bool:
        if isinstance(value, bool) and expected is not bool:
            return False
        return isinstance(value, expected)

    for field_name, expected_type in required_fields.items():
        if field_name not in data:
            return False, f"Missing required field: {field_name}"
        if not _type_ok(data[field_name], expected_type):
            return False, f"Field '{field_name}' has the wrong type"

    for field_name, expected_type in (optional_fields or {}).items():
        if data.get(field_name) is not None and not _type_ok(data[field_name], expected_type):
            return False, f"Field '{field_name}' has the wrong type"

    for field_name, max_len in (max_lengths or {}).items():
        value = data.get(field_name)
        if isinstance(value, str) and len(value) > max_len:
            return False, f"Field '{field_name}' exceeds maximum length of {max_len}"

    return True, None


def bounded_limit(raw: Any, default: int = DEFAULT_EVENTS_LIMIT, maximum: int = MAX_EVENTS) -> int:
    """Clamp a ?limit= query parameter into [1, maximum]."""
    try:
        value = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        value = default
    return max(1, min(value, maximum))


# ============================================================
# Authentication Decorators
# ============================================================

def require_api_key(f):
    """Decorator to require API key authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not API_KEY_REQUIRED:
            return f(*args, **kwargs)

        provided_key = request.headers.get("X-API-Key")

        if not provided_key:
            return jsonify({
                "error": "API key required",
                "hint": "Provide API key in X-API-Key header"
            }), 401

        if not API_KEY:
            return jsonify({
                "error": "Server API key not configured",
                "hint": "Set STAKEPOOL_API_KEY environment variable"
            }), 503

        if not secrets.compare_digest(provided_key, API_KEY):
            return jsonify({"error": "Invalid API key"}), 403

        return f(*args, **kwargs)
    return decorated_function


def require_caller(f):
    """
    Decorator resolving the calling account from the identity header.

    The identifier is trusted as-is; verifying it is the job of the identity
    layer in front of this service. Stores it in ``g.caller``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        caller = (request.headers.get(ACCOUNT_HEADER) or "").strip()
        if not caller:
            return jsonify({
                "error": "Caller identity required",
                "hint": f"Provide the account identifier in the {ACCOUNT_HEADER} header"
            }), 401
        if len(caller) > MAX_ACCOUNT_ID_LENGTH:
            return jsonify({"error": "Account identifier too long"}), 400
        g.caller = caller
        return f(*args, **kwargs)
    return decorated_function
