"""
Failure kinds raised by the staking engine.

Every public operation either commits completely or raises one of these.
The HTTP layer maps ``code`` and ``http_status`` straight onto the response.
"""

from typing import Any


class StakingError(Exception):
    """Base exception for staking failures."""

    code = "staking_error"
    http_status = 400

    def __init__(self, message: str | None = None, **details: Any):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses and audit logs."""
        result: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class InvalidAmount(StakingError):
    """Raised when an amount is zero, negative or not an integer."""

    code = "invalid_amount"


class StakeLimitExceeded(StakingError):
    """Raised when a stake would push an account above max_stake."""

    code = "stake_limit_exceeded"


class InsufficientBalance(StakingError):
    """Raised when unstaking more than is staked."""

    code = "insufficient_balance"


class CooldownActive(StakingError):
    """Raised when claiming before the claim cooldown has elapsed."""

    code = "cooldown_active"
    http_status = 429


class NoRewards(StakingError):
    """Raised when a claim finds nothing to pay."""

    code = "no_rewards"
    http_status = 409


class Unauthorized(StakingError):
    """Raised when a non-admin calls an admin operation."""

    code = "unauthorized"
    http_status = 403


class OutOfRange(StakingError):
    """Raised when a policy value falls outside its allowed range."""

    code = "out_of_range"


class NothingToWithdraw(StakingError):
    """Raised when an emergency withdrawal finds an empty pool."""

    code = "nothing_to_withdraw"
    http_status = 409


class TransferFailed(StakingError):
    """Raised when the asset transfer collaborator rejects a movement."""

    code = "transfer_failed"
    http_status = 502


class ArithmeticOverflow(StakingError):
    """Raised when integer math leaves the 256-bit unsigned range."""

    code = "arithmetic_overflow"
