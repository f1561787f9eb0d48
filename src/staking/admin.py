"""
Pool policy and privileged operations.

PoolAdmin is the Pool aggregate: the immutable asset handle, the fixed admin
identity and the mutable policy knobs. Only the admin may change policy or
drain the pool.
"""

import logging
from typing import Any

from staking.config import (
    PoolConfig,
    validate_claim_cooldown,
    validate_interest_rate,
    validate_max_stake,
)
from staking.errors import NothingToWithdraw, TransferFailed, Unauthorized
from staking.transfer import AssetTransfer, AssetTransferError

logger = logging.getLogger(__name__)


class PoolAdmin:
    """Holds policy state and guards admin-only operations."""

    def __init__(self, asset: AssetTransfer, config: PoolConfig):
        config.validate()
        self._asset = asset
        self._admin = config.admin
        self.interest_rate = config.interest_rate
        self.claim_cooldown = config.claim_cooldown
        self.max_stake = config.max_stake

    @property
    def asset(self) -> AssetTransfer:
        return self._asset

    @property
    def admin(self) -> str:
        return self._admin

    def require_admin(self, caller: str) -> None:
        if caller != self._admin:
            logger.warning(
                "Rejected admin operation",
                extra={"event": "staking.unauthorized", "caller": caller},
            )
            raise Unauthorized("Caller is not the pool admin", caller=caller)

    # ==================== POLICY ====================

    def set_interest_rate(self, caller: str, new_rate: int) -> int:
        """
        Change the annual interest rate.

        Returns:
            The previous rate

        Raises:
            Unauthorized: caller is not the admin
            OutOfRange: new_rate is outside [5, 25]
        """
        self.require_admin(caller)
        validate_interest_rate(new_rate)
        old_rate = self.interest_rate
        self.interest_rate = new_rate
        return old_rate

    def set_claim_cooldown(self, caller: str, seconds: int) -> int:
        """Change the claim cooldown and return the previous value."""
        self.require_admin(caller)
        validate_claim_cooldown(seconds)
        old = self.claim_cooldown
        self.claim_cooldown = seconds
        return old

    def set_max_stake(self, caller: str, amount: int) -> int:
        """
        Change the per-account stake cap and return the previous value.

        Accounts already above a lowered cap keep their stake; they only
        lose the ability to add more.
        """
        self.require_admin(caller)
        validate_max_stake(amount)
        old = self.max_stake
        self.max_stake = amount
        return old

    # ==================== BREAK-GLASS ====================

    def emergency_withdraw(self, caller: str) -> int:
        """
        Send the pool's entire balance to the admin.

        Account bookkeeping is not touched, so after a drain the ledger still
        records stakes and rewards the pool can no longer pay.

        Returns:
            Amount withdrawn

        Raises:
            Unauthorized: caller is not the admin
            NothingToWithdraw: the pool is empty
            TransferFailed: the asset collaborator refused the payout
        """
        self.require_admin(caller)
        balance = self._asset.pool_balance()
        if balance <= 0:
            raise NothingToWithdraw("Pool holds no balance")

        try:
            ok = self._asset.transfer_from_pool(self._admin, balance)
        except AssetTransferError as e:
            raise TransferFailed(f"Emergency withdrawal failed: {e}", amount=balance) from e
        if not ok:
            raise TransferFailed("Emergency withdrawal refused", amount=balance)

        logger.critical(
            "Emergency withdrawal executed",
            extra={"event": "staking.emergency_withdraw", "admin": self._admin, "amount": balance},
        )
        return balance

    def to_dict(self) -> dict[str, Any]:
        return {
            "admin": self._admin,
            "interest_rate": self.interest_rate,
            "claim_cooldown": self.claim_cooldown,
            "max_stake": self.max_stake,
        }
