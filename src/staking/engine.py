"""
StakePool - Staking Engine
Public operation surface for a single staking pool.

Every mutating operation follows the same order:

    validate -> compute -> external transfer -> commit -> report

Ledger state is only written after the asset collaborator has accepted the
movement, so a TransferFailed never leaves a partially applied operation.
Operations are serialised by a re-entrant lock; one commits fully before the
next begins.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from monitoring.metrics import MetricsCollector
from monitoring.metrics import metrics as default_metrics
from staking.admin import PoolAdmin
from staking.config import PoolConfig
from staking.errors import (
    CooldownActive,
    NoRewards,
    StakingError,
    TransferFailed,
)
from staking.events import EventLog, EventType
from staking.ledger import AccountLedger, require_positive_amount
from staking.referrals import ReferralRegistry, referral_amount
from staking.rewards import checked_add, elapsed_since
from staking.transfer import AssetTransfer, AssetTransferError, InMemoryAssetLedger

logger = logging.getLogger(__name__)


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


class StakingEngine:
    """
    Orchestrates the ledger, referral registry and pool admin.

    Args:
        asset: External asset ledger the pool holds its balance in
        config: Pool policy at construction
        clock: Callable returning the current time in unix seconds
        metrics: Metrics collector (defaults to the process-wide collector)
    """

    def __init__(
        self,
        asset: AssetTransfer,
        config: PoolConfig,
        clock: Callable[[], int] | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.pool = PoolAdmin(asset, config)
        self.ledger = AccountLedger(single_reward_bucket=config.single_reward_bucket)
        self.referrals = ReferralRegistry()
        self.events = EventLog()
        self.total_paid_rewards = 0
        self._clock = clock or system_clock
        self._metrics = metrics or default_metrics
        self._lock = threading.RLock()
        self._update_gauges()

    @property
    def asset(self) -> AssetTransfer:
        return self.pool.asset

    def now(self) -> int:
        return int(self._clock())

    # ==================== ACCOUNT OPERATIONS ====================

    def stake(self, caller: str, amount: int, referrer: str | None = None) -> dict[str, Any]:
        """
        Deposit ``amount`` into the pool on behalf of ``caller``.

        Raises:
            InvalidAmount: amount is not a positive integer
            StakeLimitExceeded: the resulting stake would exceed max_stake
            TransferFailed: the deposit could not be pulled from the caller
        """
        with self._lock:
            try:
                now = self.now()
                new_staked = self.ledger.check_stake(caller, amount, self.pool.max_stake)
                settlement = self.ledger.preview_settlement(caller, now, self.pool.interest_rate)

                self._transfer_in(caller, amount)

                if self.referrals.set_referrer_if_unset(caller, referrer):
                    self.events.emit(
                        EventType.REFERRER_SET, now, referee=caller, referrer=referrer
                    )
                self.ledger.apply_stake(caller, amount, now, self.pool.interest_rate)
                self.events.emit(EventType.STAKED, now, account=caller, amount=amount)
            except StakingError as e:
                self._reject("stake", caller, e)
                raise

            self._commit("stake")
            logger.info(
                "Stake committed",
                extra={
                    "event": "staking.staked",
                    "account": caller,
                    "amount": amount,
                    "accrued": settlement.accrued,
                },
            )
            return {
                "status": "staked",
                "account": caller,
                "amount": amount,
                "staked": new_staked,
                "accrued": settlement.accrued,
                "referrer": self.referrals.get_referrer(caller),
            }

    def unstake(self, caller: str, amount: int) -> dict[str, Any]:
        """
        Withdraw ``amount`` of principal back to ``caller``.

        Raises:
            InvalidAmount: amount is not a positive integer
            InsufficientBalance: amount exceeds the caller's stake
            TransferFailed: the pool could not pay the caller
        """
        with self._lock:
            try:
                now = self.now()
                new_staked = self.ledger.check_unstake(caller, amount)
                settlement = self.ledger.preview_settlement(caller, now, self.pool.interest_rate)

                self._transfer_out(caller, amount)

                self.ledger.apply_unstake(caller, amount, now, self.pool.interest_rate)
                self.events.emit(EventType.UNSTAKED, now, account=caller, amount=amount)
            except StakingError as e:
                self._reject("unstake", caller, e)
                raise

            self._commit("unstake")
            logger.info(
                "Unstake committed",
                extra={"event": "staking.unstaked", "account": caller, "amount": amount},
            )
            return {
                "status": "unstaked",
                "account": caller,
                "amount": amount,
                "staked": new_staked,
                "accrued": settlement.accrued,
            }

    def claim(self, caller: str) -> dict[str, Any]:
        """
        Pay out the caller's accrued rewards.

        The payout is the fresh accrual plus both reward buckets, capped at
        half of the caller's current stake. Anything above the cap is
        forfeited when the buckets are zeroed.

        Raises:
            CooldownActive: the claim cooldown has not elapsed
            NoRewards: nothing has accrued
            TransferFailed: the pool could not pay the reward
        """
        with self._lock:
            try:
                now = self.now()
                record = self.ledger.peek(caller)
                elapsed = elapsed_since(record.last_accrual_time, now)
                if elapsed < self.pool.claim_cooldown:
                    raise CooldownActive(
                        "Claim cooldown has not elapsed",
                        retry_after=self.pool.claim_cooldown - elapsed,
                    )

                raw, reward = self.ledger.claimable(caller, now, self.pool.interest_rate)
                if raw == 0:
                    raise NoRewards("No rewards to claim")

                if reward > 0:
                    self._transfer_out(caller, reward)

                self.ledger.apply_claim(caller, reward, now)
                self.total_paid_rewards = checked_add(self.total_paid_rewards, reward)
                self.events.emit(
                    EventType.CLAIMED, now, account=caller, amount=reward, forfeited=raw - reward
                )

                referrer = self.referrals.get_referrer(caller)
                credit = 0
                if referrer is not None:
                    credit = referral_amount(reward)
                    self.referrals.credit_referral(referrer, credit)
                    self.events.emit(
                        EventType.REFERRAL_REWARD,
                        now,
                        referrer=referrer,
                        referee=caller,
                        amount=credit,
                    )
            except StakingError as e:
                self._reject("claim", caller, e)
                raise

            self._commit("claim")
            logger.info(
                "Claim committed",
                extra={
                    "event": "staking.claimed",
                    "account": caller,
                    "amount": reward,
                    "forfeited": raw - reward,
                },
            )
            return {
                "status": "claimed",
                "account": caller,
                "amount": reward,
                "forfeited": raw - reward,
                "referrer": referrer,
                "referral_credit": credit,
            }

    # ==================== ADMIN OPERATIONS ====================

    def set_interest_rate(self, caller: str, new_rate: int) -> dict[str, Any]:
        """Change the interest rate (admin only, 5 to 25 percent)."""
        with self._lock:
            try:
                old_rate = self.pool.set_interest_rate(caller, new_rate)
            except StakingError as e:
                self._reject("set_interest_rate", caller, e)
                raise
            self.events.emit(
                EventType.INTEREST_RATE_CHANGED, self.now(), old_rate=old_rate, new_rate=new_rate
            )
            self._commit("set_interest_rate")
            logger.info(
                "Interest rate changed",
                extra={"event": "staking.rate_changed", "old_rate": old_rate, "new_rate": new_rate},
            )
            return {"status": "updated", "old_rate": old_rate, "new_rate": new_rate}

    def set_claim_cooldown(self, caller: str, seconds: int) -> dict[str, Any]:
        """Change the claim cooldown (admin only)."""
        with self._lock:
            try:
                old = self.pool.set_claim_cooldown(caller, seconds)
            except StakingError as e:
                self._reject("set_claim_cooldown", caller, e)
                raise
            self.events.emit(
                EventType.CLAIM_COOLDOWN_CHANGED, self.now(), old_cooldown=old, new_cooldown=seconds
            )
            self._commit("set_claim_cooldown")
            return {"status": "updated", "old_cooldown": old, "new_cooldown": seconds}

    def set_max_stake(self, caller: str, amount: int) -> dict[str, Any]:
        """Change the per-account stake cap (admin only)."""
        with self._lock:
            try:
                old = self.pool.set_max_stake(caller, amount)
            except StakingError as e:
                self._reject("set_max_stake", caller, e)
                raise
            self.events.emit(
                EventType.MAX_STAKE_CHANGED, self.now(), old_max_stake=old, new_max_stake=amount
            )
            self._commit("set_max_stake")
            return {"status": "updated", "old_max_stake": old, "new_max_stake": amount}

    def emergency_withdraw(self, caller: str) -> dict[str, Any]:
        """Drain the pool to the admin without touching account bookkeeping."""
        with self._lock:
            try:
                amount = self.pool.emergency_withdraw(caller)
            except StakingError as e:
                self._reject("emergency_withdraw", caller, e)
                raise
            self.events.emit(
                EventType.EMERGENCY_WITHDRAWAL, self.now(), admin=self.pool.admin, amount=amount
            )
            self._commit("emergency_withdraw")
            return {"status": "withdrawn", "admin": self.pool.admin, "amount": amount}

    # ==================== QUERIES ====================

    def get_referral_rewards(self, referrer: str) -> int:
        """Total referral credit accumulated by ``referrer``."""
        with self._lock:
            return self.referrals.get_referral_total(referrer)

    def get_account(self, account: str) -> dict[str, Any]:
        """Account view including a preview of what a claim would pay now."""
        with self._lock:
            now = self.now()
            record = self.ledger.peek(account)
            raw, capped = self.ledger.claimable(account, now, self.pool.interest_rate)
            claim_ready_at = record.last_accrual_time + self.pool.claim_cooldown
            cooled_down = elapsed_since(record.last_accrual_time, now) >= self.pool.claim_cooldown
            return {
                "account": account,
                **record.to_dict(),
                "referrer": self.referrals.get_referrer(account),
                "referral_rewards": self.referrals.get_referral_total(account),
                "accrued": self.ledger.accrued(account, now, self.pool.interest_rate),
                "claimable": capped,
                "claimable_uncapped": raw,
                "claim_ready_at": claim_ready_at,
                "can_claim": cooled_down and raw > 0,
            }

    def get_pool_stats(self) -> dict[str, Any]:
        """Aggregate totals and current policy."""
        with self._lock:
            total_staked = self.ledger.total_staked()
            pool_balance = self.asset.pool_balance()
            outstanding = self.ledger.total_outstanding_rewards()
            return {
                **self.pool.to_dict(),
                "single_reward_bucket": self.ledger.single_reward_bucket,
                "total_staked": total_staked,
                "account_count": len(self.ledger.accounts()),
                "active_stakers": self.ledger.active_count(),
                "pool_balance": pool_balance,
                "outstanding_rewards": outstanding,
                "total_paid_rewards": self.total_paid_rewards,
                "total_referral_credit": self.referrals.total_credited(),
                "solvent": pool_balance >= total_staked + outstanding,
                "event_count": len(self.events),
            }

    def get_events(self, limit: int = 100, event_type: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            return self.events.recent(limit=limit, event_type=event_type)

    # ==================== SNAPSHOTS ====================

    def to_dict(self) -> dict[str, Any]:
        """Snapshot of the logical pool state for a persistence host."""
        with self._lock:
            return {
                "pool": self.pool.to_dict(),
                "ledger": self.ledger.to_dict(),
                "referrals": self.referrals.to_dict(),
                "events": self.events.to_list(),
                "total_paid_rewards": self.total_paid_rewards,
            }

    def snapshot(self) -> dict[str, Any]:
        """
        ``to_dict`` plus the in-memory asset balances, taken under one lock.

        Every engine operation that moves funds holds the same lock, so the
        ledger and the asset balances in the result describe the same instant.
        """
        with self._lock:
            data = self.to_dict()
            if isinstance(self.asset, InMemoryAssetLedger):
                data["asset"] = self.asset.to_dict()
            return data

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        asset: AssetTransfer,
        clock: Callable[[], int] | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "StakingEngine":
        """Rebuild an engine from ``to_dict`` output."""
        ledger_data = data.get("ledger", {})
        config = PoolConfig(
            single_reward_bucket=ledger_data.get("single_reward_bucket", False),
            **data["pool"],
        )
        engine = cls(asset, config, clock=clock, metrics=metrics)
        engine.ledger = AccountLedger.from_dict(ledger_data)
        engine.referrals = ReferralRegistry.from_dict(data.get("referrals", {}))
        engine.events = EventLog.from_list(data.get("events", []))
        engine.total_paid_rewards = int(data.get("total_paid_rewards", 0))
        engine._update_gauges()
        return engine

    # ==================== INTERNALS ====================

    def _transfer_in(self, account: str, amount: int) -> None:
        try:
            ok = self.asset.transfer_to_pool(account, amount)
        except AssetTransferError as e:
            raise TransferFailed(f"Deposit failed: {e}", account=account, amount=amount) from e
        if not ok:
            raise TransferFailed("Deposit refused by asset ledger", account=account, amount=amount)

    def _transfer_out(self, account: str, amount: int) -> None:
        require_positive_amount(amount)
        try:
            ok = self.asset.transfer_from_pool(account, amount)
        except AssetTransferError as e:
            raise TransferFailed(f"Payout failed: {e}", account=account, amount=amount) from e
        if not ok:
            raise TransferFailed("Payout refused by asset ledger", account=account, amount=amount)

    def _commit(self, operation: str) -> None:
        self._metrics.increment(
            "staking_operations_total", labels={"operation": operation, "result": "ok"}
        )
        self._update_gauges()

    def _reject(self, operation: str, caller: str, error: StakingError) -> None:
        self._metrics.increment(
            "staking_operations_total", labels={"operation": operation, "result": error.code}
        )
        level = logging.ERROR if isinstance(error, TransferFailed) else logging.WARNING
        logger.log(
            level,
            f"{operation} rejected: {error.message}",
            extra={"event": f"staking.{operation}_rejected", "account": caller, "error": error.code},
        )

    def _update_gauges(self) -> None:
        self._metrics.set_gauge("staking_total_staked", float(self.ledger.total_staked()))
        self._metrics.set_gauge("staking_interest_rate", float(self.pool.interest_rate))
        self._metrics.set_gauge("staking_accounts", float(len(self.ledger.accounts())))
