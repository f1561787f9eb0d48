"""
Per-account staking ledger.

Holds each participant's stake, the two reward buckets and the accrual clock,
and applies the stake / unstake / claim transitions. The ledger is pure state:
it never calls the asset collaborator. The engine validates and previews a
transition here, performs the external transfer, and only then commits.

Account states:
    Empty   staked == 0 (reward buckets may still hold value after a full unstake)
    Active  staked > 0
"""

import copy
from dataclasses import asdict, dataclass
from typing import Any

from staking.errors import (
    InsufficientBalance,
    InvalidAmount,
    StakeLimitExceeded,
)
from staking.rewards import (
    calculate_rewards,
    checked_add,
    checked_sub,
    elapsed_since,
)


@dataclass
class Account:
    """Staking record for one participant."""
    staked: int = 0
    claimed_reward_balance: int = 0
    pending_reward_balance: int = 0
    last_accrual_time: int = 0
    total_claimed: int = 0

    @property
    def is_active(self) -> bool:
        return self.staked > 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Settlement:
    """Result of folding fresh accrual into an account's reward buckets."""
    accrued: int
    claimed_reward_balance: int
    pending_reward_balance: int
    settled_at: int


def require_positive_amount(amount: Any) -> int:
    """Reject anything that is not a strictly positive integer."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount("Amount must be an integer", amount=repr(amount))
    if amount <= 0:
        raise InvalidAmount("Amount must be positive", amount=amount)
    return amount


class AccountLedger:
    """
    Owns every Account and the transitions between their states.

    With ``single_reward_bucket`` unset, settlement credits the same accrual
    to both ``claimed_reward_balance`` and ``pending_reward_balance`` and a
    claim pays out their sum. With it set, only ``claimed_reward_balance``
    is credited.
    """

    def __init__(self, single_reward_bucket: bool = False):
        self.single_reward_bucket = single_reward_bucket
        self._accounts: dict[str, Account] = {}

    # ==================== LOOKUP ====================

    def get(self, account: str) -> Account:
        """Return the live record for ``account``, creating it on first touch."""
        record = self._accounts.get(account)
        if record is None:
            record = Account()
            self._accounts[account] = record
        return record

    def peek(self, account: str) -> Account:
        """Return a detached copy of ``account`` without creating it."""
        record = self._accounts.get(account)
        return copy.copy(record) if record is not None else Account()

    def exists(self, account: str) -> bool:
        return account in self._accounts

    def accounts(self) -> list[str]:
        return list(self._accounts)

    def total_staked(self) -> int:
        return sum(a.staked for a in self._accounts.values())

    def total_outstanding_rewards(self) -> int:
        """Reward balances owed but not yet paid, as a claim would sum them."""
        return sum(
            a.claimed_reward_balance + a.pending_reward_balance
            for a in self._accounts.values()
        )

    def active_count(self) -> int:
        return sum(1 for a in self._accounts.values() if a.is_active)

    # ==================== VALIDATION ====================

    def check_stake(self, account: str, amount: int, max_stake: int) -> int:
        """
        Validate a stake and return the resulting staked amount.

        Raises:
            InvalidAmount: amount is not a positive integer
            StakeLimitExceeded: the stake would exceed max_stake
        """
        require_positive_amount(amount)
        current = self.peek(account).staked
        new_staked = checked_add(current, amount)
        if new_staked > max_stake:
            raise StakeLimitExceeded(
                "Stake would exceed the per-account maximum",
                staked=current,
                amount=amount,
                max_stake=max_stake,
            )
        return new_staked

    def check_unstake(self, account: str, amount: int) -> int:
        """
        Validate an unstake and return the resulting staked amount.

        Raises:
            InvalidAmount: amount is not a positive integer
            InsufficientBalance: amount exceeds the current stake
        """
        require_positive_amount(amount)
        current = self.peek(account).staked
        if amount > current:
            raise InsufficientBalance(
                "Unstake amount exceeds staked balance",
                staked=current,
                amount=amount,
            )
        return current - amount

    # ==================== SETTLEMENT ====================

    def accrued(self, account: str, now: int, interest_rate: int) -> int:
        """Reward accrued since the account's last settlement."""
        record = self.peek(account)
        elapsed = elapsed_since(record.last_accrual_time, now)
        return calculate_rewards(record.staked, interest_rate, elapsed)

    def preview_settlement(self, account: str, now: int, interest_rate: int) -> Settlement:
        """Compute the buckets a settlement would produce, without mutating."""
        record = self.peek(account)
        accrued = self.accrued(account, now, interest_rate)

        claimed = checked_add(record.claimed_reward_balance, accrued)
        if self.single_reward_bucket:
            pending = record.pending_reward_balance
        else:
            pending = checked_add(record.pending_reward_balance, accrued)

        return Settlement(
            accrued=accrued,
            claimed_reward_balance=claimed,
            pending_reward_balance=pending,
            settled_at=now,
        )

    def claimable(self, account: str, now: int, interest_rate: int) -> tuple[int, int]:
        """
        Reward a claim at ``now`` would compute, before and after the cap.

        Returns:
            Tuple of (raw_reward, capped_reward)
        """
        record = self.peek(account)
        fresh = self.accrued(account, now, interest_rate)
        raw = checked_add(
            checked_add(fresh, record.claimed_reward_balance),
            record.pending_reward_balance,
        )
        cap = record.staked // 2
        return raw, min(raw, cap)

    # ==================== TRANSITIONS ====================

    def settle(self, account: str, now: int, interest_rate: int) -> Settlement:
        """Fold fresh accrual into the buckets and restart the accrual clock."""
        settlement = self.preview_settlement(account, now, interest_rate)
        record = self.get(account)
        record.claimed_reward_balance = settlement.claimed_reward_balance
        record.pending_reward_balance = settlement.pending_reward_balance
        record.last_accrual_time = now
        return settlement

    def apply_stake(self, account: str, amount: int, now: int, interest_rate: int) -> Settlement:
        """Settle accrual at the old stake, then add ``amount``."""
        new_staked = checked_add(self.peek(account).staked, amount)
        settlement = self.settle(account, now, interest_rate)
        self.get(account).staked = new_staked
        return settlement

    def apply_unstake(self, account: str, amount: int, now: int, interest_rate: int) -> Settlement:
        """Settle accrual at the old stake, then remove ``amount``."""
        new_staked = checked_sub(self.peek(account).staked, amount)
        settlement = self.settle(account, now, interest_rate)
        self.get(account).staked = new_staked
        return settlement

    def apply_claim(self, account: str, paid: int, now: int) -> None:
        """Zero both reward buckets and restart the accrual clock."""
        record = self.get(account)
        record.claimed_reward_balance = 0
        record.pending_reward_balance = 0
        record.last_accrual_time = now
        record.total_claimed = checked_add(record.total_claimed, paid)

    # ==================== SERIALIZATION ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "single_reward_bucket": self.single_reward_bucket,
            "accounts": {k: v.to_dict() for k, v in self._accounts.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountLedger":
        ledger = cls(single_reward_bucket=data.get("single_reward_bucket", False))
        for account, fields in data.get("accounts", {}).items():
            ledger._accounts[account] = Account(**fields)
        return ledger
