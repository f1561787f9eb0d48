"""
Referral registry.

A referee is linked to the first valid referrer it names, permanently.
Referrers accumulate a share of their referees' claimed rewards as an
informational total; the registry never moves value.
"""

from typing import Any

from staking.errors import InvalidAmount
from staking.rewards import checked_add

# Share of each claimed reward credited to the referrer
REFERRAL_PERCENT = 10

ZERO_ADDRESS = "0x" + "0" * 40


def is_unset(identifier: str | None) -> bool:
    """True for the sentinel values that mean "no account"."""
    return identifier is None or identifier == "" or identifier == ZERO_ADDRESS


def referral_amount(reward: int) -> int:
    """Referral credit owed on a claimed ``reward`` (floored)."""
    return reward * REFERRAL_PERCENT // 100


class ReferralRegistry:
    """First-referrer-wins links and accumulated referral credit."""

    def __init__(self):
        self._referrers: dict[str, str] = {}  # referee -> referrer
        self._totals: dict[str, int] = {}     # referrer -> accumulated credit

    def set_referrer_if_unset(self, referee: str, candidate: str | None) -> bool:
        """
        Link ``referee`` to ``candidate`` unless a link already exists.

        Candidates that are unset sentinels or equal to the referee are ignored.

        Returns:
            True if a new link was recorded
        """
        if referee in self._referrers:
            return False
        if is_unset(candidate) or candidate == referee:
            return False
        self._referrers[referee] = candidate
        return True

    def get_referrer(self, referee: str) -> str | None:
        return self._referrers.get(referee)

    def credit_referral(self, referrer: str, amount: int) -> int:
        """Add ``amount`` to the referrer's total and return the new total."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmount("Referral credit must be a non-negative integer", amount=repr(amount))
        total = checked_add(self._totals.get(referrer, 0), amount)
        self._totals[referrer] = total
        return total

    def get_referral_total(self, referrer: str) -> int:
        return self._totals.get(referrer, 0)

    def referees_of(self, referrer: str) -> list[str]:
        return [ref for ref, owner in self._referrers.items() if owner == referrer]

    def total_credited(self) -> int:
        return sum(self._totals.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "referrers": dict(self._referrers),
            "totals": dict(self._totals),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReferralRegistry":
        registry = cls()
        registry._referrers = dict(data.get("referrers", {}))
        registry._totals = {k: int(v) for k, v in data.get("totals", {}).items()}
        return registry
