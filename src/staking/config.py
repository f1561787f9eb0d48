"""
Pool configuration.

Defaults can be overridden from the environment:

    STAKEPOOL_ADMIN                 Admin account identifier (required for from_env)
    STAKEPOOL_INTEREST_RATE         Annual rate in whole percent (5-25, default 10)
    STAKEPOOL_CLAIM_COOLDOWN        Seconds between claims (default 300)
    STAKEPOOL_MAX_STAKE             Per-account stake cap (default 2**256 - 1)
    STAKEPOOL_SINGLE_REWARD_BUCKET  "true" to credit only one reward bucket
"""

import os
from dataclasses import asdict, dataclass
from typing import Any

from staking.errors import OutOfRange
from staking.referrals import is_unset
from staking.rewards import MAX_UINT256

MIN_INTEREST_RATE = 5
MAX_INTEREST_RATE = 25

DEFAULT_INTEREST_RATE = 10
DEFAULT_CLAIM_COOLDOWN = 300
DEFAULT_MAX_STAKE = MAX_UINT256


def validate_interest_rate(rate: Any) -> int:
    if isinstance(rate, bool) or not isinstance(rate, int):
        raise OutOfRange("Interest rate must be an integer", rate=repr(rate))
    if not MIN_INTEREST_RATE <= rate <= MAX_INTEREST_RATE:
        raise OutOfRange(
            f"Interest rate must be between {MIN_INTEREST_RATE} and {MAX_INTEREST_RATE}",
            rate=rate,
        )
    return rate


def validate_claim_cooldown(seconds: Any) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise OutOfRange("Claim cooldown must be an integer", cooldown=repr(seconds))
    if not 0 <= seconds <= MAX_UINT256:
        raise OutOfRange("Claim cooldown must be non-negative and fit in uint256", cooldown=seconds)
    return seconds


def validate_max_stake(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise OutOfRange("Max stake must be an integer", max_stake=repr(amount))
    if not 0 < amount <= MAX_UINT256:
        raise OutOfRange("Max stake must be positive and fit in uint256", max_stake=amount)
    return amount


@dataclass
class PoolConfig:
    """Construction-time settings for a staking pool."""
    admin: str
    interest_rate: int = DEFAULT_INTEREST_RATE
    claim_cooldown: int = DEFAULT_CLAIM_COOLDOWN
    max_stake: int = DEFAULT_MAX_STAKE
    single_reward_bucket: bool = False

    def validate(self) -> "PoolConfig":
        """Check every field and return self."""
        if is_unset(self.admin):
            raise OutOfRange("Admin account must be set")
        validate_interest_rate(self.interest_rate)
        validate_claim_cooldown(self.claim_cooldown)
        validate_max_stake(self.max_stake)
        return self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_env(cls) -> "PoolConfig":
        """
        Build a config from STAKEPOOL_* environment variables.

        Raises:
            OutOfRange: If a value is missing or invalid
        """
        admin = os.getenv("STAKEPOOL_ADMIN", "")
        try:
            config = cls(
                admin=admin,
                interest_rate=int(os.getenv("STAKEPOOL_INTEREST_RATE", DEFAULT_INTEREST_RATE)),
                claim_cooldown=int(os.getenv("STAKEPOOL_CLAIM_COOLDOWN", DEFAULT_CLAIM_COOLDOWN)),
                max_stake=int(os.getenv("STAKEPOOL_MAX_STAKE", DEFAULT_MAX_STAKE)),
                single_reward_bucket=os.getenv(
                    "STAKEPOOL_SINGLE_REWARD_BUCKET", "false"
                ).lower() == "true",
            )
        except ValueError as e:
            raise OutOfRange(f"Invalid pool configuration: {e}") from e
        return config.validate()
