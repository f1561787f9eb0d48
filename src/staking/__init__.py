"""
Staking core for StakePool.

Account holders deposit a fungible asset into a pool, accrue simple interest
at an admin-controlled rate, and withdraw principal or rewards subject to a
claim cooldown, a per-account stake cap, a 50%-of-stake reward cap and a 10%
referral credit.

Usage:
    from staking import InMemoryAssetLedger, PoolConfig, StakingEngine

    asset = InMemoryAssetLedger({"alice": 1_000})
    engine = StakingEngine(asset, PoolConfig(admin="admin"))
    engine.stake("alice", 1_000, referrer="bob")
"""

from staking.admin import PoolAdmin
from staking.config import (
    MAX_INTEREST_RATE,
    MIN_INTEREST_RATE,
    PoolConfig,
)
from staking.engine import StakingEngine, system_clock
from staking.errors import (
    ArithmeticOverflow,
    CooldownActive,
    InsufficientBalance,
    InvalidAmount,
    NoRewards,
    NothingToWithdraw,
    OutOfRange,
    StakeLimitExceeded,
    StakingError,
    TransferFailed,
    Unauthorized,
)
from staking.events import EventLog, EventType, StakingEvent
from staking.ledger import Account, AccountLedger
from staking.referrals import REFERRAL_PERCENT, ZERO_ADDRESS, ReferralRegistry
from staking.rewards import MAX_UINT256, SECONDS_PER_YEAR, calculate_rewards
from staking.transfer import AssetTransfer, AssetTransferError, InMemoryAssetLedger

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountLedger",
    "ArithmeticOverflow",
    "AssetTransfer",
    "AssetTransferError",
    "CooldownActive",
    "EventLog",
    "EventType",
    "InMemoryAssetLedger",
    "InsufficientBalance",
    "InvalidAmount",
    "MAX_INTEREST_RATE",
    "MAX_UINT256",
    "MIN_INTEREST_RATE",
    "NoRewards",
    "NothingToWithdraw",
    "OutOfRange",
    "PoolAdmin",
    "PoolConfig",
    "REFERRAL_PERCENT",
    "ReferralRegistry",
    "SECONDS_PER_YEAR",
    "StakeLimitExceeded",
    "StakingEngine",
    "StakingError",
    "StakingEvent",
    "TransferFailed",
    "Unauthorized",
    "ZERO_ADDRESS",
    "calculate_rewards",
    "system_clock",
]
