"""
Shared state for the StakePool API.

Holds the staking engine and storage backend used by every blueprint.
``create_app`` installs them through ``init_state``; blueprints read them
through ``get_engine`` / ``get_storage``.
"""

import logging
import os
import threading

from staking import InMemoryAssetLedger, PoolConfig, StakingEngine
from storage import StorageBackend, StorageError, get_storage_backend

logger = logging.getLogger(__name__)

# ============================================================
# Shared State
# ============================================================

_engine: StakingEngine | None = None
_storage: StorageBackend | None = None

# Held across snapshot and write so saves land in commit order
_save_lock = threading.Lock()


def init_state(engine: StakingEngine, storage: StorageBackend) -> None:
    """Install the engine and storage backend shared by the blueprints."""
    global _engine, _storage
    _engine = engine
    _storage = storage


def get_engine() -> StakingEngine:
    if _engine is None:
        raise RuntimeError("Staking engine not initialized")
    return _engine


def get_storage() -> StorageBackend:
    if _storage is None:
        raise RuntimeError("Storage backend not initialized")
    return _storage


# ============================================================
# Engine Bootstrap
# ============================================================

def parse_genesis_balances(raw: str) -> dict[str, int]:
    """
    Parse "alice=1000,bob=500" into a balances dict.

    Raises:
        ValueError: On a malformed pair or non-integer amount
    """
    balances: dict[str, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        account, sep, amount = pair.partition("=")
        if not sep or not account.strip():
            raise ValueError(f"Malformed genesis balance: {pair!r}")
        balances[account.strip()] = int(amount)
    return balances


def build_engine(storage: StorageBackend) -> StakingEngine:
    """
    Restore the engine from storage, or create a new one from the environment.

    New pools use an in-memory asset ledger seeded from
    STAKEPOOL_GENESIS_BALANCES and STAKEPOOL_POOL_RESERVE.
    """
    data = storage.load_state()
    if data:
        asset = InMemoryAssetLedger.from_dict(data.get("asset", {}))
        engine = StakingEngine.from_dict(data, asset)
        logger.info(
            "Restored staking pool",
            extra={"accounts": len(engine.ledger.accounts()), "events": len(engine.events)},
        )
        return engine

    asset = InMemoryAssetLedger(
        balances=parse_genesis_balances(os.getenv("STAKEPOOL_GENESIS_BALANCES", "")),
        pool_balance=int(os.getenv("STAKEPOOL_POOL_RESERVE", "0")),
    )
    engine = StakingEngine(asset, PoolConfig.from_env())
    logger.info("Created new staking pool", extra={"admin": engine.pool.admin})
    return engine


def build_state_from_env() -> tuple[StakingEngine, StorageBackend]:
    storage = get_storage_backend()
    return build_engine(storage), storage


# ============================================================
# Persistence
# ============================================================

def save_state() -> None:
    """
    Persist the current engine snapshot.

    The snapshot is taken and written while holding the save lock, so the
    last write always carries the newest state. Storage failures are logged
    and re-raised; the committed operation itself is not rolled back.
    """
    engine = get_engine()
    with _save_lock:
        data = engine.snapshot()
        try:
            get_storage().save_state(data)
        except StorageError:
            logger.exception("Failed to persist pool state")
            raise
