"""
Pytest configuration and shared fixtures for StakePool tests.

This module provides shared fixtures and test configuration including:
- A controllable clock for reward accrual
- An in-memory asset ledger with funded accounts
- Staking engines with a private metrics collector
- Flask app setup with test configuration
- API authentication headers
"""

import os
import sys

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Set up test environment before any imports
os.environ["STAKEPOOL_API_KEY"] = "test-api-key-12345"
os.environ["STAKEPOOL_REQUIRE_AUTH"] = "true"
os.environ["STORAGE_BACKEND"] = "memory"

ADMIN = "admin"
GENESIS_TIME = 1_700_000_000
DAY = 24 * 3600
YEAR = 365 * DAY


class FakeClock:
    """Manually advanced clock returning whole unix seconds."""

    def __init__(self, start: int = GENESIS_TIME):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    """Clock starting at a fixed genesis time."""
    return FakeClock()


@pytest.fixture
def asset():
    """Asset ledger with funded accounts and a reward reserve in the pool."""
    from staking import InMemoryAssetLedger
    return InMemoryAssetLedger(
        balances={"alice": 10_000, "bob": 10_000, "carol": 10_000},
        pool_balance=1_000_000,
    )


@pytest.fixture
def metrics_collector():
    """Metrics collector isolated from the process-wide one."""
    from monitoring.metrics import MetricsCollector
    return MetricsCollector(prefix="test")


@pytest.fixture
def engine(asset, clock, metrics_collector):
    """Staking engine with default policy (10%, 300s cooldown)."""
    from staking import PoolConfig, StakingEngine
    return StakingEngine(asset, PoolConfig(admin=ADMIN), clock=clock, metrics=metrics_collector)


@pytest.fixture
def flask_app(engine):
    """Create Flask test app around a fresh engine for each test."""
    from api import create_app
    from storage import MemoryStorage

    app = create_app(engine, MemoryStorage())
    app.config['TESTING'] = True
    return app


@pytest.fixture
def flask_client(flask_app):
    """Create Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def test_auth_headers():
    """Headers for authenticated requests."""
    return {
        "Content-Type": "application/json",
        "X-API-Key": "test-api-key-12345"
    }


@pytest.fixture
def caller_headers(test_auth_headers):
    """Factory for authenticated headers acting as a given account."""
    def _headers(account: str) -> dict:
        return {**test_auth_headers, "X-Account-ID": account}
    return _headers
