"""
Tests for the event log and the in-memory asset ledger.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from staking.events import EventLog, EventType
from staking.transfer import AssetTransferError, InMemoryAssetLedger


class TestEventLog:
    """Tests for the append-only event log."""

    def test_emit_assigns_sequence(self):
        log = EventLog()
        first = log.emit(EventType.STAKED, 100, account="alice", amount=5)
        second = log.emit(EventType.CLAIMED, 200, account="alice", amount=1)

        assert (first.sequence, second.sequence) == (0, 1)
        assert first.event_type == "Staked"
        assert first.block_time == 100
        assert len(log) == 2

    def test_recent_oldest_first(self):
        log = EventLog()
        for i in range(5):
            log.emit(EventType.STAKED, i, amount=i)
        recent = log.recent(limit=3)
        assert [e["data"]["amount"] for e in recent] == [2, 3, 4]

    def test_recent_filter(self):
        log = EventLog()
        log.emit(EventType.STAKED, 1)
        log.emit(EventType.UNSTAKED, 2)
        log.emit(EventType.STAKED, 3)
        assert len(log.recent(event_type="Staked")) == 2
        assert log.recent(event_type="Nope") == []

    def test_recent_non_positive_limit(self):
        log = EventLog()
        log.emit(EventType.STAKED, 1)
        assert log.recent(limit=0) == []

    def test_round_trip(self):
        log = EventLog()
        log.emit(EventType.REFERRAL_REWARD, 7, referrer="bob", referee="alice", amount=10)
        restored = EventLog.from_list(log.to_list())
        assert restored.to_list() == log.to_list()


class TestInMemoryAssetLedger:
    """Tests for the reference asset ledger."""

    def test_transfer_to_pool(self):
        asset = InMemoryAssetLedger({"alice": 100})
        assert asset.transfer_to_pool("alice", 60) is True
        assert asset.balance_of("alice") == 40
        assert asset.pool_balance() == 60

    def test_transfer_to_pool_overdraw(self):
        asset = InMemoryAssetLedger({"alice": 100})
        assert asset.transfer_to_pool("alice", 101) is False
        assert asset.balance_of("alice") == 100
        assert asset.pool_balance() == 0

    def test_transfer_from_pool(self):
        asset = InMemoryAssetLedger(pool_balance=50)
        assert asset.transfer_from_pool("bob", 20) is True
        assert asset.balance_of("bob") == 20
        assert asset.transfer_from_pool("bob", 31) is False

    def test_mint_and_fund(self):
        asset = InMemoryAssetLedger()
        asset.mint("alice", 10)
        asset.fund_pool(5)
        assert asset.balance_of("alice") == 10
        assert asset.pool_balance() == 5

    @pytest.mark.parametrize("amount", [0, -1])
    def test_mint_rejects_non_positive(self, amount):
        with pytest.raises(AssetTransferError):
            InMemoryAssetLedger().mint("alice", amount)

    def test_get_info(self):
        info = InMemoryAssetLedger({"alice": 1}, pool_balance=3, symbol="TKN").get_info()
        assert info == {
            "asset_type": "InMemoryAssetLedger",
            "pool_balance": 3,
            "symbol": "TKN",
            "holders": 1,
        }

    def test_round_trip(self):
        asset = InMemoryAssetLedger({"alice": 7}, pool_balance=9)
        restored = InMemoryAssetLedger.from_dict(asset.to_dict())
        assert restored.balance_of("alice") == 7
        assert restored.pool_balance() == 9
