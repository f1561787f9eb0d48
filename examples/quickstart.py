#!/usr/bin/env python3
"""
StakePool Quickstart Example

This example walks through the core concepts of StakePool:
1. Creating an asset ledger and a staking pool
2. Staking with a referrer
3. Letting time pass and claiming rewards
4. Inspecting accounts, referral credit and the event log

Run this example:
    python examples/quickstart.py

Uses a simulated clock so a year of accrual happens instantly.
"""

import os
import sys

# Add src to path so we can import the staking engine
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from staking import InMemoryAssetLedger, PoolConfig, StakingEngine

YEAR = 365 * 24 * 3600


class SimulatedClock:
    def __init__(self, start=1_700_000_000):
        self.now = start

    def __call__(self):
        return self.now


def main():
    print("=" * 60)
    print("StakePool Quickstart")
    print("=" * 60)
    print()

    # ==========================================================================
    # Step 1: Create an asset ledger and a pool
    # ==========================================================================
    # The pool holds a reward reserve so it can pay interest on top of principal

    print("Step 1: Creating pool...")
    asset = InMemoryAssetLedger(
        balances={"alice": 5_000, "bob": 2_000},
        pool_balance=100_000,
    )
    clock = SimulatedClock()
    engine = StakingEngine(asset, PoolConfig(admin="treasury", interest_rate=10), clock=clock)
    print(f"  Interest rate: {engine.pool.interest_rate}%")
    print(f"  Claim cooldown: {engine.pool.claim_cooldown}s")
    print(f"  Pool reserve: {asset.pool_balance()}")
    print()

    # ==========================================================================
    # Step 2: Stake
    # ==========================================================================
    # The first referrer an account names is recorded permanently

    print("Step 2: Staking...")
    engine.stake("alice", 1_000, referrer="bob")
    engine.stake("bob", 2_000)
    print(f"  alice staked 1000 (referred by {engine.get_account('alice')['referrer']})")
    print("  bob staked 2000")
    print()

    # ==========================================================================
    # Step 3: Let a year pass and claim
    # ==========================================================================

    print("Step 3: One year later...")
    clock.now += YEAR
    for account in ("alice", "bob"):
        result = engine.claim(account)
        print(f"  {account} claimed {result['amount']} (referral credit: {result['referral_credit']})")
    print()

    # ==========================================================================
    # Step 4: Inspect
    # ==========================================================================

    print("Step 4: Pool state")
    stats = engine.get_pool_stats()
    print(f"  Total staked: {stats['total_staked']}")
    print(f"  Rewards paid: {stats['total_paid_rewards']}")
    print(f"  Pool balance: {stats['pool_balance']}")
    print(f"  bob's referral rewards: {engine.get_referral_rewards('bob')}")
    print()
    print("Event log:")
    for event in engine.get_events():
        print(f"  #{event['sequence']} {event['event_type']}: {event['data']}")


if __name__ == "__main__":
    main()
