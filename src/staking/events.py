"""
Append-only event log for staking operations.

Events are reported for audit and reconstruction by outside consumers.
The engine writes them but never reads them back.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class EventType(Enum):
    """Kinds of reported staking events."""
    STAKED = "Staked"
    UNSTAKED = "Unstaked"
    CLAIMED = "Claimed"
    REFERRAL_REWARD = "ReferralReward"
    REFERRER_SET = "ReferrerSet"
    INTEREST_RATE_CHANGED = "InterestRateChanged"
    CLAIM_COOLDOWN_CHANGED = "ClaimCooldownChanged"
    MAX_STAKE_CHANGED = "MaxStakeChanged"
    EMERGENCY_WITHDRAWAL = "EmergencyWithdrawal"


@dataclass
class StakingEvent:
    """A single reported event."""
    sequence: int
    event_type: str
    block_time: int  # Engine clock (unix seconds) at which the event committed
    timestamp: str   # Wall-clock ISO timestamp
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class EventLog:
    """Ordered, append-only collection of StakingEvent records."""

    def __init__(self):
        self._events: list[StakingEvent] = []

    def emit(self, event_type: EventType, block_time: int, **data: Any) -> StakingEvent:
        """Append an event and return it."""
        event = StakingEvent(
            sequence=len(self._events),
            event_type=event_type.value,
            block_time=block_time,
            timestamp=datetime.now(UTC).isoformat(),
            data=data,
        )
        self._events.append(event)
        return event

    def recent(self, limit: int = 100, event_type: str | None = None) -> list[dict[str, Any]]:
        """
        Most recent events, oldest first.

        Args:
            limit: Maximum number of events returned
            event_type: Optional filter on the event type name
        """
        events = self._events
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        if limit <= 0:
            return []
        return [e.to_dict() for e in events[-limit:]]

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> "EventLog":
        log = cls()
        log._events = [StakingEvent(**item) for item in data]
        return log

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))
