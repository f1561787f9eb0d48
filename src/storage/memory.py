"""
In-memory storage backend.

Keeps the pool snapshot in process memory, useful for:
- Unit testing
- Development servers
- Ephemeral pools
"""

import copy
import threading
from typing import Any

from storage.base import StorageBackend


class MemoryStorage(StorageBackend):
    """
    In-memory storage backend.

    All data is lost when the process exits. Thread-safe operations.
    """

    def __init__(self):
        self._data: dict[str, Any] | None = None
        self._saves = 0
        # Reentrant: get_info calls the count helpers under the same lock
        self._lock = threading.RLock()

    def load_state(self) -> dict[str, Any] | None:
        """Return a copy of the stored snapshot, or None if empty."""
        with self._lock:
            if self._data is None:
                return None
            return copy.deepcopy(self._data)

    def save_state(self, state: dict[str, Any]) -> None:
        """Store a deep copy of ``state``."""
        with self._lock:
            self._data = copy.deepcopy(state)
            self._saves += 1

    def is_available(self) -> bool:
        """Memory storage is always available."""
        return True

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        with self._lock:
            info.update(
                {
                    "has_data": self._data is not None,
                    "save_count": self._saves,
                    "account_count": self.get_account_count(),
                    "event_count": self.get_event_count(),
                }
            )
        return info

    def clear(self) -> None:
        """Clear all stored data."""
        with self._lock:
            self._data = None

    def get_account_count(self) -> int:
        with self._lock:
            if self._data and "ledger" in self._data:
                return len(self._data["ledger"].get("accounts", {}))
            return 0

    def get_event_count(self) -> int:
        with self._lock:
            if self._data:
                return len(self._data.get("events", []))
            return 0
