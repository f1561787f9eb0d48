"""
Abstract base class for storage backends.

The staking engine only defines logical state. A storage backend persists
the snapshot produced by ``StakingEngine.to_dict()`` and hands it back for
``StakingEngine.from_dict()``.
"""

from abc import ABC, abstractmethod
from typing import Any


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class StorageReadError(StorageError):
    """Raised when reading from storage fails."""
    pass


class StorageWriteError(StorageError):
    """Raised when writing to storage fails."""
    pass


class StorageBackend(ABC):
    """
    Abstract base class for pool state storage backends.
    """

    @abstractmethod
    def load_state(self) -> dict[str, Any] | None:
        """
        Load the pool snapshot from storage.

        Returns:
            Snapshot dictionary, or None if nothing has been saved yet.

        Raises:
            StorageReadError: If reading fails
        """
        pass

    @abstractmethod
    def save_state(self, state: dict[str, Any]) -> None:
        """
        Persist a pool snapshot, replacing any previous one.

        Raises:
            StorageWriteError: If writing fails
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the storage backend is available and ready.
        """
        pass

    def get_info(self) -> dict[str, Any]:
        """
        Get information about the storage backend.

        Returns:
            Dictionary with backend type, status, and configuration
        """
        return {
            "backend_type": self.__class__.__name__,
            "available": self.is_available(),
        }

    def get_account_count(self) -> int:
        """Number of accounts in the stored snapshot."""
        state = self.load_state()
        if state and "ledger" in state:
            return len(state["ledger"].get("accounts", {}))
        return 0

    def get_event_count(self) -> int:
        """Number of events in the stored snapshot."""
        state = self.load_state()
        if state:
            return len(state.get("events", []))
        return 0

    def close(self) -> None:
        """
        Close the storage connection and release resources.

        Default implementation does nothing.
        """
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
