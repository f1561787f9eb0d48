"""
Asset transfer collaborator.

The engine never moves value itself. It asks an ``AssetTransfer`` to pull a
deposit into the pool, pay an amount out of the pool, or report the pool's
balance. Implementations signal failure by returning ``False`` or raising
``AssetTransferError``; the engine treats both the same way.

``InMemoryAssetLedger`` is a complete reference implementation used by the
tests, the development server and anyone embedding the engine without an
external ledger.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class AssetTransferError(Exception):
    """Raised by an AssetTransfer implementation when a movement fails."""
    pass


class AssetTransfer(ABC):
    """
    Abstract interface to the external asset ledger.

    Each call is atomic: it either moves the full amount or nothing.
    """

    @abstractmethod
    def transfer_to_pool(self, account: str, amount: int) -> bool:
        """
        Move ``amount`` from ``account`` into the pool.

        Returns:
            True on success, False if the movement was refused
        """
        pass

    @abstractmethod
    def transfer_from_pool(self, account: str, amount: int) -> bool:
        """
        Move ``amount`` from the pool to ``account``.

        Returns:
            True on success, False if the movement was refused
        """
        pass

    @abstractmethod
    def pool_balance(self) -> int:
        """Return the amount the pool currently holds."""
        pass

    def get_info(self) -> dict[str, Any]:
        """Describe the collaborator for health and info endpoints."""
        return {
            "asset_type": self.__class__.__name__,
            "pool_balance": self.pool_balance(),
        }


class InMemoryAssetLedger(AssetTransfer):
    """
    Reference asset ledger holding balances in a dictionary.

    Refuses transfers that would overdraw an account or the pool.
    Thread-safe operations.
    """

    def __init__(
        self,
        balances: dict[str, int] | None = None,
        pool_balance: int = 0,
        symbol: str = "STK",
    ):
        """
        Initialize the ledger.

        Args:
            balances: Initial account balances
            pool_balance: Initial pool holdings (for example a reward reserve)
            symbol: Display symbol of the asset
        """
        self.symbol = symbol
        self._balances: dict[str, int] = dict(balances or {})
        self._pool = pool_balance
        self._lock = threading.RLock()

    def mint(self, account: str, amount: int) -> None:
        """Credit ``account`` with new units (test and bootstrap helper)."""
        if amount <= 0:
            raise AssetTransferError("Mint amount must be positive")
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount

    def fund_pool(self, amount: int) -> None:
        """Add reward reserve directly to the pool."""
        if amount <= 0:
            raise AssetTransferError("Funding amount must be positive")
        with self._lock:
            self._pool += amount

    def balance_of(self, account: str) -> int:
        """Balance held by ``account`` outside the pool."""
        with self._lock:
            return self._balances.get(account, 0)

    def transfer_to_pool(self, account: str, amount: int) -> bool:
        with self._lock:
            available = self._balances.get(account, 0)
            if amount < 0 or available < amount:
                logger.debug(
                    "Transfer to pool refused",
                    extra={"account": account, "amount": amount, "available": available},
                )
                return False
            self._balances[account] = available - amount
            self._pool += amount
            return True

    def transfer_from_pool(self, account: str, amount: int) -> bool:
        with self._lock:
            if amount < 0 or self._pool < amount:
                logger.debug(
                    "Transfer from pool refused",
                    extra={"account": account, "amount": amount, "pool": self._pool},
                )
                return False
            self._pool -= amount
            self._balances[account] = self._balances.get(account, 0) + amount
            return True

    def pool_balance(self) -> int:
        with self._lock:
            return self._pool

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        with self._lock:
            info.update({
                "symbol": self.symbol,
                "holders": len(self._balances),
            })
        return info

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "symbol": self.symbol,
                "balances": dict(self._balances),
                "pool_balance": self._pool,
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryAssetLedger":
        return cls(
            balances={k: int(v) for k, v in data.get("balances", {}).items()},
            pool_balance=int(data.get("pool_balance", 0)),
            symbol=data.get("symbol", "STK"),
        )
