"""
Ledger Object Store — Market Identity & Persistence Boundary
===============================================================
The collaborator that gives a Market a durable identity, keeps it,
hands it to an owner, and releases the identity on deletion.

Durable implementations live outside this repository. The in-memory
store below is used by tests and by callers with no durable backend.
"""

from __future__ import annotations

import logging
import uuid
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Tuple

from core.errors import MarketNotFoundError

logger = logging.getLogger("ledger.store")


# ══════════════════════════════════════════════════════════════
# OBJECT STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class ObjectStore(Protocol):
    """Boundary contract between the ledger core and durable storage."""

    def allocate_id(self) -> str:
        """Return a fresh, never-reused market identity."""
        ...  # pragma: no cover

    def save(self, market: Any) -> None:
        """Persist the market under its market_id."""
        ...  # pragma: no cover

    def load(self, market_id: str) -> Any:
        """Return the market stored under market_id."""
        ...  # pragma: no cover

    def transfer(self, market_id: str, owner: str) -> None:
        """Hand ownership of the market to owner."""
        ...  # pragma: no cover

    def release(self, market_id: str) -> None:
        """Forget the market and retire its identity."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY OBJECT STORE
# ══════════════════════════════════════════════════════════════

class InMemoryObjectStore:
    """Dict-backed object store. Identities are uuid4 strings."""

    def __init__(self) -> None:
        self._markets: Dict[str, Any] = {}
        self._owners: Dict[str, Optional[str]] = {}
        self._released: set[str] = set()
        self._lock = Lock()

    def allocate_id(self) -> str:
        with self._lock:
            market_id = str(uuid.uuid4())
            while market_id in self._markets or market_id in self._released:
                market_id = str(uuid.uuid4())
        logger.debug(f"Market identity allocated: {market_id}")
        return market_id

    def save(self, market: Any) -> None:
        market_id = getattr(market, "market_id", None)
        if not market_id:
            raise ValueError("Market has no market_id; allocate one before save().")
        with self._lock:
            if market_id in self._released:
                raise MarketNotFoundError(market_id)
            self._markets[market_id] = market
            self._owners.setdefault(market_id, None)
        logger.info(f"Market saved: {market_id} ({market.name})")

    def load(self, market_id: str) -> Any:
        with self._lock:
            try:
                return self._markets[market_id]
            except KeyError:
                raise MarketNotFoundError(market_id) from None

    def transfer(self, market_id: str, owner: str) -> None:
        if not owner or not isinstance(owner, str):
            raise ValueError("owner must be a non-empty string.")
        with self._lock:
            market = self._markets.get(market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
        market.assign_owner(owner)
        with self._lock:
            if market_id in self._markets:
                self._owners[market_id] = owner
        logger.info(f"Market {market_id} transferred to {owner}")

    def release(self, market_id: str) -> None:
        with self._lock:
            if market_id not in self._markets:
                raise MarketNotFoundError(market_id)
            del self._markets[market_id]
            self._owners.pop(market_id, None)
            self._released.add(market_id)
        logger.info(f"Market identity released: {market_id}")

    def owner_of(self, market_id: str) -> Optional[str]:
        with self._lock:
            if market_id not in self._markets:
                raise MarketNotFoundError(market_id)
            return self._owners.get(market_id)

    def market_ids(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._markets))

    def __len__(self) -> int:
        with self._lock:
            return len(self._markets)
