"""
Ledger Identifier Registry — Keyed Record Ownership
======================================================
Maps caller-chosen 16-bit IDs to exclusively owned records.

Rules:
- IDs are chosen by the caller (no implicit generation)
- Each ID appears at most once per registry
- Lookup / removal of an absent ID fails (never returns None)
- Records are owned here; callers outside the market get snapshots

The registry does not lock. The owning Market serializes access.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, Iterator, Tuple, TypeVar

from core.config.settings import U16_MAX
from core.errors import (
    CustomerNotFoundError,
    DuplicateIdError,
    InvalidIdentifier,
    NotFoundError,
    VendorNotFoundError,
)

logger = logging.getLogger("ledger.registry")

R = TypeVar("R")

_NOT_FOUND_BY_KIND: Dict[str, Callable[[int], NotFoundError]] = {
    "vendor": VendorNotFoundError,
    "customer": CustomerNotFoundError,
}


class IdentifierRegistry(Generic[R]):
    """
    In-memory registry of records keyed by small integer IDs.

    Usage:
        vendors = IdentifierRegistry("vendor")
        vendors.insert(1, vendor)
        vendors.get(1)       # the live record
        vendors.remove(1)
        vendors.get(1)       # VendorNotFoundError
    """

    def __init__(self, kind: str, max_identifier: int = U16_MAX):
        if not kind or not isinstance(kind, str):
            raise ValueError("kind must be a non-empty string.")
        self._kind = kind
        self._max_identifier = max_identifier
        self._records: Dict[int, R] = {}

    @property
    def kind(self) -> str:
        return self._kind

    def _check_id(self, record_id: int) -> None:
        # bool is an int subclass; True is not a vendor ID
        if (
            not isinstance(record_id, int)
            or isinstance(record_id, bool)
            or not 0 <= record_id <= self._max_identifier
        ):
            raise InvalidIdentifier(record_id, self._max_identifier)

    def _not_found(self, record_id: int) -> NotFoundError:
        factory = _NOT_FOUND_BY_KIND.get(self._kind)
        if factory is None:
            return NotFoundError(self._kind, record_id)
        return factory(record_id)

    def exists(self, record_id: int) -> bool:
        self._check_id(record_id)
        return record_id in self._records

    def insert(self, record_id: int, record: R) -> None:
        """
        Add a record under a new ID.

        Raises:
            InvalidIdentifier: ID outside the 16-bit range.
            DuplicateIdError:  ID already present.
        """
        self._check_id(record_id)
        if record_id in self._records:
            raise DuplicateIdError(self._kind, record_id)
        self._records[record_id] = record
        logger.debug(f"{self._kind} {record_id} inserted")

    def get(self, record_id: int) -> R:
        """Return the live record. Raises the kind-specific NotFoundError."""
        self._check_id(record_id)
        try:
            return self._records[record_id]
        except KeyError:
            raise self._not_found(record_id) from None

    def remove(self, record_id: int) -> R:
        """Remove and return the record. Raises the kind-specific NotFoundError."""
        self._check_id(record_id)
        if record_id not in self._records:
            raise self._not_found(record_id)
        logger.debug(f"{self._kind} {record_id} removed")
        return self._records.pop(record_id)

    def ids(self) -> Tuple[int, ...]:
        return tuple(sorted(self._records))

    def items(self) -> Iterator[Tuple[int, R]]:
        for record_id in sorted(self._records):
            yield record_id, self._records[record_id]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records
