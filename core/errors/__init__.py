"""
Ledger Core — Error Taxonomy
==============================
Caller-input validation failures and the single fatal invariant error.

Rules:
- Every LedgerError is deterministic (same input → same error)
- Every LedgerError carries a machine-readable code
- Every LedgerError converts to a RejectionReason for audit
- LedgerInvariantError is NOT a LedgerError: it signals a broken
  counter invariant and must never be caught as input validation
"""

from __future__ import annotations

from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason


# ══════════════════════════════════════════════════════════════
# BASE
# ══════════════════════════════════════════════════════════════

class LedgerError(Exception):
    """Base error for every rejected ledger operation."""

    code: str = ReasonCode.POLICY_VIOLATION

    def __init__(self, message: str, policy_name: Optional[str] = None):
        self.message = message
        self.policy_name = policy_name or type(self).__name__
        super().__init__(message)

    def to_rejection(self) -> RejectionReason:
        return RejectionReason(
            code=self.code,
            message=self.message,
            policy_name=self.policy_name,
        )


# ══════════════════════════════════════════════════════════════
# REGISTRY ERRORS
# ══════════════════════════════════════════════════════════════

class DuplicateIdError(LedgerError):
    """Insert attempted on an ID already present in a registry."""

    code = ReasonCode.DUPLICATE_ID

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} is already registered.")


class NotFoundError(LedgerError):
    """Lookup or removal of an absent ID."""

    code = ReasonCode.NOT_FOUND

    def __init__(self, kind: str, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found.")


class VendorNotFoundError(NotFoundError):
    code = ReasonCode.VENDOR_NOT_FOUND

    def __init__(self, record_id: int):
        super().__init__("vendor", record_id)


class CustomerNotFoundError(NotFoundError):
    code = ReasonCode.CUSTOMER_NOT_FOUND

    def __init__(self, record_id: int):
        super().__init__("customer", record_id)


class MarketNotFoundError(NotFoundError):
    code = ReasonCode.MARKET_NOT_FOUND

    def __init__(self, market_id: str):
        super().__init__("market", market_id)


# ══════════════════════════════════════════════════════════════
# STOCK / QUANTITY ERRORS
# ══════════════════════════════════════════════════════════════

class InvalidQuantityError(LedgerError):
    """A quantity argument ≤ 0 where a positive quantity is required."""

    code = ReasonCode.INVALID_QUANTITY

    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}.")


class ItemUnavailableError(LedgerError):
    """Item never stocked, or stocked quantity below the requested sale."""

    code = ReasonCode.ITEM_UNAVAILABLE

    def __init__(self, item: str, requested: int, on_hand: int):
        self.item = item
        self.requested = requested
        self.on_hand = on_hand
        super().__init__(
            f"Item '{item}' unavailable: {on_hand} on hand, "
            f"{requested} requested."
        )


# ══════════════════════════════════════════════════════════════
# MARKET LIFECYCLE
# ══════════════════════════════════════════════════════════════

class MarketDeletedError(LedgerError):
    """Operation attempted on a market that was already deleted."""

    code = ReasonCode.MARKET_DELETED

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Market '{name}' has been deleted.")


# ══════════════════════════════════════════════════════════════
# ARGUMENT SHAPE (ValueError family)
# ══════════════════════════════════════════════════════════════

class InvalidIdentifier(ValueError):
    """Registry key is not an int in the 16-bit unsigned range."""

    def __init__(self, record_id, max_identifier: int):
        self.record_id = record_id
        super().__init__(
            f"Identifier must be an integer in 0..{max_identifier}, "
            f"got {record_id!r}."
        )


class InvalidItem(ValueError):
    """Item name is empty or not a string."""

    def __init__(self, item):
        self.item = item
        super().__init__(f"Item name must be a non-empty string, got {item!r}.")


# ══════════════════════════════════════════════════════════════
# FATAL
# ══════════════════════════════════════════════════════════════

class LedgerInvariantError(Exception):
    """
    Raised when a counter would leave its representable range.

    If this exception is raised:
    - The operation is aborted before any mutation
    - It is a programming-invariant violation, not bad input
    - Callers must not retry
    """

    def __init__(self, counter: str, current: int, delta: int, ceiling: int):
        self.counter = counter
        self.current = current
        self.delta = delta
        self.ceiling = ceiling
        super().__init__(
            f"LEDGER INVARIANT VIOLATION — {counter}: "
            f"{current} + {delta} exceeds ceiling {ceiling}"
        )


# ══════════════════════════════════════════════════════════════
# CODE → ERROR MAPPING
# ══════════════════════════════════════════════════════════════

def error_from_rejection(rejection: RejectionReason, **context) -> LedgerError:
    """
    Rebuild the typed error for a policy rejection.

    Policies return RejectionReason values. Operations raise; this
    is the single place where one becomes the other.
    """
    code = rejection.code
    if code == ReasonCode.VENDOR_NOT_FOUND:
        error = VendorNotFoundError(context.get("vendor_id"))
    elif code == ReasonCode.CUSTOMER_NOT_FOUND:
        error = CustomerNotFoundError(context.get("customer_id"))
    elif code == ReasonCode.INVALID_QUANTITY:
        error = InvalidQuantityError(context.get("quantity"))
    elif code == ReasonCode.ITEM_UNAVAILABLE:
        error = ItemUnavailableError(
            context.get("item"),
            context.get("quantity"),
            context.get("on_hand", 0),
        )
    else:
        error = LedgerError(rejection.message)
        error.code = code
    error.policy_name = rejection.policy_name
    return error


__all__ = [
    "LedgerError",
    "DuplicateIdError",
    "NotFoundError",
    "VendorNotFoundError",
    "CustomerNotFoundError",
    "MarketNotFoundError",
    "InvalidQuantityError",
    "ItemUnavailableError",
    "MarketDeletedError",
    "InvalidIdentifier",
    "InvalidItem",
    "LedgerInvariantError",
    "error_from_rejection",
]
