"""
Ledger Inventory Engine — Policies
=====================================
Engine-specific validation policies for stock operations.

Every policy accepts any request carrying `item` and `quantity`
(StockRequest, PurchaseRequest) and returns RejectionReason or None.
"""

from __future__ import annotations

from typing import Callable, Optional

from core.commands.rejection import ReasonCode, RejectionReason


def is_positive_quantity(quantity) -> bool:
    return (
        isinstance(quantity, int)
        and not isinstance(quantity, bool)
        and quantity > 0
    )


def positive_quantity_policy(request) -> Optional[RejectionReason]:
    """Quantity must be a positive integer."""
    if is_positive_quantity(request.quantity):
        return None
    return RejectionReason(
        code=ReasonCode.INVALID_QUANTITY,
        message=f"Quantity must be a positive integer, got {request.quantity!r}.",
        policy_name="positive_quantity_policy",
    )


def stock_available_policy(
    request,
    stock_lookup: Optional[Callable[[str], Optional[int]]] = None,
) -> Optional[RejectionReason]:
    """
    Item must be tracked with at least the requested quantity on hand.

    stock_lookup returns None for an untracked item. "Never stocked"
    and "not enough" are one rejection code.
    Without stock_lookup, this policy passes (optimistic mode).
    """
    if stock_lookup is None:
        return None

    on_hand = stock_lookup(request.item)
    if on_hand is None:
        return RejectionReason(
            code=ReasonCode.ITEM_UNAVAILABLE,
            message=f"Item '{request.item}' is not stocked.",
            policy_name="stock_available_policy",
        )
    if on_hand < request.quantity:
        return RejectionReason(
            code=ReasonCode.ITEM_UNAVAILABLE,
            message=(
                f"Insufficient stock: {on_hand} available, "
                f"{request.quantity} requested for item '{request.item}'."
            ),
            policy_name="stock_available_policy",
        )
    return None
