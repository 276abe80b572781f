"""
Ledger Purchase Engine — Request Commands
============================================
One purchase: customer buys units of an item from a vendor.
"""

from __future__ import annotations

from dataclasses import dataclass

PURCHASE_REQUEST = "purchase.sale.complete.request"


@dataclass(frozen=True)
class PurchaseRequest:
    """
    Caller input for a purchase, unvalidated.

    Validation happens in purchase policies, in a fixed order,
    so that the first failing precondition decides the error.
    """
    vendor_id: int
    customer_id: int
    item: str
    quantity: int

    @property
    def command_type(self) -> str:
        return PURCHASE_REQUEST

    def to_payload(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "customer_id": self.customer_id,
            "item": self.item,
            "quantity": self.quantity,
        }
