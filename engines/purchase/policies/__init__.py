"""
Ledger Purchase Engine — Policies
====================================
Existence preconditions for a purchase.

The orchestrator evaluates, in order:
1. vendor_must_exist_policy
2. customer_must_exist_policy
3. positive_quantity_policy   (inventory engine)
4. stock_available_policy     (inventory engine)
"""

from __future__ import annotations

from typing import Callable, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from engines.purchase.commands import PurchaseRequest


def vendor_must_exist_policy(
    request: PurchaseRequest,
    vendor_exists: Optional[Callable[[int], bool]] = None,
) -> Optional[RejectionReason]:
    if vendor_exists is None:
        return None
    if not vendor_exists(request.vendor_id):
        return RejectionReason(
            code=ReasonCode.VENDOR_NOT_FOUND,
            message=f"Vendor {request.vendor_id} not found.",
            policy_name="vendor_must_exist_policy",
        )
    return None


def customer_must_exist_policy(
    request: PurchaseRequest,
    customer_exists: Optional[Callable[[int], bool]] = None,
) -> Optional[RejectionReason]:
    if customer_exists is None:
        return None
    if not customer_exists(request.customer_id):
        return RejectionReason(
            code=ReasonCode.CUSTOMER_NOT_FOUND,
            message=f"Customer {request.customer_id} not found.",
            policy_name="customer_must_exist_policy",
        )
    return None
