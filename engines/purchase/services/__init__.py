"""
Ledger Purchase Engine — Transaction Orchestrator
====================================================
Validates every precondition, then applies all purchase effects.

Effects (all or nothing):
- vendor inventory decremented by quantity
- vendor total_units_sold incremented
- customer total_units_purchased incremented
- purchase-history line appended
- customer tier re-evaluated on the updated total

The discount charged is captured from the tier held at the START
of the transaction. A purchase that crosses a threshold is charged
at the old rate; the new tier applies from the next purchase.

No rollback path exists: nothing is mutated until every policy
and every counter check has passed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.config.settings import U64_MAX
from core.errors import error_from_rejection
from core.registry import IdentifierRegistry
from engines.inventory.policies import (
    positive_quantity_policy,
    stock_available_policy,
)
from engines.inventory.services import check_counter
from engines.loyalty.services import (
    charged_amount,
    discount_for,
    evaluate_promotion,
)
from engines.loyalty.tiers import LoyaltyTier
from engines.market.records import CustomerRecord, VendorRecord
from engines.purchase.commands import PurchaseRequest
from engines.purchase.policies import (
    customer_must_exist_policy,
    vendor_must_exist_policy,
)

logger = logging.getLogger("ledger.purchase")


# ══════════════════════════════════════════════════════════════
# RECEIPT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PurchaseReceipt:
    """
    Result of a completed purchase.

    discount_percent is the rate actually applied (pre-purchase tier).
    tier_after may differ from tier_before when the purchase promoted
    the customer.
    """
    vendor_id: int
    customer_id: int
    item: str
    quantity: int
    charged: int
    discount_percent: int
    tier_before: LoyaltyTier
    tier_after: LoyaltyTier

    @property
    def promoted(self) -> bool:
        return self.tier_after is not self.tier_before

    @property
    def text(self) -> str:
        return (
            f"Purchased {self.quantity} x {self.item} for {self.charged} "
            f"(discount {self.discount_percent}%)"
        )

    def __str__(self) -> str:
        return self.text

    def to_dict(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "customer_id": self.customer_id,
            "item": self.item,
            "quantity": self.quantity,
            "charged": self.charged,
            "discount_percent": self.discount_percent,
            "tier_before": self.tier_before.label,
            "tier_after": self.tier_after.label,
        }


def history_line(quantity: int, item: str) -> str:
    return f"Bought {quantity} x {item}"


# ══════════════════════════════════════════════════════════════
# ORCHESTRATOR
# ══════════════════════════════════════════════════════════════

def _first_rejection(request, vendors, customers):
    rejection = vendor_must_exist_policy(request, vendor_exists=vendors.exists)
    if rejection is not None:
        return rejection
    rejection = customer_must_exist_policy(request, customer_exists=customers.exists)
    if rejection is not None:
        return rejection
    rejection = positive_quantity_policy(request)
    if rejection is not None:
        return rejection
    inventory = vendors.get(request.vendor_id).inventory
    return stock_available_policy(request, stock_lookup=inventory.lookup)


def execute_purchase(
    vendors: IdentifierRegistry[VendorRecord],
    customers: IdentifierRegistry[CustomerRecord],
    request: PurchaseRequest,
    counter_ceiling: int = U64_MAX,
) -> PurchaseReceipt:
    """
    Run one purchase transaction against the two registries.

    Raises (first failing precondition wins, nothing mutated):
        VendorNotFoundError, CustomerNotFoundError,
        InvalidQuantityError, ItemUnavailableError,
        LedgerInvariantError (counter would pass the ceiling).
    """
    rejection = _first_rejection(request, vendors, customers)
    if rejection is not None:
        logger.info(
            f"Purchase rejected by '{rejection.policy_name}': "
            f"[{rejection.code}] {rejection.message}"
        )
        on_hand = 0
        if vendors.exists(request.vendor_id):
            on_hand = vendors.get(request.vendor_id).inventory.quantity_of(request.item)
        raise error_from_rejection(
            rejection,
            on_hand=on_hand,
            **request.to_payload(),
        )

    vendor = vendors.get(request.vendor_id)
    customer = customers.get(request.customer_id)
    quantity = request.quantity

    check_counter(
        f"vendor[{request.vendor_id}].total_units_sold",
        vendor.total_units_sold, quantity, counter_ceiling,
    )
    check_counter(
        f"customer[{request.customer_id}].total_units_purchased",
        customer.total_units_purchased, quantity, counter_ceiling,
    )

    # ── All preconditions hold. Apply effects. ────────────────
    tier_before = customer.tier
    discount = discount_for(tier_before)
    charged = charged_amount(quantity, discount)

    vendor.inventory.take_stock(request.item, quantity)
    vendor.total_units_sold += quantity
    customer.total_units_purchased += quantity
    customer.record_purchase(history_line(quantity, request.item))

    decision = evaluate_promotion(tier_before, customer.total_units_purchased)
    customer.tier = decision.current

    receipt = PurchaseReceipt(
        vendor_id=request.vendor_id,
        customer_id=request.customer_id,
        item=request.item,
        quantity=quantity,
        charged=charged,
        discount_percent=discount,
        tier_before=tier_before,
        tier_after=decision.current,
    )
    logger.info(
        f"Purchase completed: vendor={request.vendor_id} "
        f"customer={request.customer_id} {receipt.text}"
    )
    if decision.promoted:
        logger.info(
            f"Customer {request.customer_id} promoted "
            f"{tier_before.label} → {decision.current.label} "
            f"at {decision.total_units} units"
        )
    return receipt
