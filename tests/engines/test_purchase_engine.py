"""
Ledger Purchase Engine — Test Suite
======================================
Precondition order, atomic effects, pre-purchase discount, receipts.
"""

import pytest

from core.errors import (
    CustomerNotFoundError,
    InvalidQuantityError,
    ItemUnavailableError,
    LedgerInvariantError,
    VendorNotFoundError,
)
from core.registry import IdentifierRegistry
from engines.loyalty.tiers import LoyaltyTier
from engines.market.records import CustomerRecord, VendorRecord
from engines.purchase.commands import PurchaseRequest
from engines.purchase.services import execute_purchase


# ══════════════════════════════════════════════════════════════
# TEST HELPERS
# ══════════════════════════════════════════════════════════════

def make_registries(stock=50, total=0, tier=LoyaltyTier.CASUAL, ceiling=2 ** 64 - 1):
    vendors = IdentifierRegistry("vendor")
    customers = IdentifierRegistry("customer")
    vendor = VendorRecord.create("Snack Stand", ceiling)
    if stock:
        vendor.inventory.add_stock("Chips", stock)
    vendors.insert(1, vendor)
    customer = CustomerRecord.create("Ana")
    customer.total_units_purchased = total
    customer.tier = tier
    customers.insert(7, customer)
    return vendors, customers


def state_of(vendors, customers):
    v = vendors.get(1)
    c = customers.get(7)
    return (
        v.inventory.items(), v.total_units_sold,
        c.tier, c.total_units_purchased, tuple(c.purchase_history),
    )


def buy(vendors, customers, vendor_id=1, customer_id=7, item="Chips", quantity=10, **kw):
    return execute_purchase(
        vendors, customers,
        PurchaseRequest(vendor_id=vendor_id, customer_id=customer_id,
                        item=item, quantity=quantity),
        **kw,
    )


# ══════════════════════════════════════════════════════════════
# EFFECTS
# ══════════════════════════════════════════════════════════════

class TestPurchaseEffects:
    def test_all_effects_applied(self):
        vendors, customers = make_registries()
        receipt = buy(vendors, customers)
        assert receipt.charged == 10
        assert receipt.discount_percent == 0
        assert vendors.get(1).inventory.quantity_of("Chips") == 40
        assert vendors.get(1).total_units_sold == 10
        assert customers.get(7).total_units_purchased == 10
        assert customers.get(7).purchase_history == ["Bought 10 x Chips"]
        assert customers.get(7).tier is LoyaltyTier.CASUAL

    def test_receipt_text(self):
        vendors, customers = make_registries()
        receipt = buy(vendors, customers)
        assert receipt.text == "Purchased 10 x Chips for 10 (discount 0%)"
        assert str(receipt) == receipt.text

    def test_discount_from_pre_purchase_tier(self):
        vendors, customers = make_registries(total=95)
        receipt = buy(vendors, customers)
        assert receipt.charged == 10
        assert receipt.discount_percent == 0
        assert receipt.tier_before is LoyaltyTier.CASUAL
        assert receipt.tier_after is LoyaltyTier.FANATIC
        assert receipt.promoted

    def test_next_purchase_uses_new_tier(self):
        vendors, customers = make_registries(total=95)
        buy(vendors, customers)
        receipt = buy(vendors, customers)
        assert receipt.charged == 9
        assert receipt.discount_percent == 5

    def test_legend_discount(self):
        vendors, customers = make_registries(total=500, tier=LoyaltyTier.LEGEND)
        receipt = buy(vendors, customers, quantity=20)
        assert receipt.charged == 17
        assert receipt.text.endswith("(discount 15%)")

    def test_whole_stock_sold(self):
        vendors, customers = make_registries(stock=10)
        buy(vendors, customers, quantity=10)
        assert vendors.get(1).inventory.quantity_of("Chips") == 0


# ══════════════════════════════════════════════════════════════
# PRECONDITIONS
# ══════════════════════════════════════════════════════════════

class TestPurchasePreconditions:
    def test_vendor_checked_first(self):
        vendors, customers = make_registries()
        with pytest.raises(VendorNotFoundError):
            buy(vendors, customers, vendor_id=2, customer_id=8, quantity=0)

    def test_customer_checked_second(self):
        vendors, customers = make_registries()
        with pytest.raises(CustomerNotFoundError):
            buy(vendors, customers, customer_id=8, quantity=0, item="Nope")

    def test_quantity_checked_before_stock(self):
        vendors, customers = make_registries()
        with pytest.raises(InvalidQuantityError):
            buy(vendors, customers, quantity=0, item="Nope")

    def test_never_stocked(self):
        vendors, customers = make_registries()
        before = state_of(vendors, customers)
        with pytest.raises(ItemUnavailableError):
            buy(vendors, customers, item="Soda")
        assert state_of(vendors, customers) == before

    def test_insufficient_stock(self):
        vendors, customers = make_registries(stock=5)
        before = state_of(vendors, customers)
        with pytest.raises(ItemUnavailableError) as exc:
            buy(vendors, customers, quantity=6)
        assert exc.value.on_hand == 5
        assert exc.value.policy_name == "stock_available_policy"
        assert state_of(vendors, customers) == before

    def test_rejection_leaves_state_unchanged(self):
        vendors, customers = make_registries()
        before = state_of(vendors, customers)
        with pytest.raises(InvalidQuantityError):
            buy(vendors, customers, quantity=-1)
        assert state_of(vendors, customers) == before

    def test_counter_overflow_is_fatal_and_atomic(self):
        vendors, customers = make_registries(stock=50, total=95, ceiling=100)
        before = state_of(vendors, customers)
        with pytest.raises(LedgerInvariantError):
            buy(vendors, customers, quantity=10, counter_ceiling=100)
        assert state_of(vendors, customers) == before


class TestPurchaseRequest:
    def test_payload(self):
        req = PurchaseRequest(vendor_id=1, customer_id=7, item="Chips", quantity=3)
        assert req.to_payload() == {
            "vendor_id": 1, "customer_id": 7, "item": "Chips", "quantity": 3,
        }
        assert req.command_type == "purchase.sale.complete.request"

    def test_policies_pass_without_lookups(self):
        from engines.purchase.policies import (
            customer_must_exist_policy,
            vendor_must_exist_policy,
        )
        req = PurchaseRequest(vendor_id=1, customer_id=7, item="Chips", quantity=3)
        assert vendor_must_exist_policy(req) is None
        assert customer_must_exist_policy(req) is None
