"""
Ledger Market Engine — Test Suite
====================================
Tests verify:
- Entity lifecycle (register / delete / describe)
- Purchase scenarios end to end
- Ledger invariants across operation sequences
- Journal replay determinism
- Deleted-market behaviour
"""

import random
import threading

import pytest

from core.config import LedgerSettings
from core.errors import (
    CustomerNotFoundError,
    DuplicateIdError,
    InvalidQuantityError,
    ItemUnavailableError,
    LedgerError,
    MarketDeletedError,
    VendorNotFoundError,
)
from engines.loyalty.tiers import LoyaltyTier
from engines.market.services import (
    Market,
    ReplayDivergedError,
    create_market,
    delete_market,
)

V1 = 1
C1 = 7


# ══════════════════════════════════════════════════════════════
# TEST HELPERS
# ══════════════════════════════════════════════════════════════

def make_market(stock=50):
    market = create_market("Night Market")
    market.register_vendor(V1, "Snack Stand")
    if stock:
        market.add_stock(V1, "Chips", stock)
    market.register_customer(C1, "Ana")
    return market


def bring_total_to(market, total):
    """Raise the customer's total with one purchase at a spare vendor."""
    market.register_vendor(99, "Warehouse")
    market.add_stock(99, "Filler", 10_000)
    market.purchase(99, C1, "Filler", total)


# ══════════════════════════════════════════════════════════════
# LIFECYCLE
# ══════════════════════════════════════════════════════════════

class TestLifecycle:
    def test_new_market_is_empty(self):
        market = create_market("Night Market")
        assert market.vendor_ids() == ()
        assert market.customer_ids() == ()
        assert market.events == ()

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError, match="name"):
            create_market("")

    def test_register_vendor_starts_empty(self):
        market = create_market("M")
        market.register_vendor(V1, "Snack Stand")
        snap = market.vendor(V1)
        assert snap.inventory == ()
        assert snap.total_units_sold == 0

    def test_register_customer_starts_casual(self):
        market = create_market("M")
        market.register_customer(C1, "Ana")
        snap = market.customer(C1)
        assert snap.tier is LoyaltyTier.CASUAL
        assert snap.total_units_purchased == 0
        assert snap.purchase_history == ()

    def test_delete_vendor_discards_inventory(self):
        market = make_market()
        market.delete_vendor(V1)
        with pytest.raises(VendorNotFoundError):
            market.vendor(V1)
        market.register_vendor(V1, "Reopened")
        assert market.stock_of(V1, "Chips") == 0

    def test_delete_missing_customer(self):
        market = create_market("M")
        with pytest.raises(CustomerNotFoundError):
            market.delete_customer(C1)

    def test_vendor_and_customer_ids_independent(self):
        market = create_market("M")
        market.register_vendor(5, "Vendor Five")
        market.register_customer(5, "Customer Five")
        assert market.vendor_ids() == (5,)
        assert market.customer_ids() == (5,)

    def test_add_stock_to_missing_vendor(self):
        market = create_market("M")
        with pytest.raises(VendorNotFoundError):
            market.add_stock(V1, "Chips", 0)

    def test_describe_customer(self):
        market = make_market()
        market.purchase(V1, C1, "Chips", 10)
        assert market.describe_customer(C1) == "Ana: tier Casual, 10 units purchased"

    def test_describe_vendor(self):
        market = make_market()
        market.purchase(V1, C1, "Chips", 10)
        assert market.describe_vendor(V1) == "Snack Stand: 1 item lines, 10 units sold"

    def test_snapshots_are_detached(self):
        market = make_market()
        snap = market.customer(C1)
        market.purchase(V1, C1, "Chips", 10)
        assert snap.total_units_purchased == 0


# ══════════════════════════════════════════════════════════════
# SCENARIOS
# ══════════════════════════════════════════════════════════════

class TestPurchaseScenarios:
    def test_first_purchase_casual(self):
        market = make_market()
        receipt = market.purchase(V1, C1, "Chips", 10)
        assert receipt == "Purchased 10 x Chips for 10 (discount 0%)"
        assert market.stock_of(V1, "Chips") == 40
        assert market.customer(C1).total_units_purchased == 10
        assert market.customer(C1).tier is LoyaltyTier.CASUAL

    def test_crossing_fanatic_threshold(self):
        market = make_market()
        bring_total_to(market, 95)
        first = market.purchase_with_receipt(V1, C1, "Chips", 10)
        assert first.charged == 10
        assert first.discount_percent == 0
        assert market.customer(C1).total_units_purchased == 105
        assert market.customer(C1).tier is LoyaltyTier.FANATIC
        second = market.purchase_with_receipt(V1, C1, "Chips", 10)
        assert second.charged == 9
        assert second.discount_percent == 5

    def test_zero_quantity_changes_nothing(self):
        market = make_market()
        before = market.to_dict()
        events_before = market.event_count
        with pytest.raises(InvalidQuantityError):
            market.purchase(V1, C1, "Chips", 0)
        assert market.to_dict() == before
        assert market.event_count == events_before

    @pytest.mark.parametrize("item,qty", [("Soda", 1), ("Chips", 51)])
    def test_unavailable_changes_nothing(self, item, qty):
        market = make_market()
        before = market.to_dict()
        with pytest.raises(ItemUnavailableError):
            market.purchase(V1, C1, item, qty)
        assert market.to_dict() == before

    def test_duplicate_vendor_keeps_first(self):
        market = make_market()
        with pytest.raises(DuplicateIdError):
            market.register_vendor(V1, "Impostor")
        snap = market.vendor(V1)
        assert snap.name == "Snack Stand"
        assert snap.stock_of("Chips") == 50

    def test_single_purchase_skips_to_legend(self):
        market = make_market(stock=600)
        bring_total_to(market, 90)
        receipt = market.purchase_with_receipt(V1, C1, "Chips", 510)
        assert receipt.discount_percent == 0
        assert receipt.charged == 510
        assert market.customer(C1).total_units_purchased == 600
        assert market.customer(C1).tier is LoyaltyTier.LEGEND

    def test_purchase_history_lines(self):
        market = make_market()
        market.purchase(V1, C1, "Chips", 3)
        market.purchase(V1, C1, "Chips", 4)
        assert market.purchase_history(C1) == (
            "Bought 3 x Chips",
            "Bought 4 x Chips",
        )

    def test_history_limit_keeps_newest(self):
        market = Market("M", settings=LedgerSettings(history_limit=2))
        market.register_vendor(V1, "Snack Stand")
        market.add_stock(V1, "Chips", 50)
        market.register_customer(C1, "Ana")
        for qty in (1, 2, 3):
            market.purchase(V1, C1, "Chips", qty)
        assert market.purchase_history(C1) == ("Bought 2 x Chips", "Bought 3 x Chips")
        assert market.customer(C1).total_units_purchased == 6


# ══════════════════════════════════════════════════════════════
# INVARIANTS OVER RANDOM SEQUENCES
# ══════════════════════════════════════════════════════════════

def run_random_session(seed):
    rng = random.Random(seed)
    market = create_market("Fuzz")
    for vid in (1, 2):
        market.register_vendor(vid, f"Vendor {vid}")
    for cid in (10, 11, 12):
        market.register_customer(cid, f"Customer {cid}")
    receipts = []
    bought = {10: 0, 11: 0, 12: 0}
    tiers = {10: [], 11: [], 12: []}
    for _ in range(300):
        vid = rng.choice((1, 2, 3))
        if rng.random() < 0.3:
            try:
                market.add_stock(vid, rng.choice(("A", "B")), rng.randint(-2, 40))
            except LedgerError:
                pass
            continue
        cid = rng.choice((10, 11, 12, 13))
        qty = rng.randint(-1, 30)
        try:
            receipts.append(market.purchase(vid, cid, rng.choice(("A", "B", "C")), qty))
            bought[cid] += qty
        except LedgerError:
            pass
        for known in (10, 11, 12):
            tiers[known].append(market.customer(known).tier.rank)
    return market, receipts, bought, tiers


class TestLedgerInvariants:
    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_stock_never_negative(self, seed):
        market, _, _, _ = run_random_session(seed)
        for vid in market.vendor_ids():
            assert all(q >= 0 for _, q in market.vendor(vid).inventory)

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_total_equals_sum_of_successful_purchases(self, seed):
        market, _, bought, _ = run_random_session(seed)
        for cid, total in bought.items():
            assert market.customer(cid).total_units_purchased == total

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_tier_monotonic(self, seed):
        _, _, _, tiers = run_random_session(seed)
        for ranks in tiers.values():
            assert ranks == sorted(ranks)

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_tier_consistent_with_total(self, seed):
        market, _, _, _ = run_random_session(seed)
        for cid in market.customer_ids():
            snap = market.customer(cid)
            if snap.total_units_purchased >= 500:
                assert snap.tier is LoyaltyTier.LEGEND
            elif snap.total_units_purchased >= 100:
                assert snap.tier is LoyaltyTier.FANATIC
            else:
                assert snap.tier is LoyaltyTier.CASUAL

    def test_identical_sessions_identical_results(self):
        a, receipts_a, _, _ = run_random_session(7)
        b, receipts_b, _, _ = run_random_session(7)
        assert receipts_a == receipts_b
        assert a.to_dict() == b.to_dict()


# ══════════════════════════════════════════════════════════════
# JOURNAL / REPLAY
# ══════════════════════════════════════════════════════════════

class TestJournalReplay:
    def test_events_recorded_in_order(self):
        market = make_market()
        market.purchase(V1, C1, "Chips", 10)
        types = [e["event_type"] for e in market.events]
        assert types == [
            "market.vendor.registered.v1",
            "market.stock.added.v1",
            "market.customer.registered.v1",
            "market.purchase.completed.v1",
        ]
        assert market.events[-1]["payload"]["receipt"] == (
            "Purchased 10 x Chips for 10 (discount 0%)"
        )

    def test_failed_operations_not_journaled(self):
        market = make_market()
        with pytest.raises(DuplicateIdError):
            market.register_customer(C1, "Again")
        assert market.event_count == 3

    def test_replay_rebuilds_identical_state(self):
        market, _, _, _ = run_random_session(11)
        market.delete_customer(12)
        rebuilt = Market.replay("Fuzz", market.events)
        assert rebuilt.to_dict() == market.to_dict()
        assert rebuilt.events == market.events

    def test_replay_detects_divergence(self):
        market = make_market()
        market.purchase(V1, C1, "Chips", 10)
        events = list(market.events)
        events[-1]["payload"]["receipt"] = "Purchased 10 x Chips for 1 (discount 90%)"
        with pytest.raises(ReplayDivergedError):
            Market.replay("Night Market", events)

    def test_replay_unknown_event(self):
        with pytest.raises(ValueError, match="Unknown market event type"):
            Market.replay("M", [{"event_type": "market.x.y.v1", "payload": {}}])


# ══════════════════════════════════════════════════════════════
# DELETED MARKET
# ══════════════════════════════════════════════════════════════

class TestDeletedMarket:
    def test_non_empty_market_can_be_deleted(self):
        market = make_market()
        delete_market(market)
        assert market.deleted

    def test_operations_refused_after_delete(self):
        market = make_market()
        delete_market(market)
        with pytest.raises(MarketDeletedError):
            market.purchase(V1, C1, "Chips", 1)
        with pytest.raises(MarketDeletedError):
            market.register_vendor(2, "Late")
        with pytest.raises(MarketDeletedError):
            market.describe_customer(C1)


# ══════════════════════════════════════════════════════════════
# SERIALIZED ACCESS
# ══════════════════════════════════════════════════════════════

class TestSingleWriterBoundary:
    def test_concurrent_purchases_never_oversell(self):
        market = make_market(stock=100)
        for cid in range(20, 28):
            market.register_customer(cid, f"Buyer {cid}")
        sold = []

        def worker(cid):
            for _ in range(10):
                try:
                    market.purchase(V1, cid, "Chips", 3)
                    sold.append(3)
                except ItemUnavailableError:
                    pass

        threads = [threading.Thread(target=worker, args=(cid,)) for cid in range(20, 28)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert market.stock_of(V1, "Chips") == 100 - sum(sold)
        assert market.stock_of(V1, "Chips") >= 0
        assert market.vendor(V1).total_units_sold == sum(sold)

    def test_event_count_waits_for_market_lock(self):
        market = make_market()
        counts = []
        reader = threading.Thread(target=lambda: counts.append(market.event_count))
        with market._lock:
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            assert counts == []
        reader.join(timeout=5)
        assert counts == [len(market.events)]
