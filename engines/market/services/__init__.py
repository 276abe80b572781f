"""
Ledger Market Engine — Market Aggregate
==========================================
Top-level container owning the vendor and customer registries.

Lifecycle:
    1. create_market(name)           — empty registries
    2. register / stock / purchase   — journaled mutations
    3. delete_market(market)         — market refuses further operations

Rules:
- One lock per market; every operation runs inside it
- Vendor / customer IDs are caller-chosen and unique per registry
- Deleting a market with vendors or customers is allowed
- Only snapshots leave the aggregate, never live records
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Iterable, List, Optional, Tuple

from core.config.settings import DEFAULT_SETTINGS, LedgerSettings
from core.errors import MarketDeletedError
from core.object_store import ObjectStore
from core.registry import IdentifierRegistry
from engines.market.events import (
    MARKET_CUSTOMER_DELETED_V1,
    MARKET_CUSTOMER_REGISTERED_V1,
    MARKET_PURCHASE_COMPLETED_V1,
    MARKET_STOCK_ADDED_V1,
    MARKET_VENDOR_DELETED_V1,
    MARKET_VENDOR_REGISTERED_V1,
    build_customer_deleted_payload,
    build_customer_registered_payload,
    build_purchase_completed_payload,
    build_stock_added_payload,
    build_vendor_deleted_payload,
    build_vendor_registered_payload,
    make_event,
)
from engines.market.records import (
    CustomerRecord,
    CustomerSnapshot,
    VendorRecord,
    VendorSnapshot,
    check_name,
)
from engines.purchase.commands import PurchaseRequest
from engines.purchase.services import PurchaseReceipt, execute_purchase

logger = logging.getLogger("ledger.market")


class ReplayDivergedError(Exception):
    """A replayed purchase produced a different receipt than journaled."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Replay diverged: journal has '{expected}', replay produced '{actual}'."
        )


# ══════════════════════════════════════════════════════════════
# MARKET AGGREGATE
# ══════════════════════════════════════════════════════════════

class Market:
    """
    Marketplace ledger aggregate.

    Usage:
        market = create_market("Night Market")
        market.register_vendor(1, "Snack Stand")
        market.add_stock(1, "Chips", 50)
        market.register_customer(7, "Ana")
        market.purchase(1, 7, "Chips", 10)
        # 'Purchased 10 x Chips for 10 (discount 0%)'
    """

    def __init__(
        self,
        name: str,
        settings: Optional[LedgerSettings] = None,
        market_id: Optional[str] = None,
    ):
        check_name(name)
        self._name = name
        self._settings = settings or DEFAULT_SETTINGS
        self._market_id = market_id
        self._owner: Optional[str] = None
        self._vendors: IdentifierRegistry[VendorRecord] = IdentifierRegistry(
            "vendor", self._settings.max_identifier,
        )
        self._customers: IdentifierRegistry[CustomerRecord] = IdentifierRegistry(
            "customer", self._settings.max_identifier,
        )
        self._events: List[dict] = []
        self._deleted = False
        self._lock = Lock()

    # ── Identity / lifecycle ──────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def market_id(self) -> Optional[str]:
        return self._market_id

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @property
    def deleted(self) -> bool:
        return self._deleted

    def bind_identity(self, market_id: str) -> None:
        with self._lock:
            if self._market_id is not None and self._market_id != market_id:
                raise ValueError(
                    f"Market '{self._name}' already bound to {self._market_id}."
                )
            self._market_id = market_id

    def assign_owner(self, owner: str) -> None:
        with self._lock:
            self._ensure_live()
            self._owner = owner

    def delete_market(self) -> None:
        with self._lock:
            self._ensure_live()
            self._deleted = True
        logger.info(
            f"Market '{self._name}' deleted with {len(self._vendors)} vendors "
            f"and {len(self._customers)} customers"
        )

    def _ensure_live(self) -> None:
        if self._deleted:
            raise MarketDeletedError(self._name)

    def _journal(self, event_type: str, payload: dict) -> None:
        self._events.append(make_event(event_type, payload))

    # ── Vendors ───────────────────────────────────────────────

    def register_vendor(self, vendor_id: int, name: str) -> None:
        """Raises DuplicateIdError if vendor_id is taken."""
        record = VendorRecord.create(name, self._settings.counter_ceiling)
        with self._lock:
            self._ensure_live()
            self._vendors.insert(vendor_id, record)
            self._journal(
                MARKET_VENDOR_REGISTERED_V1,
                build_vendor_registered_payload(vendor_id, name),
            )
        logger.info(f"Vendor registered: {vendor_id} ({name})")

    def delete_vendor(self, vendor_id: int) -> None:
        """Remove a vendor and discard its inventory."""
        with self._lock:
            self._ensure_live()
            record = self._vendors.remove(vendor_id)
            self._journal(
                MARKET_VENDOR_DELETED_V1,
                build_vendor_deleted_payload(vendor_id),
            )
        logger.info(
            f"Vendor deleted: {vendor_id} ({record.name}), "
            f"{record.inventory.line_count} item lines discarded"
        )

    def add_stock(self, vendor_id: int, item: str, quantity: int) -> int:
        """
        Stock units of an item at a vendor.

        Vendor existence is checked before quantity.

        Returns:
            New quantity on hand.
        """
        with self._lock:
            self._ensure_live()
            on_hand = self._vendors.get(vendor_id).inventory.add_stock(item, quantity)
            self._journal(
                MARKET_STOCK_ADDED_V1,
                build_stock_added_payload(vendor_id, item, quantity),
            )
        logger.info(f"Stock added: vendor={vendor_id} {quantity} x {item} → {on_hand}")
        return on_hand

    def vendor(self, vendor_id: int) -> VendorSnapshot:
        with self._lock:
            self._ensure_live()
            return self._vendors.get(vendor_id).snapshot(vendor_id)

    def stock_of(self, vendor_id: int, item: str) -> int:
        with self._lock:
            self._ensure_live()
            return self._vendors.get(vendor_id).inventory.quantity_of(item)

    def describe_vendor(self, vendor_id: int) -> str:
        with self._lock:
            self._ensure_live()
            return self._vendors.get(vendor_id).describe()

    def vendor_ids(self) -> Tuple[int, ...]:
        with self._lock:
            return self._vendors.ids()

    # ── Customers ─────────────────────────────────────────────

    def register_customer(self, customer_id: int, name: str) -> None:
        """New customers start Casual with no history."""
        record = CustomerRecord.create(name, self._settings.history_limit)
        with self._lock:
            self._ensure_live()
            self._customers.insert(customer_id, record)
            self._journal(
                MARKET_CUSTOMER_REGISTERED_V1,
                build_customer_registered_payload(customer_id, name),
            )
        logger.info(f"Customer registered: {customer_id} ({name})")

    def delete_customer(self, customer_id: int) -> None:
        with self._lock:
            self._ensure_live()
            record = self._customers.remove(customer_id)
            self._journal(
                MARKET_CUSTOMER_DELETED_V1,
                build_customer_deleted_payload(customer_id),
            )
        logger.info(f"Customer deleted: {customer_id} ({record.name})")

    def customer(self, customer_id: int) -> CustomerSnapshot:
        with self._lock:
            self._ensure_live()
            return self._customers.get(customer_id).snapshot(customer_id)

    def describe_customer(self, customer_id: int) -> str:
        """'{name}: tier {Label}, {total} units purchased'. Read-only."""
        with self._lock:
            self._ensure_live()
            return self._customers.get(customer_id).describe()

    def purchase_history(self, customer_id: int) -> Tuple[str, ...]:
        with self._lock:
            self._ensure_live()
            return tuple(self._customers.get(customer_id).purchase_history)

    def customer_ids(self) -> Tuple[int, ...]:
        with self._lock:
            return self._customers.ids()

    # ── Purchase ──────────────────────────────────────────────

    def purchase_with_receipt(
        self, vendor_id: int, customer_id: int, item: str, quantity: int,
    ) -> PurchaseReceipt:
        request = PurchaseRequest(
            vendor_id=vendor_id,
            customer_id=customer_id,
            item=item,
            quantity=quantity,
        )
        with self._lock:
            self._ensure_live()
            receipt = execute_purchase(
                self._vendors,
                self._customers,
                request,
                counter_ceiling=self._settings.counter_ceiling,
            )
            self._journal(
                MARKET_PURCHASE_COMPLETED_V1,
                build_purchase_completed_payload(receipt),
            )
        return receipt

    def purchase(
        self, vendor_id: int, customer_id: int, item: str, quantity: int,
    ) -> str:
        """Run a purchase transaction and return the receipt text."""
        return self.purchase_with_receipt(vendor_id, customer_id, item, quantity).text

    # ── Journal / snapshot ────────────────────────────────────

    @property
    def events(self) -> Tuple[dict, ...]:
        with self._lock:
            return tuple(
                {"event_type": e["event_type"], "payload": dict(e["payload"])}
                for e in self._events
            )

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "name": self._name,
                "market_id": self._market_id,
                "owner": self._owner,
                "deleted": self._deleted,
                "vendors": [
                    record.snapshot(vid).to_dict()
                    for vid, record in self._vendors.items()
                ],
                "customers": [
                    record.snapshot(cid).to_dict()
                    for cid, record in self._customers.items()
                ],
            }

    @classmethod
    def replay(
        cls,
        name: str,
        events: Iterable[dict],
        settings: Optional[LedgerSettings] = None,
    ) -> Market:
        """
        Rebuild a market by re-running a journal on a fresh aggregate.

        Purchases are re-executed, not copied; a receipt that differs
        from the journaled one raises ReplayDivergedError.
        """
        market = cls(name, settings=settings)
        for event in events:
            event_type = event["event_type"]
            payload = event["payload"]
            if event_type == MARKET_VENDOR_REGISTERED_V1:
                market.register_vendor(payload["vendor_id"], payload["name"])
            elif event_type == MARKET_VENDOR_DELETED_V1:
                market.delete_vendor(payload["vendor_id"])
            elif event_type == MARKET_CUSTOMER_REGISTERED_V1:
                market.register_customer(payload["customer_id"], payload["name"])
            elif event_type == MARKET_CUSTOMER_DELETED_V1:
                market.delete_customer(payload["customer_id"])
            elif event_type == MARKET_STOCK_ADDED_V1:
                market.add_stock(payload["vendor_id"], payload["item"], payload["quantity"])
            elif event_type == MARKET_PURCHASE_COMPLETED_V1:
                text = market.purchase(
                    payload["vendor_id"], payload["customer_id"],
                    payload["item"], payload["quantity"],
                )
                if text != payload["receipt"]:
                    raise ReplayDivergedError(payload["receipt"], text)
            else:
                raise ValueError(f"Unknown market event type: {event_type}")
        logger.info(f"Market '{name}' replayed from {market.event_count} events")
        return market


# ══════════════════════════════════════════════════════════════
# LIFECYCLE FUNCTIONS
# ══════════════════════════════════════════════════════════════

def create_market(
    name: str,
    settings: Optional[LedgerSettings] = None,
    store: Optional[ObjectStore] = None,
) -> Market:
    """
    Create a market with empty registries.

    With a store, the market receives a durable identity and is saved.
    """
    market = Market(name, settings=settings)
    if store is not None:
        market.bind_identity(store.allocate_id())
        store.save(market)
    logger.info(f"Market created: '{name}' (id={market.market_id})")
    return market


def delete_market(market: Market, store: Optional[ObjectStore] = None) -> None:
    """
    Delete a market. Non-empty registries do not block deletion.

    With a store and a bound identity, the identity is released. A store
    that does not hold the market raises MarketNotFoundError and the
    market stays live.
    """
    bound = store is not None and market.market_id is not None
    if bound and not market.deleted:
        store.load(market.market_id)
    market.delete_market()
    if bound:
        store.release(market.market_id)
