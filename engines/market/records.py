"""
Ledger Market Engine — Party Records
=======================================
Vendor and Customer records owned by the market registries.

Records are mutable and never leave the market. Callers receive
frozen snapshots built from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from core.config.settings import U64_MAX
from engines.inventory.services import VendorInventory
from engines.loyalty.tiers import STARTING_TIER, LoyaltyTier


def check_name(name) -> None:
    if not name or not isinstance(name, str):
        raise ValueError(f"name must be a non-empty string, got {name!r}.")


# ══════════════════════════════════════════════════════════════
# VENDOR
# ══════════════════════════════════════════════════════════════

@dataclass
class VendorRecord:
    name: str
    inventory: VendorInventory = field(default_factory=VendorInventory)
    total_units_sold: int = 0

    @classmethod
    def create(cls, name: str, counter_ceiling: int = U64_MAX) -> VendorRecord:
        check_name(name)
        return cls(name=name, inventory=VendorInventory(counter_ceiling))

    def snapshot(self, vendor_id: int) -> VendorSnapshot:
        return VendorSnapshot(
            vendor_id=vendor_id,
            name=self.name,
            inventory=tuple(self.inventory.items().items()),
            total_units_sold=self.total_units_sold,
        )

    def describe(self) -> str:
        return (
            f"{self.name}: {self.inventory.line_count} item lines, "
            f"{self.total_units_sold} units sold"
        )


@dataclass(frozen=True)
class VendorSnapshot:
    vendor_id: int
    name: str
    inventory: Tuple[Tuple[str, int], ...]
    total_units_sold: int

    def stock_of(self, item: str) -> int:
        return dict(self.inventory).get(item, 0)

    def to_dict(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "name": self.name,
            "inventory": dict(self.inventory),
            "total_units_sold": self.total_units_sold,
        }


# ══════════════════════════════════════════════════════════════
# CUSTOMER
# ══════════════════════════════════════════════════════════════

@dataclass
class CustomerRecord:
    name: str
    tier: LoyaltyTier = STARTING_TIER
    total_units_purchased: int = 0
    purchase_history: List[str] = field(default_factory=list)
    history_limit: Optional[int] = None

    @classmethod
    def create(cls, name: str, history_limit: Optional[int] = None) -> CustomerRecord:
        check_name(name)
        return cls(name=name, history_limit=history_limit)

    def record_purchase(self, line: str) -> None:
        self.purchase_history.append(line)
        if self.history_limit is not None and len(self.purchase_history) > self.history_limit:
            del self.purchase_history[: len(self.purchase_history) - self.history_limit]

    def snapshot(self, customer_id: int) -> CustomerSnapshot:
        return CustomerSnapshot(
            customer_id=customer_id,
            name=self.name,
            tier=self.tier,
            total_units_purchased=self.total_units_purchased,
            purchase_history=tuple(self.purchase_history),
        )

    def describe(self) -> str:
        return (
            f"{self.name}: tier {self.tier.label}, "
            f"{self.total_units_purchased} units purchased"
        )


@dataclass(frozen=True)
class CustomerSnapshot:
    customer_id: int
    name: str
    tier: LoyaltyTier
    total_units_purchased: int
    purchase_history: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "name": self.name,
            "tier": self.tier.label,
            "total_units_purchased": self.total_units_purchased,
            "purchase_history": list(self.purchase_history),
        }
