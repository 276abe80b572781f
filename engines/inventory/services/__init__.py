"""
Ledger Inventory Engine — Vendor Inventory
=============================================
Per-vendor mapping of item name → quantity on hand.

Rules:
- Stocking is additive (insert-or-accumulate)
- A sale decrements exactly the requested quantity
- No operation leaves a negative quantity
- Accumulation past the counter ceiling is fatal, not input error
- A line that reaches zero stays tracked at zero
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from core.config.settings import U64_MAX
from core.errors import (
    InvalidItem,
    LedgerInvariantError,
    error_from_rejection,
)
from engines.inventory.commands import (
    INVENTORY_STOCK_ADD_REQUEST,
    INVENTORY_STOCK_TAKE_REQUEST,
    StockRequest,
)
from engines.inventory.policies import (
    positive_quantity_policy,
    stock_available_policy,
)

logger = logging.getLogger("ledger.inventory")


def check_item_name(item) -> None:
    if not item or not isinstance(item, str):
        raise InvalidItem(item)


def check_counter(counter: str, current: int, delta: int, ceiling: int) -> None:
    """Raise LedgerInvariantError if current + delta would pass the ceiling."""
    if current + delta > ceiling:
        logger.error(
            f"Counter overflow on {counter}: {current} + {delta} > {ceiling}"
        )
        raise LedgerInvariantError(counter, current, delta, ceiling)


class VendorInventory:
    """In-memory item lines for one vendor."""

    def __init__(self, counter_ceiling: int = U64_MAX):
        self._lines: Dict[str, int] = {}
        self._counter_ceiling = counter_ceiling

    # ── Mutations ──────────────────────────────────────────────

    def add_stock(self, item: str, quantity: int) -> int:
        """
        Add units to an item line, creating it if needed.

        Returns:
            New quantity on hand.

        Raises:
            InvalidItem:           Empty or non-string item name.
            InvalidQuantityError:  quantity ≤ 0.
            LedgerInvariantError:  Accumulation past the counter ceiling.
        """
        check_item_name(item)
        request = StockRequest(
            item=item, quantity=quantity,
            command_type=INVENTORY_STOCK_ADD_REQUEST,
        )
        rejection = positive_quantity_policy(request)
        if rejection is not None:
            raise error_from_rejection(rejection, quantity=quantity)

        current = self._lines.get(item, 0)
        check_counter(f"stock[{item}]", current, quantity, self._counter_ceiling)
        self._lines[item] = current + quantity
        return self._lines[item]

    def take_stock(self, item: str, quantity: int) -> int:
        """
        Remove units sold from an item line.

        Returns:
            Remaining quantity on hand.

        Raises:
            InvalidQuantityError:  quantity ≤ 0.
            ItemUnavailableError:  Item not tracked, or on hand < quantity.
        """
        self.ensure_available(item, quantity)
        self._lines[item] -= quantity
        return self._lines[item]

    def ensure_available(self, item: str, quantity: int) -> None:
        """Raise unless take_stock(item, quantity) would succeed. No mutation."""
        request = StockRequest(
            item=item, quantity=quantity,
            command_type=INVENTORY_STOCK_TAKE_REQUEST,
        )
        rejection = positive_quantity_policy(request)
        if rejection is None:
            rejection = stock_available_policy(request, stock_lookup=self.lookup)
        if rejection is not None:
            raise error_from_rejection(
                rejection,
                item=item,
                quantity=quantity,
                on_hand=self.quantity_of(item),
            )

    # ── Queries ────────────────────────────────────────────────

    def lookup(self, item: str) -> Optional[int]:
        """Quantity on hand, or None if the item was never stocked."""
        return self._lines.get(item)

    def quantity_of(self, item: str) -> int:
        return self._lines.get(item, 0)

    def items(self) -> Dict[str, int]:
        """Sorted copy of all item lines."""
        return {item: self._lines[item] for item in sorted(self._lines)}

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def counter_ceiling(self) -> int:
        return self._counter_ceiling
