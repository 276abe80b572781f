"""
Ledger Inventory Engine — Request Commands
============================================
Typed stock requests evaluated by inventory policies.

Requests carry caller input as given. Quantity validation is a
policy, not a constructor check, so precondition order stays in
the hands of the operation that evaluates them.
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_STOCK_ADD_REQUEST = "inventory.stock.add.request"
INVENTORY_STOCK_TAKE_REQUEST = "inventory.stock.take.request"

INVENTORY_COMMAND_TYPES = frozenset({
    INVENTORY_STOCK_ADD_REQUEST,
    INVENTORY_STOCK_TAKE_REQUEST,
})


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockRequest:
    """Request to add or take units of one item line."""
    item: str
    quantity: int
    command_type: str = INVENTORY_STOCK_ADD_REQUEST

    def __post_init__(self):
        if self.command_type not in INVENTORY_COMMAND_TYPES:
            raise ValueError(f"Invalid command_type: {self.command_type}")
