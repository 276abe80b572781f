"""
Ledger Market Engine — Event Types and Payload Builders
=========================================================
Every successful market mutation is journaled as
{"event_type": ..., "payload": ...}.

Replaying a journal on a fresh market rebuilds identical state
and identical receipts.
"""

from __future__ import annotations

from engines.purchase.services import PurchaseReceipt


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

MARKET_VENDOR_REGISTERED_V1 = "market.vendor.registered.v1"
MARKET_VENDOR_DELETED_V1 = "market.vendor.deleted.v1"
MARKET_CUSTOMER_REGISTERED_V1 = "market.customer.registered.v1"
MARKET_CUSTOMER_DELETED_V1 = "market.customer.deleted.v1"
MARKET_STOCK_ADDED_V1 = "market.stock.added.v1"
MARKET_PURCHASE_COMPLETED_V1 = "market.purchase.completed.v1"

MARKET_EVENT_TYPES = (
    MARKET_VENDOR_REGISTERED_V1,
    MARKET_VENDOR_DELETED_V1,
    MARKET_CUSTOMER_REGISTERED_V1,
    MARKET_CUSTOMER_DELETED_V1,
    MARKET_STOCK_ADDED_V1,
    MARKET_PURCHASE_COMPLETED_V1,
)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def build_vendor_registered_payload(vendor_id: int, name: str) -> dict:
    return {"vendor_id": vendor_id, "name": name}


def build_vendor_deleted_payload(vendor_id: int) -> dict:
    return {"vendor_id": vendor_id}


def build_customer_registered_payload(customer_id: int, name: str) -> dict:
    return {"customer_id": customer_id, "name": name}


def build_customer_deleted_payload(customer_id: int) -> dict:
    return {"customer_id": customer_id}


def build_stock_added_payload(vendor_id: int, item: str, quantity: int) -> dict:
    return {"vendor_id": vendor_id, "item": item, "quantity": quantity}


def build_purchase_completed_payload(receipt: PurchaseReceipt) -> dict:
    payload = receipt.to_dict()
    payload["receipt"] = receipt.text
    return payload


def make_event(event_type: str, payload: dict) -> dict:
    if event_type not in MARKET_EVENT_TYPES:
        raise ValueError(f"Unknown market event type: {event_type}")
    return {"event_type": event_type, "payload": payload}
