"""
Ledger Command Layer — Rejections
====================================
Policies return RejectionReason or None. Nothing else.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "ReasonCode",
    "RejectionReason",
]
