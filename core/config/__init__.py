"""
Ledger Core Config — Public API
==================================
Per-market numeric limits.
"""

from core.config.settings import (
    DEFAULT_SETTINGS,
    LedgerSettings,
    U16_MAX,
    U64_MAX,
)

__all__ = [
    "LedgerSettings",
    "DEFAULT_SETTINGS",
    "U16_MAX",
    "U64_MAX",
]
