"""
Ledger Core Config — Settings
================================
Numeric limits for registries, counters and purchase history.

Loyalty thresholds and discounts are NOT configuration. The tier
set is closed and lives in engines/loyalty.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

U16_MAX = 0xFFFF
U64_MAX = 2 ** 64 - 1

ENV_COUNTER_CEILING = "LEDGER_COUNTER_CEILING"
ENV_HISTORY_LIMIT = "LEDGER_HISTORY_LIMIT"


@dataclass(frozen=True)
class LedgerSettings:
    """
    Per-market limits.

    Fields:
        max_identifier:  Largest registry key accepted (16-bit space).
        counter_ceiling: Largest value any unit counter may hold.
        history_limit:   Newest N purchase-history lines kept per
                         customer. None keeps everything.
    """

    max_identifier: int = U16_MAX
    counter_ceiling: int = U64_MAX
    history_limit: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0 < self.max_identifier <= U16_MAX:
            raise ValueError(
                f"max_identifier must be between 1 and {U16_MAX}, "
                f"got {self.max_identifier}."
            )
        if self.counter_ceiling <= 0:
            raise ValueError(
                f"counter_ceiling must be positive, got {self.counter_ceiling}."
            )
        if self.history_limit is not None and self.history_limit <= 0:
            raise ValueError(
                f"history_limit must be positive or None, got {self.history_limit}."
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> LedgerSettings:
        """Build settings from LEDGER_* environment variables."""
        env = os.environ if environ is None else environ
        ceiling = env.get(ENV_COUNTER_CEILING)
        history = env.get(ENV_HISTORY_LIMIT)
        return cls(
            counter_ceiling=int(ceiling) if ceiling else U64_MAX,
            history_limit=int(history) if history else None,
        )


DEFAULT_SETTINGS = LedgerSettings()
