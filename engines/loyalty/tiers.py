"""
Ledger Loyalty Engine — Tier Definitions
===========================================
Closed, ordered set of loyalty tiers with their fixed discounts.

Casual (0%) < Fanatic (5%) < Legend (15%)

The set is exhaustive. New tiers are a code change, not configuration.
"""

from __future__ import annotations

from enum import Enum


# ══════════════════════════════════════════════════════════════
# TIER ENUM
# ══════════════════════════════════════════════════════════════

class LoyaltyTier(Enum):
    """Loyalty tier. Value is (rank, label, discount_percent)."""
    CASUAL = (0, "Casual", 0)
    FANATIC = (1, "Fanatic", 5)
    LEGEND = (2, "Legend", 15)

    def __init__(self, rank: int, label: str, discount_percent: int):
        self.rank = rank
        self.label = label
        self.discount_percent = discount_percent

    def __str__(self) -> str:
        return self.label


STARTING_TIER = LoyaltyTier.CASUAL

# Highest threshold first. A total at or above the threshold earns the tier.
PROMOTION_THRESHOLDS = (
    (500, LoyaltyTier.LEGEND),
    (100, LoyaltyTier.FANATIC),
)
