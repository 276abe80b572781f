"""
Ledger Loyalty Engine — Tier Engine
======================================
Pure functions over cumulative purchase volume.

Rules:
- Promotion is evaluated AFTER the purchase's units are folded in
- The discount charged is read from the tier BEFORE promotion
- Tiers never regress (promotion-only)
- One large purchase may skip a tier (90 + 510 → Legend)
- Charged cost uses integer floor division
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from engines.loyalty.tiers import PROMOTION_THRESHOLDS, LoyaltyTier

logger = logging.getLogger("ledger.loyalty")


# ══════════════════════════════════════════════════════════════
# TIER DECISION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TierDecision:
    """Outcome of one promotion evaluation."""
    previous: LoyaltyTier
    current: LoyaltyTier
    total_units: int

    @property
    def promoted(self) -> bool:
        return self.current is not self.previous


# ══════════════════════════════════════════════════════════════
# TIER ENGINE
# ══════════════════════════════════════════════════════════════

def threshold_tier(total_units: int) -> Optional[LoyaltyTier]:
    """Highest tier whose threshold the total reaches, or None."""
    for threshold, tier in PROMOTION_THRESHOLDS:
        if total_units >= threshold:
            return tier
    return None


def evaluate_promotion(current: LoyaltyTier, total_units: int) -> TierDecision:
    """
    Decide the tier for an updated cumulative total.

    The threshold tier only applies when it ranks above the current
    tier; below every threshold the current tier is kept.
    """
    earned = threshold_tier(total_units)
    new_tier = current
    if earned is not None and earned.rank > current.rank:
        new_tier = earned
    logger.debug(
        f"Tier evaluation: total={total_units} "
        f"{current.label} → {new_tier.label}"
    )
    return TierDecision(previous=current, current=new_tier, total_units=total_units)


def discount_for(tier: LoyaltyTier) -> int:
    return tier.discount_percent


def charged_amount(quantity: int, discount_percent: int) -> int:
    """floor(quantity * (100 - discount) / 100)."""
    if not 0 <= discount_percent <= 100:
        raise ValueError(
            f"discount_percent must be between 0 and 100, got {discount_percent}."
        )
    return quantity * (100 - discount_percent) // 100
