"""
Discount Rules - Matches condition discount tiers and payment discounts.

Used by the pricing engine to pick exactly one condition discount
for an order from its customer category and campaign length.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from .models import CustomerCategory, PaymentTiming


BEFORE_AIRING_DISCOUNT_PERCENT = 5


@dataclass(frozen=True)
class DiscountTier:
    """A condition discount tier."""
    tier_id: str
    name: str
    categories: frozenset
    min_months: Decimal
    percent: int
    priority: int


@dataclass
class MatchedTier:
    """A tier that matched with context."""
    tier_id: str
    name: str
    priority: int
    percent: int
    match_reason: str


_DURATION_CATEGORIES = frozenset({CustomerCategory.PRIVATE, CustomerCategory.STATE_ENTERPRISE})

# Lower priority wins; duration tiers are ordered highest threshold first.
DEFAULT_CONDITION_TIERS = (
    DiscountTier("GOV-FLAT", "Government flat rate",
                 frozenset({CustomerCategory.GOVERNMENT}), Decimal(0), 40, 10),
    DiscountTier("DUR-6M", "Campaign of 6 months or more",
                 _DURATION_CATEGORIES, Decimal(6), 30, 20),
    DiscountTier("DUR-3M", "Campaign of 3 months or more",
                 _DURATION_CATEGORIES, Decimal(3), 25, 30),
    DiscountTier("DUR-2M", "Campaign of 2 months or more",
                 _DURATION_CATEGORIES, Decimal(2), 20, 40),
)


class DiscountMatcher:
    """
    Matches condition discount tiers against order context.

    Tiers are immutable and evaluated in priority order; the first
    match is the one applied.
    """

    def __init__(self, tiers: Optional[Iterable[DiscountTier]] = None):
        self.tiers = tuple(sorted(tiers or DEFAULT_CONDITION_TIERS, key=lambda t: t.priority))

    def find_matching_tiers(
        self,
        category: CustomerCategory,
        campaign_months: Decimal,
    ) -> list[MatchedTier]:
        """
        Find all tiers that match the given context.

        Returns tiers sorted by priority (lower = higher priority).
        """
        matched = []
        for tier in self.tiers:
            if category not in tier.categories:
                continue
            if campaign_months < tier.min_months:
                continue

            reasons = [f"category={category.value}"]
            if tier.min_months:
                reasons.append(f"months>={tier.min_months}")

            matched.append(MatchedTier(
                tier_id=tier.tier_id,
                name=tier.name,
                priority=tier.priority,
                percent=tier.percent,
                match_reason=", ".join(reasons),
            ))
        return matched

    def condition_discount(
        self,
        category: CustomerCategory,
        campaign_months: Decimal,
    ) -> tuple[int, Optional[MatchedTier]]:
        """Return (percent, applied tier); (0, None) when nothing matches."""
        matched = self.find_matching_tiers(category, campaign_months)
        if not matched:
            return 0, None
        return matched[0].percent, matched[0]


def payment_discount_percent(timing: PaymentTiming) -> int:
    """Prepayment before airing earns a flat extra discount."""
    if timing == PaymentTiming.BEFORE_AIRING:
        return BEFORE_AIRING_DISCOUNT_PERCENT
    return 0
