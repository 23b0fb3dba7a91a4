"""Membership domain: tiers and Stripe status mapping."""
from enum import Enum
from typing import Optional


class MembershipTier(str, Enum):
    """Membership tiers, lowest first."""
    FREE = "free"
    SUPPORTER = "supporter"
    PRO = "pro"


PAID_TIERS = (MembershipTier.SUPPORTER, MembershipTier.PRO)


class SubscriptionStatus(str, Enum):
    """Subset of Stripe subscription statuses we act on."""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE_EXPIRED = "incomplete_expired"


# A subscription in one of these states no longer grants a paid tier
DOWNGRADE_STATUSES = frozenset(
    {
        SubscriptionStatus.CANCELED.value,
        SubscriptionStatus.UNPAID.value,
        SubscriptionStatus.INCOMPLETE_EXPIRED.value,
    }
)


def tier_for_price(price_id: Optional[str], prices: dict[str, str]) -> Optional[MembershipTier]:
    """Map a Stripe price id to a tier using the configured ``{tier: price_id}`` table."""
    if not price_id:
        return None
    for tier_name, configured in prices.items():
        if configured == price_id:
            return MembershipTier(tier_name)
    return None
