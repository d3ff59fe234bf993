"""
Subscription Domain Models

Domain models for subscription management following Clean Architecture.
Tier enum, the entitlement catalog, and the DTOs of the subscription
bounded context.
"""

from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base DTO serialized with camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubscriptionTier(str, Enum):
    """Subscription tier levels."""
    TRIAL = "trial"
    PRO = "pro"
    ULTRA_PRO = "ultra_pro"


class BillingPeriod(str, Enum):
    """Billing period for subscriptions."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ContentType(str, Enum):
    """Kinds of content a post can carry."""
    IMAGE = "image"
    VIDEO = "video"
    CAROUSEL = "carousel"
    TEXT = "text"
    REEL = "reel"
    STORY = "story"


ALL_CONTENT_TYPES = frozenset(ContentType)


# =============================================================================
# Entitlement Catalog
# =============================================================================

class EntitlementProfile(BaseModel):
    """
    Limits and capability flags granted by a tier.

    ``None`` limits mean unlimited.
    """
    model_config = ConfigDict(frozen=True)

    daily_posts: Optional[int]
    platforms: Optional[int]
    content_types: frozenset[ContentType]
    can_schedule: bool
    has_analytics: bool


TIER_LIMITS: Mapping[SubscriptionTier, EntitlementProfile] = MappingProxyType({
    SubscriptionTier.TRIAL: EntitlementProfile(
        daily_posts=2,
        platforms=2,
        content_types=frozenset({ContentType.IMAGE}),
        can_schedule=False,
        has_analytics=False,
    ),
    SubscriptionTier.PRO: EntitlementProfile(
        daily_posts=50,
        platforms=5,
        content_types=ALL_CONTENT_TYPES,
        can_schedule=True,
        has_analytics=False,
    ),
    SubscriptionTier.ULTRA_PRO: EntitlementProfile(
        daily_posts=None,
        platforms=None,
        content_types=ALL_CONTENT_TYPES,
        can_schedule=True,
        has_analytics=True,
    ),
})


def limits_for(tier: SubscriptionTier) -> EntitlementProfile:
    """Get the entitlement profile for a tier."""
    return TIER_LIMITS[SubscriptionTier(tier)]


def effective_daily_limit(
    tier: SubscriptionTier,
    pro_post_limit: Optional[int] = None,
) -> Optional[int]:
    """
    Daily post limit after applying the per-user override.

    Only the pro tier honours ``pro_post_limit``; trial and ultra_pro
    always use the catalog value. ``None`` means unlimited.
    """
    tier = SubscriptionTier(tier)
    if tier == SubscriptionTier.PRO and pro_post_limit is not None:
        return pro_post_limit
    return TIER_LIMITS[tier].daily_posts


def effective_limits(
    tier: SubscriptionTier,
    pro_post_limit: Optional[int] = None,
) -> EntitlementProfile:
    """Entitlement profile with the pro override folded into ``daily_posts``."""
    profile = limits_for(tier)
    return profile.model_copy(
        update={"daily_posts": effective_daily_limit(tier, pro_post_limit)}
    )


# =============================================================================
# Pricing (Business Logic)
# =============================================================================

class Plan(CamelModel):
    """Pricing and limits for a single tier."""
    tier: SubscriptionTier
    name: str
    description: str
    monthly_price: int  # In cents
    yearly_price: int  # In cents
    daily_post_limit: Optional[int] = None
    platform_limit: Optional[int] = None
    features: list[str] = Field(default_factory=list)


PLANS: Mapping[SubscriptionTier, Plan] = MappingProxyType({
    SubscriptionTier.TRIAL: Plan(
        tier=SubscriptionTier.TRIAL,
        name="Liftx Trial",
        description="2 posts/day, 2 platforms, images only",
        monthly_price=0,
        yearly_price=0,
        daily_post_limit=2,
        platform_limit=2,
        features=["2 posts per day", "Up to 2 platforms per post", "Image posts"],
    ),
    SubscriptionTier.PRO: Plan(
        tier=SubscriptionTier.PRO,
        name="Liftx Pro",
        description="50 posts/day, 5 platforms, all content types, scheduling",
        monthly_price=1900,
        yearly_price=18000,
        daily_post_limit=50,
        platform_limit=5,
        features=[
            "50 posts per day",
            "All 5 platforms",
            "All content types",
            "Scheduling",
        ],
    ),
    SubscriptionTier.ULTRA_PRO: Plan(
        tier=SubscriptionTier.ULTRA_PRO,
        name="Liftx Ultra Pro",
        description="Unlimited posts, all platforms, analytics, revenue metrics",
        monthly_price=4900,
        yearly_price=47000,
        daily_post_limit=None,
        platform_limit=None,
        features=[
            "Unlimited posts",
            "Unlimited platforms",
            "Real-time analytics",
            "Revenue metrics",
        ],
    ),
})


def get_plan_price(tier: SubscriptionTier, billing: BillingPeriod) -> int:
    """Price in cents for a tier and billing period."""
    plan = PLANS[tier]
    return plan.monthly_price if billing == BillingPeriod.MONTHLY else plan.yearly_price


# =============================================================================
# Read Models
# =============================================================================

class DailyUsage(CamelModel):
    """Consumed and remaining daily post allowance."""
    used: int
    limit: Optional[int] = None
    unlimited: bool
    remaining: Optional[int] = None


class DailyUsageResponse(DailyUsage):
    """Daily usage plus the tier it was computed for."""
    tier: SubscriptionTier


class SubscriptionView(CamelModel):
    """Derived subscription state for the compose and profile views."""
    tier: SubscriptionTier
    status: str
    expires_at: Optional[datetime] = None
    stripe_subscription_id: Optional[str] = None
    daily_used: int
    daily_limit: Optional[int] = None
    unlimited: bool
    platform_limit: Optional[int] = None
    allowed_content_types: list[ContentType]
    can_schedule: bool
    has_analytics: bool


# =============================================================================
# Request/Response DTOs
# =============================================================================

class CreateCheckoutRequest(CamelModel):
    """Request DTO for creating a checkout session."""
    tier: SubscriptionTier = Field(..., description="Paid tier to purchase")
    billing: BillingPeriod = Field(
        default=BillingPeriod.MONTHLY,
        description="Billing period (monthly or yearly)"
    )


class CheckoutResponse(CamelModel):
    """Response DTO for checkout session creation."""
    checkout_url: str


class SimulateUpgradeRequest(CamelModel):
    """Direct tier change (self-service downgrade or upgrade callback)."""
    tier: SubscriptionTier


class SimulateUpgradeResponse(CamelModel):
    success: bool = True
    tier: SubscriptionTier
