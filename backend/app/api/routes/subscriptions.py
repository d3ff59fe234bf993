"""
Subscription API Routes

Plans, the current subscription view, hosted checkout and direct
tier changes.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from app.api.dependencies import CurrentUserDep, SubscriptionProjectionDep, UserRepoDep
from app.config.settings import get_settings
from app.domain.subscription import (
    PLANS,
    CheckoutResponse,
    CreateCheckoutRequest,
    Plan,
    SimulateUpgradeRequest,
    SimulateUpgradeResponse,
    SubscriptionTier,
    SubscriptionView,
)
from app.infrastructure.notifications import OwnerNotifier, get_owner_notifier
from app.infrastructure.payments.stripe_service import (
    StripeService,
    get_stripe_service,
)


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Plans & Status
# =============================================================================

@router.get("/subscriptions/plans", response_model=list[Plan])
async def get_plans():
    """Public pricing and limits for every tier."""
    return list(PLANS.values())


@router.get("/subscriptions/current", response_model=SubscriptionView)
async def get_current_subscription(
    user: CurrentUserDep,
    projection: SubscriptionProjectionDep,
):
    """
    Get the current user's subscription view.

    Limits and usage are derived from the tier on every call.
    """
    return await projection.current_view(user)


# =============================================================================
# Checkout
# =============================================================================

@router.post("/subscriptions/checkout", response_model=CheckoutResponse)
async def create_checkout_session(
    request: CreateCheckoutRequest,
    http_request: Request,
    user: CurrentUserDep,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """
    Create a Stripe Checkout session for a paid tier.

    The tier is applied later by the ``checkout.session.completed`` webhook.

    Returns:
        CheckoutResponse with the hosted checkout URL
    """
    if request.tier == SubscriptionTier.TRIAL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot purchase the trial tier"
        )

    origin = http_request.headers.get("origin") or get_settings().frontend_url
    checkout_url = await stripe_service.create_checkout_session(
        user=user,
        tier=request.tier,
        billing=request.billing,
        origin=origin.rstrip("/"),
    )
    return CheckoutResponse(checkout_url=checkout_url)


# =============================================================================
# Direct tier change
# =============================================================================

@router.post("/subscriptions/simulate-upgrade", response_model=SimulateUpgradeResponse)
async def simulate_upgrade(
    request: SimulateUpgradeRequest,
    user: CurrentUserDep,
    users: UserRepoDep,
    background_tasks: BackgroundTasks,
    notifier: OwnerNotifier = Depends(get_owner_notifier),
):
    """
    Set the caller's tier without payment.

    Moving to trial is always allowed. Paid tiers require
    ALLOW_SIMULATED_UPGRADES; in production they go through checkout.
    """
    if request.tier != SubscriptionTier.TRIAL and not get_settings().allow_simulated_upgrades:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Paid tiers must be purchased through checkout"
        )

    await users.update_subscription(
        user.id,
        subscription_tier=request.tier,
        subscription_status="active",
    )
    logger.info(f"User {user.id} changed tier {user.subscription_tier.value} -> {request.tier.value}")

    if request.tier != SubscriptionTier.TRIAL:
        background_tasks.add_task(
            notifier.notify,
            f"Subscription Upgrade: {request.tier.value.upper()}",
            f"User {user.display_name} upgraded to {request.tier.value}.",
        )

    return SimulateUpgradeResponse(success=True, tier=request.tier)
