"""
Stripe Webhook Handler

Handles Stripe webhook events for subscription lifecycle management.
Implements idempotent event processing backed by the database (survives restarts).

Critical Events:
- checkout.session.completed: Apply the purchased tier
- customer.subscription.updated: Sync status, subscription id and expiry
- customer.subscription.deleted: Downgrade to trial
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, HTTPException, status

from app.api.dependencies import UserRepoDep, WebhookEventRepoDep
from app.domain.repositories import IUserRepository
from app.domain.subscription import SubscriptionTier
from app.infrastructure.notifications import OwnerNotifier, get_owner_notifier
from app.infrastructure.payments.stripe_service import (
    StripeService,
    StripeServiceError,
    get_stripe_service,
)


logger = logging.getLogger(__name__)

router = APIRouter()

TEST_EVENT_PREFIX = "evt_test_"


# =============================================================================
# Webhook Endpoint
# =============================================================================

@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    users: UserRepoDep,
    events: WebhookEventRepoDep,
    background_tasks: BackgroundTasks,
    stripe_service: StripeService = Depends(get_stripe_service),
    notifier: OwnerNotifier = Depends(get_owner_notifier),
):
    """
    Handle Stripe webhook events.

    Verifies the signature and processes subscription lifecycle events.
    Processing failures return 500 so Stripe retries; the event is only
    recorded as processed when its handler succeeded.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    if not signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe signature"
        )

    try:
        event = stripe_service.verify_webhook_signature(payload, signature)
    except StripeServiceError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {e.message}"
        )

    event_id = event.get("id") or ""
    event_type = event.get("type") or ""

    if event_id.startswith(TEST_EVENT_PREFIX):
        logger.info(f"Test webhook event {event_id}, returning verification response")
        return {"verified": True}

    if await events.is_processed(event_id):
        logger.info(f"Event {event_id} already processed, skipping")
        return {"status": "already_processed"}

    logger.info(f"Processing webhook event: {event_type} ({event_id})")
    data = event.get("data", {}).get("object", {})

    try:
        if event_type == "checkout.session.completed":
            tier = await handle_checkout_completed(data, users)
            if tier is not None:
                user_id = data.get("metadata", {}).get("user_id")
                background_tasks.add_task(
                    notifier.notify,
                    f"New Subscription: {tier.value.upper()}",
                    f"User ID {user_id} subscribed to {tier.value} via Stripe.",
                )

        elif event_type == "customer.subscription.updated":
            await handle_subscription_updated(data, users)

        elif event_type == "customer.subscription.deleted":
            await handle_subscription_deleted(data, users)

        else:
            logger.info(f"Unhandled event type: {event_type}")

        await events.mark_processed(event_id, event_type)

    except Exception as e:
        logger.error(f"Error processing webhook {event_type} ({event_id}): {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed"
        ) from e

    return {"received": True}


# =============================================================================
# Event Handlers
# =============================================================================

def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _period_end(subscription_data: Dict[str, Any]) -> Optional[datetime]:
    """Current period end, read from the subscription or its first item."""
    period_end = subscription_data.get("current_period_end")
    if period_end is None:
        items = (subscription_data.get("items") or {}).get("data") or []
        if items:
            period_end = items[0].get("current_period_end")
    return _timestamp(period_end)


async def handle_checkout_completed(
    session: Dict[str, Any],
    users: IUserRepository,
) -> Optional[SubscriptionTier]:
    """
    Handle successful checkout session completion.

    Applies the purchased tier to the user named in the session metadata.

    Returns:
        The applied tier, or None when the session lacks usable metadata
    """
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id")
    tier_value = metadata.get("tier")

    if not user_id or not tier_value:
        logger.error("Checkout completed without user_id/tier in metadata")
        return None

    try:
        tier = SubscriptionTier(tier_value)
    except ValueError:
        logger.error(f"Checkout completed with unknown tier {tier_value!r}")
        return None

    updated = await users.update_subscription(
        int(user_id),
        subscription_tier=tier,
        stripe_customer_id=session.get("customer"),
        stripe_subscription_id=session.get("subscription"),
        subscription_status="active",
    )
    if updated is None:
        logger.warning(f"Checkout completed for unknown user {user_id}")
        return None

    logger.info(f"Activated {tier.value} subscription for user {user_id}")
    return tier


async def handle_subscription_updated(
    subscription_data: Dict[str, Any],
    users: IUserRepository,
) -> None:
    """Sync status, subscription id and period end by Stripe customer."""
    customer_id = subscription_data.get("customer")
    if not customer_id:
        return

    updated = await users.update_subscription_by_customer(
        customer_id,
        subscription_status=subscription_data.get("status") or "active",
        stripe_subscription_id=subscription_data.get("id"),
        subscription_expires_at=_period_end(subscription_data),
    )
    if updated:
        logger.info(f"Synced subscription updates for customer {customer_id}")


async def handle_subscription_deleted(
    subscription_data: Dict[str, Any],
    users: IUserRepository,
) -> None:
    """
    Handle subscription cancellation/deletion.

    Downgrades the customer to the trial tier.
    """
    customer_id = subscription_data.get("customer")
    if not customer_id:
        return

    updated = await users.update_subscription_by_customer(
        customer_id,
        subscription_tier=SubscriptionTier.TRIAL,
        subscription_status="cancelled",
        stripe_subscription_id=None,
    )
    if updated:
        logger.info(f"Downgraded customer {customer_id} to trial")
