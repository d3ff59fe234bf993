"""
Stripe Payment Service

Infrastructure service for Stripe payment processing.
Handles hosted checkout sessions and webhook signature verification.

- Hosted Checkout for minimal PCI burden
- Configured Price IDs when present, inline price data otherwise
- Webhook payloads are verified before they are parsed
"""

import json
import logging
from typing import Any, Dict, Optional

import stripe
from stripe import StripeError

from app.config.settings import get_settings
from app.domain.models import User
from app.domain.subscription import (
    PLANS,
    BillingPeriod,
    SubscriptionTier,
    get_plan_price,
)
from app.infrastructure.exceptions import BillingError


logger = logging.getLogger(__name__)

PAID_TIERS = (SubscriptionTier.PRO, SubscriptionTier.ULTRA_PRO)


class StripeServiceError(BillingError):
    """Base exception for Stripe service errors."""
    pass


class StripeService:
    """
    Stripe payment processing service.

    All methods are stateless; the price map is read once from settings.
    """

    def __init__(self):
        """Initialize Stripe with API key from settings."""
        settings = get_settings()
        self._api_key = settings.stripe_secret_key
        self._webhook_secret = settings.stripe_webhook_secret

        if self._api_key:
            stripe.api_key = self._api_key

        # Price ID mapping: (tier, period) -> stripe_price_id
        self._price_map = {
            (SubscriptionTier.PRO, BillingPeriod.MONTHLY): settings.stripe_price_id_pro_monthly,
            (SubscriptionTier.PRO, BillingPeriod.YEARLY): settings.stripe_price_id_pro_yearly,
            (SubscriptionTier.ULTRA_PRO, BillingPeriod.MONTHLY): settings.stripe_price_id_ultra_monthly,
            (SubscriptionTier.ULTRA_PRO, BillingPeriod.YEARLY): settings.stripe_price_id_ultra_yearly,
        }

    def _line_item(self, tier: SubscriptionTier, billing: BillingPeriod) -> Dict[str, Any]:
        """Build the checkout line item for a tier and billing period."""
        price_id = self._price_map.get((tier, billing))
        if price_id:
            return {"price": price_id, "quantity": 1}

        plan = PLANS[tier]
        return {
            "price_data": {
                "currency": "usd",
                "product_data": {
                    "name": plan.name,
                    "description": f"{plan.name} subscription, billed {billing.value}",
                },
                "unit_amount": get_plan_price(tier, billing),
                "recurring": {
                    "interval": "month" if billing == BillingPeriod.MONTHLY else "year",
                },
            },
            "quantity": 1,
        }

    # =========================================================================
    # Checkout Session (Subscription Flow)
    # =========================================================================

    async def create_checkout_session(
        self,
        user: User,
        tier: SubscriptionTier,
        billing: BillingPeriod,
        origin: str,
    ) -> str:
        """
        Create a Stripe Checkout Session for a paid tier.

        The user id and tier travel in metadata so the
        ``checkout.session.completed`` webhook can apply the upgrade.

        Args:
            user: Purchasing user
            tier: Paid tier to purchase
            billing: Monthly or yearly billing
            origin: Frontend origin for the redirect URLs

        Returns:
            Hosted checkout URL

        Raises:
            StripeServiceError: unpaid tier or Stripe rejected the request
        """
        if tier not in PAID_TIERS:
            raise StripeServiceError(
                f"Checkout is only available for paid tiers, got {tier.value}",
                details={"tier": tier.value},
            )
        if not self._api_key:
            raise StripeServiceError("Stripe is not configured")

        metadata = {
            "user_id": str(user.id),
            "customer_email": user.email or "",
            "customer_name": user.name or "User",
            "tier": tier.value,
            "billing": billing.value,
        }

        params: Dict[str, Any] = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "allow_promotion_codes": True,
            "client_reference_id": str(user.id),
            "metadata": metadata,
            "subscription_data": {"metadata": {"user_id": str(user.id), "tier": tier.value}},
            "line_items": [self._line_item(tier, billing)],
            "success_url": f"{origin}/subscription?success=true&tier={tier.value}",
            "cancel_url": f"{origin}/subscription?cancelled=true",
        }
        if user.stripe_customer_id:
            params["customer"] = user.stripe_customer_id
        elif user.email:
            params["customer_email"] = user.email

        try:
            session = stripe.checkout.Session.create(**params)
        except StripeError as e:
            logger.error(f"Failed to create checkout session: {e}")
            raise StripeServiceError(
                f"Failed to create checkout: {e.user_message or e}",
                original_error=e,
            )

        logger.info(
            f"Created checkout session {session.id} for user {user.id}, "
            f"tier={tier.value}, billing={billing.value}"
        )
        return session.url or ""

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    def verify_webhook_signature(
        self,
        payload: bytes,
        signature: str,
    ) -> Dict[str, Any]:
        """
        Verify webhook signature and parse the event.

        Args:
            payload: Raw request body
            signature: Stripe-Signature header

        Returns:
            Event as a plain dict

        Raises:
            StripeServiceError: missing secret, bad signature or bad payload
        """
        if not self._webhook_secret:
            raise StripeServiceError("Stripe webhook secret is not configured")

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self._webhook_secret,
            )
            return json.loads(payload)
        except stripe.SignatureVerificationError as e:
            raise StripeServiceError(f"Invalid signature: {e}", original_error=e)
        except (UnicodeDecodeError, ValueError) as e:
            raise StripeServiceError(f"Invalid payload: {e}", original_error=e)


# =============================================================================
# Singleton Instance (Dependency Injection Ready)
# =============================================================================

_stripe_service_instance: Optional[StripeService] = None


def get_stripe_service() -> StripeService:
    """Get or create Stripe service singleton."""
    global _stripe_service_instance

    if _stripe_service_instance is None:
        _stripe_service_instance = StripeService()

    return _stripe_service_instance
