"""
Stripe billing adapter for membership subscriptions.

Wraps the synchronous ``stripe`` SDK: checkout sessions, customers,
subscription cancel/resume, and webhook signature verification. SDK calls run
in a worker thread so they do not block the event loop.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import stripe

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


# Custom Exceptions
class StripeAdapterError(Exception):
    """Base exception for Stripe adapter errors."""


class StripeConfigError(StripeAdapterError):
    """Raised when Stripe keys or prices are missing."""


class StripeAPIError(StripeAdapterError):
    """Raised when the Stripe API returns an error."""


class StripeWebhookError(StripeAdapterError):
    """Raised when webhook verification or parsing fails."""


@dataclass
class WebhookEvent:
    """Parsed Stripe webhook event."""

    id: str
    type: str
    data: dict[str, Any]

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "WebhookEvent":
        """Create event from the decoded webhook body."""
        try:
            return cls(
                id=payload.get("id", ""),
                type=payload["type"],
                data=payload["data"]["object"],
            )
        except (KeyError, TypeError) as e:
            raise StripeWebhookError(f"Malformed webhook payload: {e}") from e


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str]


class StripeAdapter:
    """Thin async facade over the Stripe SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        prices: Optional[dict[str, str]] = None,
        app_url: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )
        self.prices = prices or {
            "supporter": settings.stripe_supporter_price_id,
            "pro": settings.stripe_pro_price_id,
        }
        self.app_url = (app_url or settings.app_url).rstrip("/")

    def _require_key(self) -> str:
        if not self.api_key:
            raise StripeConfigError("Stripe is not configured (STRIPE_SECRET_KEY missing)")
        return self.api_key

    async def _call(self, func, *args, **kwargs) -> Any:
        """Run an SDK call in a thread, translating SDK errors."""
        kwargs["api_key"] = self._require_key()
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except stripe.StripeError as e:
            logger.error("Stripe API error: %s", e)
            raise StripeAPIError(str(e.user_message or e)) from e

    def price_for_tier(self, tier: str) -> str:
        """Configured price id for a tier name."""
        try:
            return self.prices[tier]
        except KeyError:
            raise StripeConfigError(f"Unknown membership tier: {tier}") from None

    def tier_for_price(self, price_id: str) -> Optional[str]:
        for tier, configured in self.prices.items():
            if configured == price_id:
                return tier
        return None

    async def create_customer(self, email: str, name: str, user_id: str) -> str:
        """Create a Stripe customer and return its id."""
        customer = await self._call(
            stripe.Customer.create,
            email=email,
            name=name,
            metadata={"userId": user_id},
        )
        logger.info("Created Stripe customer %s for user %s", customer["id"], user_id)
        return customer["id"]

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        user_id: str,
        tier: str,
    ) -> CheckoutSession:
        """Create a subscription checkout session for one price."""
        session = await self._call(
            stripe.checkout.Session.create,
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=f"{self.app_url}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.app_url}/subscription/cancel",
            metadata={"userId": user_id, "tier": tier},
            subscription_data={"metadata": {"userId": user_id, "tier": tier}},
        )
        return CheckoutSession(id=session["id"], url=session.get("url"))

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        subscription = await self._call(stripe.Subscription.retrieve, subscription_id)
        return _to_dict(subscription)

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Cancel at the end of the current period."""
        subscription = await self._call(
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=True,
        )
        logger.info("Subscription %s set to cancel at period end", subscription_id)
        return _to_dict(subscription)

    async def resume_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Undo a pending cancellation."""
        subscription = await self._call(
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=False,
        )
        logger.info("Subscription %s resumed", subscription_id)
        return _to_dict(subscription)

    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify the ``Stripe-Signature`` header and parse the event.

        Raises:
            StripeWebhookError: missing secret or header, bad signature, bad JSON
        """
        if not self.webhook_secret:
            raise StripeWebhookError("Webhook secret not configured")
        if not signature:
            raise StripeWebhookError("Missing Stripe signature")

        body = payload.decode("utf-8")
        try:
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise StripeWebhookError("Webhook signature verification failed") from e

        try:
            return WebhookEvent.from_payload(json.loads(body))
        except json.JSONDecodeError as e:
            raise StripeWebhookError("Webhook body is not valid JSON") from e


def _to_dict(obj: Any) -> dict[str, Any]:
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


def subscription_price_id(subscription: dict[str, Any]) -> Optional[str]:
    """Price id of the first subscription item, if any."""
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def create_stripe_adapter() -> StripeAdapter:
    """Factory used as a FastAPI dependency."""
    return StripeAdapter()
