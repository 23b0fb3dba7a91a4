"""
Membership billing: checkout, subscription management and Stripe webhooks.

The webhook handler is the only writer of ``membership_tier``. Users are
resolved from the ``userId`` metadata attached at checkout, falling back to
the stored ``stripe_customer_id``.
"""

import logging
from typing import Any, Optional
from uuid import UUID

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments.stripe_adapter import (
    CheckoutSession,
    StripeAdapter,
    WebhookEvent,
    subscription_price_id,
)
from core.domain.subscription import (
    DOWNGRADE_STATUSES,
    PAID_TIERS,
    MembershipTier,
    SubscriptionStatus,
)
from infrastructure.config.settings import settings
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

# Event types the webhook acts on
CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
PAYMENT_FAILED = "invoice.payment_failed"

# Redis TTL for processed event ids; covers Stripe's retry window
_EVENT_TTL_SECONDS = 3 * 24 * 3600


def _is_uuid(value: Any) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


class BillingError(Exception):
    """A billing request that cannot be satisfied (maps to 400)."""
    pass


async def is_duplicate_event(event_id: str) -> bool:
    """
    Record ``event_id`` in Redis and report whether it was seen before.

    Without ``REDIS_URL`` every event is processed. A Redis outage degrades
    to processing the event again; handlers are idempotent.
    """
    if not event_id or not settings.redis_url:
        return False

    client = aioredis.from_url(settings.redis_url)
    try:
        created = await client.set(f"stripe:event:{event_id}", "1", ex=_EVENT_TTL_SECONDS, nx=True)
        return not created
    except RedisError as e:
        logger.warning("Webhook idempotency check unavailable (Redis error): %s", e)
        return False
    finally:
        await client.aclose()


async def release_event(event_id: str) -> None:
    """Forget ``event_id`` so a retried delivery is processed again."""
    if not event_id or not settings.redis_url:
        return

    client = aioredis.from_url(settings.redis_url)
    try:
        await client.delete(f"stripe:event:{event_id}")
    except RedisError as e:
        logger.warning("Could not release Stripe event %s (Redis error): %s", event_id, e)
    finally:
        await client.aclose()


class BillingService:
    """Stripe-backed membership operations for one request."""

    def __init__(self, db: AsyncSession, stripe_adapter: StripeAdapter):
        self.db = db
        self.stripe = stripe_adapter

    # ── Checkout and self-service ────────────────────────────────────────────

    def resolve_price(self, tier: Optional[str], price_id: Optional[str]) -> tuple[str, str]:
        """Return ``(tier, price_id)`` for a checkout request."""
        if price_id:
            resolved = self.stripe.tier_for_price(price_id)
            if resolved is None:
                raise BillingError("Invalid price ID")
            return resolved, price_id
        if tier not in {t.value for t in PAID_TIERS}:
            raise BillingError("Tier must be 'supporter' or 'pro'")
        return tier, self.stripe.price_for_tier(tier)

    async def start_checkout(
        self,
        user: User,
        tier: Optional[str] = None,
        price_id: Optional[str] = None,
    ) -> CheckoutSession:
        tier, price_id = self.resolve_price(tier, price_id)

        if not user.stripe_customer_id:
            user.stripe_customer_id = await self.stripe.create_customer(
                email=user.email, name=user.username, user_id=user.id
            )
            await self.db.flush()

        session = await self.stripe.create_checkout_session(
            customer_id=user.stripe_customer_id,
            price_id=price_id,
            user_id=user.id,
            tier=tier,
        )
        logger.info("Checkout session %s created for user %s (%s)", session.id, user.id, tier)
        return session

    async def summary(self, user: User) -> dict[str, Any]:
        """Current membership, enriched from Stripe when a subscription exists."""
        data: dict[str, Any] = {
            "active": user.subscription_status == SubscriptionStatus.ACTIVE.value
            and user.membership_tier != MembershipTier.FREE.value,
            "tier": user.membership_tier,
            "status": user.subscription_status,
            "current_period_end": None,
            "cancel_at_period_end": False,
        }
        if user.stripe_subscription_id and self.stripe.api_key:
            subscription = await self.stripe.retrieve_subscription(user.stripe_subscription_id)
            data["current_period_end"] = subscription.get("current_period_end")
            data["cancel_at_period_end"] = bool(subscription.get("cancel_at_period_end"))
        return data

    def _require_subscription(self, user: User) -> str:
        if not user.stripe_subscription_id or user.subscription_status != SubscriptionStatus.ACTIVE.value:
            raise BillingError("No active subscription found")
        return user.stripe_subscription_id

    async def cancel(self, user: User) -> dict[str, Any]:
        subscription = await self.stripe.cancel_subscription(self._require_subscription(user))
        return {
            "message": "Subscription will be canceled at the end of the billing period",
            "current_period_end": subscription.get("current_period_end"),
        }

    async def resume(self, user: User) -> dict[str, Any]:
        subscription_id = self._require_subscription(user)
        current = await self.stripe.retrieve_subscription(subscription_id)
        if not current.get("cancel_at_period_end"):
            raise BillingError("Subscription is not scheduled for cancellation")
        await self.stripe.resume_subscription(subscription_id)
        return {"message": "Subscription resumed successfully"}

    # ── Webhooks ─────────────────────────────────────────────────────────────

    async def _resolve_user(self, obj: dict[str, Any]) -> Optional[User]:
        metadata = obj.get("metadata") or {}
        user_id = metadata.get("userId") or obj.get("client_reference_id")
        if user_id and _is_uuid(user_id):
            result = await self.db.execute(
                select(User).where(User.id == str(user_id)).with_for_update()
            )
            user = result.scalar_one_or_none()
            if user is not None:
                return user

        customer_id = obj.get("customer")
        if customer_id:
            result = await self.db.execute(
                select(User).where(User.stripe_customer_id == str(customer_id)).with_for_update()
            )
            return result.scalar_one_or_none()
        return None

    async def handle_event(self, event: WebhookEvent) -> dict[str, str]:
        """Apply one verified webhook event. Unknown events are acknowledged."""
        handlers = {
            CHECKOUT_COMPLETED: self._checkout_completed,
            SUBSCRIPTION_UPDATED: self._subscription_updated,
            SUBSCRIPTION_DELETED: self._subscription_deleted,
            PAYMENT_FAILED: self._payment_failed,
        }
        handler = handlers.get(event.type)
        if handler is None:
            logger.info("Ignoring Stripe event %s (%s)", event.id, event.type)
            return {"status": "ignored"}

        user = await self._resolve_user(event.data)
        if user is None:
            logger.error("No user found for Stripe event %s (%s)", event.id, event.type)
            return {"status": "error", "message": "User not found"}

        await handler(user, event.data)
        await self.db.flush()
        logger.info(
            "Stripe event %s applied to user %s: tier=%s status=%s",
            event.type, user.id, user.membership_tier, user.subscription_status,
        )
        return {"status": "ok"}

    async def _checkout_completed(self, user: User, session: dict[str, Any]) -> None:
        tier = (session.get("metadata") or {}).get("tier")
        if tier not in {t.value for t in PAID_TIERS}:
            logger.warning("Checkout session for user %s has no valid tier: %r", user.id, tier)
            return
        user.membership_tier = tier
        user.subscription_status = SubscriptionStatus.ACTIVE.value
        if session.get("customer"):
            user.stripe_customer_id = str(session["customer"])
        if session.get("subscription"):
            user.stripe_subscription_id = str(session["subscription"])

    async def _subscription_updated(self, user: User, subscription: dict[str, Any]) -> None:
        status = subscription.get("status")
        user.subscription_status = status
        if subscription.get("id"):
            user.stripe_subscription_id = str(subscription["id"])

        if status in DOWNGRADE_STATUSES:
            user.membership_tier = MembershipTier.FREE.value
        elif status in (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value):
            price_id = subscription_price_id(subscription)
            tier = self.stripe.tier_for_price(price_id) if price_id else None
            if tier:
                user.membership_tier = tier
            else:
                logger.warning("Unknown price %s on subscription %s", price_id, subscription.get("id"))

    async def _subscription_deleted(self, user: User, subscription: dict[str, Any]) -> None:
        user.membership_tier = MembershipTier.FREE.value
        user.subscription_status = SubscriptionStatus.CANCELED.value
        user.stripe_subscription_id = None

    async def _payment_failed(self, user: User, invoice: dict[str, Any]) -> None:
        # Stripe retries the charge; keep the tier until the subscription changes
        user.subscription_status = SubscriptionStatus.PAST_DUE.value
        logger.warning(
            "Payment failed for user %s (subscription %s)", user.id, invoice.get("subscription")
        )
