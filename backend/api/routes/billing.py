"""
Membership billing routes: Stripe checkout, webhooks and subscription management.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from adapters.payments import (
    StripeAdapter,
    StripeAdapterError,
    StripeConfigError,
    StripeWebhookError,
    create_stripe_adapter,
)
from api.dependencies import CurrentUser, DbSession
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionActionResponse,
    SubscriptionResponse,
)
from services.billing import BillingError, BillingService, is_duplicate_event, release_event

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])

Stripe = Annotated[StripeAdapter, Depends(create_stripe_adapter)]


def _stripe_failure(e: StripeAdapterError, action: str) -> HTTPException:
    if isinstance(e, StripeConfigError):
        logger.error("Stripe not configured: %s", e)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not configured",
        )
    logger.error("Failed to %s: %s", action, e)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.post("/stripe/create-checkout-session", response_model=CheckoutResponse)
@limiter.limit(get_rate_limit("checkout"))
async def create_checkout_session(
    request: Request,
    body: CheckoutRequest,
    current_user: CurrentUser,
    db: DbSession,
    stripe_adapter: Stripe,
):
    """Start a Stripe Checkout for the ``supporter`` or ``pro`` tier."""
    service = BillingService(db, stripe_adapter)
    try:
        session = await service.start_checkout(current_user, tier=body.tier, price_id=body.price_id)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StripeAdapterError as e:
        await db.rollback()
        raise _stripe_failure(e, "create checkout session")

    # Persist a newly created Stripe customer id
    await db.commit()
    return CheckoutResponse(session_id=session.id, url=session.url)


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    db: DbSession,
    stripe_adapter: Stripe,
    stripe_signature: Annotated[Optional[str], Header(alias="Stripe-Signature")] = None,
):
    """
    Handle Stripe webhook events.

    - checkout.session.completed: grant the purchased tier
    - customer.subscription.updated: follow price and status changes
    - customer.subscription.deleted: downgrade to free
    - invoice.payment_failed: mark past_due, keep the tier
    """
    body = await request.body()

    try:
        event = stripe_adapter.verify_webhook(body, stripe_signature)
    except StripeWebhookError as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {e}")

    if await is_duplicate_event(event.id):
        logger.info("Duplicate Stripe event %s, skipping", event.id)
        return {"received": True, "status": "duplicate"}

    try:
        result = await BillingService(db, stripe_adapter).handle_event(event)
        await db.commit()
    except Exception:
        await db.rollback()
        await release_event(event.id)
        logger.exception("Failed to process Stripe event %s", event.id)
        raise
    return {"received": True, **result}


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(current_user: CurrentUser, db: DbSession, stripe_adapter: Stripe):
    try:
        return await BillingService(db, stripe_adapter).summary(current_user)
    except StripeAdapterError as e:
        raise _stripe_failure(e, "fetch subscription")


@router.post("/subscription/cancel", response_model=SubscriptionActionResponse)
async def cancel_subscription(current_user: CurrentUser, db: DbSession, stripe_adapter: Stripe):
    """Cancel at the end of the current billing period."""
    try:
        result = await BillingService(db, stripe_adapter).cancel(current_user)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StripeAdapterError as e:
        raise _stripe_failure(e, "cancel subscription")
    logger.info("User %s scheduled subscription cancellation", current_user.id)
    return result


@router.post("/subscription/resume", response_model=SubscriptionActionResponse)
async def resume_subscription(current_user: CurrentUser, db: DbSession, stripe_adapter: Stripe):
    try:
        result = await BillingService(db, stripe_adapter).resume(current_user)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StripeAdapterError as e:
        raise _stripe_failure(e, "resume subscription")
    logger.info("User %s resumed subscription", current_user.id)
    return result
