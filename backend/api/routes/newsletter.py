"""
Newsletter routes: double opt-in subscription and article mailings.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select

from adapters.email.sendgrid_adapter import (
    NewsletterRecipient,
    SendGridEmailService,
    get_email_service,
)
from api.dependencies import AdminUser, DbSession
from api.errors import commit_or_conflict
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.newsletter import (
    NewsletterMessage,
    NewsletterSendRequest,
    NewsletterSendResponse,
    NewsletterStats,
    NewsletterStatusResponse,
    SubscribeRequest,
)
from infrastructure.database.models.content import Article
from infrastructure.database.models.newsletter import NewsletterSubscription, SubscriptionState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/newsletter", tags=["newsletter"])

EmailService = Annotated[SendGridEmailService, Depends(get_email_service)]


def _token() -> str:
    return secrets.token_urlsafe(32)


@router.post("/subscribe", response_model=NewsletterMessage)
@limiter.limit(get_rate_limit("newsletter_subscribe"))
async def subscribe(
    request: Request, body: SubscribeRequest, db: DbSession, email_service: EmailService
):
    """Start a subscription and email the confirmation link."""
    email = body.email.lower()
    result = await db.execute(
        select(NewsletterSubscription).where(NewsletterSubscription.email == email)
    )
    subscription = result.scalar_one_or_none()

    if subscription is not None and subscription.status == SubscriptionState.VERIFIED.value:
        return NewsletterMessage(message="You are already subscribed")

    if subscription is None:
        subscription = NewsletterSubscription(email=email, unsubscribe_token=_token())
        db.add(subscription)
    subscription.status = SubscriptionState.PENDING.value
    subscription.verification_token = _token()
    subscription.unsubscribed_at = None
    await commit_or_conflict(db)

    if not await email_service.send_verification_email(email, subscription.verification_token):
        logger.error("Verification email to %s could not be sent", email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send verification email",
        )
    return NewsletterMessage(message="Please check your email to confirm your subscription")


@router.get("/verify/{token}", response_model=NewsletterMessage)
async def verify_subscription(token: str, db: DbSession):
    result = await db.execute(
        select(NewsletterSubscription).where(NewsletterSubscription.verification_token == token)
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token",
        )

    subscription.status = SubscriptionState.VERIFIED.value
    subscription.verification_token = None
    subscription.verified_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info("Newsletter subscription %s verified", subscription.id)
    return NewsletterMessage(message="Subscription confirmed")


@router.get("/unsubscribe/{token}", response_model=NewsletterMessage)
async def unsubscribe(token: str, db: DbSession):
    result = await db.execute(
        select(NewsletterSubscription).where(NewsletterSubscription.unsubscribe_token == token)
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid unsubscribe token",
        )

    subscription.status = SubscriptionState.UNSUBSCRIBED.value
    subscription.verification_token = None
    subscription.unsubscribed_at = datetime.now(timezone.utc)
    await db.commit()
    return NewsletterMessage(message="You have been unsubscribed")


@router.get("/stats", response_model=NewsletterStats)
async def newsletter_stats(admin: AdminUser, db: DbSession):
    result = await db.execute(
        select(NewsletterSubscription.status, func.count()).group_by(NewsletterSubscription.status)
    )
    counts = dict(result.all())
    return NewsletterStats(
        total=sum(counts.values()),
        verified=counts.get(SubscriptionState.VERIFIED.value, 0),
        pending=counts.get(SubscriptionState.PENDING.value, 0),
        unsubscribed=counts.get(SubscriptionState.UNSUBSCRIBED.value, 0),
    )


@router.post("/send", response_model=NewsletterSendResponse)
async def send_newsletter(
    body: NewsletterSendRequest,
    admin: AdminUser,
    db: DbSession,
    email_service: EmailService,
):
    """Mail a published article to every verified subscriber, once."""
    article = (
        await db.execute(select(Article).where(Article.id == body.article_id))
    ).scalar_one_or_none()
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    if not article.is_published:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only published articles can be sent",
        )
    if article.newsletter_sent_at is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This article has already been sent as a newsletter",
        )

    result = await db.execute(
        select(NewsletterSubscription.email, NewsletterSubscription.unsubscribe_token).where(
            NewsletterSubscription.status == SubscriptionState.VERIFIED.value
        )
    )
    recipients = [NewsletterRecipient(email=row.email, unsubscribe_token=row.unsubscribe_token) for row in result.all()]
    if not recipients:
        return NewsletterSendResponse(
            success=False, message="No verified subscribers", recipients=0, sent=0
        )

    sent = await email_service.send_article(
        recipients,
        subject=body.subject or article.title,
        title=article.title,
        summary=article.summary,
        slug=article.slug,
    )
    if not sent:
        logger.error("Newsletter for article %s reached no subscribers", article.id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send newsletter",
        )
    article.newsletter_sent_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info("Admin %s sent article %s to %d subscribers", admin.id, article.id, sent)
    return NewsletterSendResponse(
        success=True,
        message=f"Newsletter sent to {sent} subscribers",
        recipients=len(recipients),
        sent=sent,
    )


@router.get("/status/{article_id}", response_model=NewsletterStatusResponse)
async def newsletter_status(article_id: str, admin: AdminUser, db: DbSession):
    article = (
        await db.execute(select(Article).where(Article.id == article_id))
    ).scalar_one_or_none()
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return NewsletterStatusResponse(
        id=article.id,
        sent_as_newsletter=article.newsletter_sent_at is not None,
        newsletter_sent_at=article.newsletter_sent_at,
    )
