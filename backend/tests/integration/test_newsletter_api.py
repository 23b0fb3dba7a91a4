"""Integration tests for newsletter subscription and mailing endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from adapters.email.sendgrid_adapter import get_email_service
from infrastructure.database.models.newsletter import NewsletterSubscription

pytestmark = pytest.mark.asyncio


class FakeEmailService:
    """Records outgoing mail instead of calling SendGrid."""

    def __init__(self):
        self.verifications: list[tuple[str, str]] = []
        self.mailings: list[dict] = []
        self.fail = False
        self.deliver = True

    async def send_verification_email(self, to_email: str, verification_token: str) -> bool:
        if self.fail:
            return False
        self.verifications.append((to_email, verification_token))
        return True

    async def send_article(self, recipients, subject, title, summary, slug) -> int:
        self.mailings.append(
            {"recipients": [r.email for r in recipients], "subject": subject, "slug": slug}
        )
        if not self.deliver:
            return 0
        return len(recipients)


@pytest.fixture
def email_service(app) -> FakeEmailService:
    service = FakeEmailService()
    app.dependency_overrides[get_email_service] = lambda: service
    return service


async def subscription_for(db_session, email: str) -> NewsletterSubscription:
    result = await db_session.execute(
        select(NewsletterSubscription).where(NewsletterSubscription.email == email)
    )
    subscription = result.scalar_one()
    await db_session.refresh(subscription)
    return subscription


class TestSubscription:
    async def test_double_opt_in(self, async_client: AsyncClient, email_service, db_session):
        response = await async_client.post(
            "/api/newsletter/subscribe", json={"email": "Fan@Example.com"}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Please check your email to confirm your subscription"

        email, token = email_service.verifications[0]
        assert email == "fan@example.com"
        assert (await subscription_for(db_session, email)).status == "pending"

        response = await async_client.get(f"/api/newsletter/verify/{token}")
        assert response.json()["message"] == "Subscription confirmed"
        assert (await subscription_for(db_session, email)).status == "verified"

        response = await async_client.post("/api/newsletter/subscribe", json={"email": email})
        assert response.json()["message"] == "You are already subscribed"

    async def test_verify_token_is_single_use(self, async_client: AsyncClient, email_service):
        await async_client.post("/api/newsletter/subscribe", json={"email": "once@example.com"})
        _, token = email_service.verifications[0]

        assert (await async_client.get(f"/api/newsletter/verify/{token}")).status_code == 200
        assert (await async_client.get(f"/api/newsletter/verify/{token}")).status_code == 400

    async def test_unsubscribe(self, async_client: AsyncClient, email_service, db_session):
        await async_client.post("/api/newsletter/subscribe", json={"email": "leaver@example.com"})
        subscription = await subscription_for(db_session, "leaver@example.com")

        response = await async_client.get(
            f"/api/newsletter/unsubscribe/{subscription.unsubscribe_token}"
        )
        assert response.json()["message"] == "You have been unsubscribed"
        assert (await subscription_for(db_session, "leaver@example.com")).status == "unsubscribed"

    async def test_invalid_unsubscribe_token(self, async_client: AsyncClient, email_service):
        response = await async_client.get("/api/newsletter/unsubscribe/nope")
        assert response.status_code == 400

    async def test_invalid_email(self, async_client: AsyncClient, email_service):
        response = await async_client.post("/api/newsletter/subscribe", json={"email": "not-email"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Validation error"

    async def test_send_failure(self, async_client: AsyncClient, email_service):
        email_service.fail = True
        response = await async_client.post("/api/newsletter/subscribe", json={"email": "x@example.com"})
        assert response.status_code == 500


async def add_subscriber(db_session, email: str, state: str) -> None:
    db_session.add(NewsletterSubscription(email=email, status=state, unsubscribe_token=f"tok-{email}"))
    await db_session.commit()


class TestAdminMailing:
    async def test_stats(self, admin_client: AsyncClient, email_service, db_session):
        await add_subscriber(db_session, "a@example.com", "verified")
        await add_subscriber(db_session, "b@example.com", "verified")
        await add_subscriber(db_session, "c@example.com", "pending")

        response = await admin_client.get("/api/newsletter/stats")
        assert response.json() == {"total": 3, "verified": 2, "pending": 1, "unsubscribed": 0}

    async def test_stats_requires_admin(self, user_client: AsyncClient, email_service):
        response = await user_client.get("/api/newsletter/stats")
        assert response.status_code == 403

    async def test_send_article_once(
        self, admin_client: AsyncClient, email_service, db_session, make_article, author_user
    ):
        article = await make_article(author_user, status="published", title="Artemis Returns")
        await add_subscriber(db_session, "a@example.com", "verified")
        await add_subscriber(db_session, "gone@example.com", "unsubscribed")

        response = await admin_client.post(
            "/api/newsletter/send", json={"article_id": article.id}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Newsletter sent to 1 subscribers"
        assert email_service.mailings[0]["recipients"] == ["a@example.com"]
        assert email_service.mailings[0]["subject"] == "Artemis Returns"

        status_response = await admin_client.get(f"/api/newsletter/status/{article.id}")
        assert status_response.json()["sent_as_newsletter"] is True

        again = await admin_client.post("/api/newsletter/send", json={"article_id": article.id})
        assert again.status_code == 400
        assert again.json()["detail"] == "This article has already been sent as a newsletter"

    async def test_send_draft_rejected(
        self, admin_client: AsyncClient, email_service, make_article, author_user
    ):
        article = await make_article(author_user)
        response = await admin_client.post("/api/newsletter/send", json={"article_id": article.id})
        assert response.status_code == 400

    async def test_send_without_subscribers(
        self, admin_client: AsyncClient, email_service, make_article, author_user
    ):
        article = await make_article(author_user, status="published")
        response = await admin_client.post("/api/newsletter/send", json={"article_id": article.id})
        assert response.json() == {
            "success": False,
            "message": "No verified subscribers",
            "recipients": 0,
            "sent": 0,
        }
        status_response = await admin_client.get(f"/api/newsletter/status/{article.id}")
        assert status_response.json()["sent_as_newsletter"] is False

    async def test_failed_delivery_leaves_article_unsent(
        self, admin_client: AsyncClient, email_service, db_session, make_article, author_user
    ):
        article = await make_article(author_user, status="published")
        await add_subscriber(db_session, "a@example.com", "verified")
        email_service.deliver = False

        response = await admin_client.post("/api/newsletter/send", json={"article_id": article.id})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to send newsletter"

        status_response = await admin_client.get(f"/api/newsletter/status/{article.id}")
        assert status_response.json()["sent_as_newsletter"] is False

        email_service.deliver = True
        retry = await admin_client.post("/api/newsletter/send", json={"article_id": article.id})
        assert retry.status_code == 200
        assert retry.json()["sent"] == 1

    async def test_send_unknown_article(self, admin_client: AsyncClient, email_service):
        response = await admin_client.post(
            "/api/newsletter/send", json={"article_id": "00000000-0000-0000-0000-000000000000"}
        )
        assert response.status_code == 404
