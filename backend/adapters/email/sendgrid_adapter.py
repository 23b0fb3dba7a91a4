"""
SendGrid email service adapter for the newsletter.
"""

import asyncio
import html
import logging
from dataclasses import dataclass
from typing import Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class NewsletterRecipient:
    email: str
    unsubscribe_token: str


class SendGridEmailService:
    """Email service using the SendGrid API.

    Without ``SENDGRID_API_KEY`` messages are logged instead of sent, which
    keeps development and tests offline.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[SendGridAPIClient] = None,
    ):
        self._api_key = api_key if api_key is not None else settings.sendgrid_api_key
        self._client = client or (SendGridAPIClient(self._api_key) if self._api_key else None)
        self._from_email = settings.sendgrid_from_email
        self._from_name = settings.sendgrid_from_name
        self._app_url = settings.app_url.rstrip("/")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def _send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        if not self.enabled:
            logger.info("[DEV] Email to %s: %s", to_email, subject)
            return True

        message = Mail(
            from_email=Email(self._from_email, self._from_name),
            to_emails=To(to_email),
            subject=subject,
            plain_text_content=Content("text/plain", text_body),
            html_content=Content("text/html", html_body),
        )
        try:
            response = await asyncio.to_thread(self._client.send, message)
        except HTTPError as e:
            logger.error("SendGrid rejected email to %s: %s", to_email, e)
            return False
        return 200 <= response.status_code < 300

    async def send_verification_email(self, to_email: str, verification_token: str) -> bool:
        """
        Send the double opt-in confirmation link.

        Args:
            to_email: Subscriber address
            verification_token: Token checked by GET /api/newsletter/verify/{token}

        Returns:
            True if sent successfully, False otherwise
        """
        url = f"{self._app_url}/api/newsletter/verify/{verification_token}"
        return await self._send(
            to_email,
            "Confirm your Proxima Report subscription",
            f"""
            <h1>One more step</h1>
            <p>Confirm your subscription to the Proxima Report newsletter:</p>
            <p><a href="{html.escape(url)}">Confirm subscription</a></p>
            <p>If you did not sign up, ignore this email.</p>
            """,
            f"Confirm your subscription to the Proxima Report newsletter: {url}\n",
        )

    async def send_article(
        self,
        recipients: list[NewsletterRecipient],
        subject: str,
        title: str,
        summary: str,
        slug: str,
    ) -> int:
        """
        Send an article teaser to every recipient with a personal unsubscribe link.

        Returns:
            Number of messages accepted by SendGrid
        """
        article_url = f"{self._app_url}/articles/{slug}"
        sent = 0
        for recipient in recipients:
            unsubscribe_url = (
                f"{self._app_url}/api/newsletter/unsubscribe/{recipient.unsubscribe_token}"
            )
            html_body = f"""
            <h1>{html.escape(title)}</h1>
            <p>{html.escape(summary)}</p>
            <p>Read the full article: <a href="{html.escape(article_url)}">Click here</a></p>
            <hr>
            <p>You are receiving this email because you subscribed to Proxima Report newsletters.
            <a href="{html.escape(unsubscribe_url)}">Unsubscribe</a></p>
            """
            text_body = (
                f"{title}\n\n{summary}\n\nRead the full article: {article_url}\n\n"
                f"To unsubscribe: {unsubscribe_url}\n"
            )
            if await self._send(recipient.email, subject, html_body, text_body):
                sent += 1

        logger.info("Newsletter %r sent to %d/%d recipients", subject, sent, len(recipients))
        return sent


def get_email_service() -> SendGridEmailService:
    """FastAPI dependency."""
    return SendGridEmailService()
