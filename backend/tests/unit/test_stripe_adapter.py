"""
Unit tests for the Stripe adapter.

SDK calls are patched; webhook signatures are computed the way Stripe signs
them (HMAC-SHA256 over "{timestamp}.{payload}").
"""

import hashlib
import hmac
import json
import time
from unittest.mock import MagicMock, patch

import pytest
import stripe

from adapters.payments.stripe_adapter import (
    StripeAdapter,
    StripeAPIError,
    StripeConfigError,
    StripeWebhookError,
    WebhookEvent,
    subscription_price_id,
)

WEBHOOK_SECRET = "whsec_test"


def sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def adapter():
    return StripeAdapter(
        api_key="sk_test_123",
        webhook_secret=WEBHOOK_SECRET,
        prices={"supporter": "price_supporter", "pro": "price_pro"},
        app_url="https://proxima.example/",
    )


class TestPrices:
    def test_price_for_tier(self, adapter):
        assert adapter.price_for_tier("pro") == "price_pro"

    def test_unknown_tier(self, adapter):
        with pytest.raises(StripeConfigError):
            adapter.price_for_tier("platinum")

    def test_tier_for_price(self, adapter):
        assert adapter.tier_for_price("price_supporter") == "supporter"
        assert adapter.tier_for_price("price_other") is None

    def test_subscription_price_id(self):
        sub = {"items": {"data": [{"price": {"id": "price_pro"}}]}}
        assert subscription_price_id(sub) == "price_pro"
        assert subscription_price_id({"items": {"data": []}}) is None
        assert subscription_price_id({}) is None


@pytest.mark.asyncio
class TestSdkCalls:
    async def test_create_customer(self, adapter):
        with patch.object(stripe.Customer, "create", MagicMock(return_value={"id": "cus_1"})) as create:
            customer_id = await adapter.create_customer("a@example.com", "astro", "user-1")

        assert customer_id == "cus_1"
        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["metadata"] == {"userId": "user-1"}

    async def test_checkout_session(self, adapter):
        session = {"id": "cs_1", "url": "https://checkout.stripe.com/cs_1"}
        with patch.object(stripe.checkout.Session, "create", MagicMock(return_value=session)) as create:
            result = await adapter.create_checkout_session("cus_1", "price_pro", "user-1", "pro")

        assert result.id == "cs_1"
        assert result.url == "https://checkout.stripe.com/cs_1"
        kwargs = create.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["metadata"] == {"userId": "user-1", "tier": "pro"}
        assert kwargs["cancel_url"] == "https://proxima.example/subscription/cancel"

    async def test_cancel_sets_period_end_flag(self, adapter):
        with patch.object(
            stripe.Subscription, "modify", MagicMock(return_value={"id": "sub_1"})
        ) as modify:
            result = await adapter.cancel_subscription("sub_1")

        assert result == {"id": "sub_1"}
        assert modify.call_args.args == ("sub_1",)
        assert modify.call_args.kwargs["cancel_at_period_end"] is True

    async def test_missing_key(self):
        adapter = StripeAdapter(api_key="", webhook_secret="", prices={"pro": "p"})
        with pytest.raises(StripeConfigError):
            await adapter.create_customer("a@example.com", "a", "u")

    async def test_sdk_error_is_wrapped(self, adapter):
        failing = MagicMock(side_effect=stripe.StripeError("card declined"))
        with patch.object(stripe.Subscription, "retrieve", failing):
            with pytest.raises(StripeAPIError, match="card declined"):
                await adapter.retrieve_subscription("sub_1")


class TestWebhookVerification:
    def _payload(self) -> bytes:
        return json.dumps(
            {
                "id": "evt_1",
                "type": "customer.subscription.updated",
                "data": {"object": {"id": "sub_1", "status": "active"}},
            }
        ).encode()

    def test_valid_signature(self, adapter):
        payload = self._payload()
        event = adapter.verify_webhook(payload, sign(payload))

        assert event.id == "evt_1"
        assert event.type == "customer.subscription.updated"
        assert event.data == {"id": "sub_1", "status": "active"}

    def test_wrong_secret(self, adapter):
        payload = self._payload()
        with pytest.raises(StripeWebhookError, match="verification failed"):
            adapter.verify_webhook(payload, sign(payload, secret="whsec_other"))

    def test_missing_signature(self, adapter):
        with pytest.raises(StripeWebhookError, match="Missing"):
            adapter.verify_webhook(self._payload(), None)

    def test_missing_secret(self):
        adapter = StripeAdapter(api_key="sk", webhook_secret="", prices={"pro": "p"})
        with pytest.raises(StripeWebhookError, match="not configured"):
            adapter.verify_webhook(b"{}", "t=1,v1=abc")

    def test_malformed_event(self):
        with pytest.raises(StripeWebhookError):
            WebhookEvent.from_payload({"id": "evt_1"})
