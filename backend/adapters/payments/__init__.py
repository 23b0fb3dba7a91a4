"""Payment adapters for membership billing."""

from .stripe_adapter import (
    CheckoutSession,
    StripeAdapter,
    StripeAdapterError,
    StripeAPIError,
    StripeConfigError,
    StripeWebhookError,
    WebhookEvent,
    create_stripe_adapter,
    subscription_price_id,
)

__all__ = [
    "StripeAdapter",
    "CheckoutSession",
    "WebhookEvent",
    "StripeAdapterError",
    "StripeAPIError",
    "StripeConfigError",
    "StripeWebhookError",
    "create_stripe_adapter",
    "subscription_price_id",
]
