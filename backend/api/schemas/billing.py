"""
Membership billing schemas.
"""

from typing import Literal, Optional

from pydantic import BaseModel, model_validator


class CheckoutRequest(BaseModel):
    """Either a tier name or a configured Stripe price id."""

    tier: Optional[Literal["supporter", "pro"]] = None
    price_id: Optional[str] = None

    @model_validator(mode="after")
    def require_tier_or_price(self) -> "CheckoutRequest":
        if not self.tier and not self.price_id:
            raise ValueError("Either tier or price_id is required")
        return self


class CheckoutResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class SubscriptionResponse(BaseModel):
    active: bool
    tier: str
    status: Optional[str] = None
    current_period_end: Optional[int] = None
    cancel_at_period_end: bool = False


class SubscriptionActionResponse(BaseModel):
    message: str
    current_period_end: Optional[int] = None
