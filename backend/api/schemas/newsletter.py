"""
Newsletter schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SubscribeRequest(BaseModel):
    email: EmailStr


class NewsletterMessage(BaseModel):
    success: bool = True
    message: str


class NewsletterStats(BaseModel):
    total: int
    verified: int
    pending: int
    unsubscribed: int


class NewsletterSendRequest(BaseModel):
    article_id: str
    subject: Optional[str] = Field(None, max_length=300)


class NewsletterSendResponse(BaseModel):
    success: bool
    message: str
    recipients: int
    sent: int


class NewsletterStatusResponse(BaseModel):
    id: str
    sent_as_newsletter: bool
    newsletter_sent_at: Optional[datetime] = None
