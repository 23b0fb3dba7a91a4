"""
SQLAlchemy database models.
"""

from .advertising import AdPlacement, Advertisement
from .api_key import ApiKey
from .base import Base, JSONType, TimestampMixin
from .comment import Comment, Vote, VoteType
from .content import Article, ArticleAuthor, ArticleStatus, AuthorRole
from .media import MediaFileType, MediaItem
from .newsletter import NewsletterSubscription, SubscriptionState
from .search import SearchHistory
from .site import SiteSettings
from .taxonomy import ArticleTaxonomy, Category, Tag, Taxonomy, TaxonomyType
from .user import ROLE_RANK, MembershipTier, User, UserRole

__all__ = [
    "Base",
    "JSONType",
    "TimestampMixin",
    "User",
    "UserRole",
    "ROLE_RANK",
    "MembershipTier",
    "Article",
    "ArticleAuthor",
    "ArticleStatus",
    "AuthorRole",
    "Taxonomy",
    "TaxonomyType",
    "ArticleTaxonomy",
    "Category",
    "Tag",
    "Comment",
    "Vote",
    "VoteType",
    "Advertisement",
    "AdPlacement",
    "NewsletterSubscription",
    "SubscriptionState",
    "MediaItem",
    "MediaFileType",
    "ApiKey",
    "SearchHistory",
    "SiteSettings",
]
