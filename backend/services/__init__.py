"""
Service layer for business logic.
"""

from services.api_cache import ApiCache, api_cache
from services.article_workflow import (
    ArticleWorkflow,
    InvalidStatusError,
    WorkflowPermissionError,
    slugify,
    unique_slug,
)
from services.autosave import AutosaveScheduler
from services.billing import BillingError, BillingService
from services.comment_votes import CommentVoteService
from services.search import SearchService

__all__ = [
    "ApiCache",
    "api_cache",
    "ArticleWorkflow",
    "InvalidStatusError",
    "WorkflowPermissionError",
    "slugify",
    "unique_slug",
    "AutosaveScheduler",
    "BillingError",
    "BillingService",
    "CommentVoteService",
    "SearchService",
]
