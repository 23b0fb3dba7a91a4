"""
Article workflow: slugs, visibility, edit rights and status transitions.

Content saves (PUT/PATCH) never touch ``status``; the only way to change it
is :meth:`ArticleWorkflow.change_status`, which enforces that publishing is
reserved for editors and admins and stamps ``published_at`` on the
transition into ``published``.
"""

import logging
import re
import unicodedata
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.blocks import normalize_content
from core.domain.rendering import calculate_read_time
from infrastructure.database.models.base import utcnow
from infrastructure.database.models.content import Article, ArticleAuthor, ArticleStatus
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

# Statuses accepted by the status endpoint
SETTABLE_STATUSES = frozenset(
    {
        ArticleStatus.DRAFT.value,
        ArticleStatus.PUBLISHED.value,
        ArticleStatus.NEEDS_EDITS.value,
        ArticleStatus.ARCHIVED.value,
    }
)


class InvalidStatusError(ValueError):
    """Raised for a status value the workflow does not know."""
    pass


class WorkflowPermissionError(Exception):
    """Raised when the user may not perform a workflow action."""
    pass


def slugify(text: str) -> str:
    """Lowercase, ASCII-only, hyphen-separated slug."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s-]", "", text.lower())
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")


async def unique_slug(db: AsyncSession, base: str, exclude_id: Optional[str] = None) -> str:
    """Return ``base`` or ``base-N`` so that no other article uses it."""
    base = base or "article"
    candidate = base
    suffix = 2
    while True:
        query = select(Article.id).where(Article.slug == candidate)
        if exclude_id:
            query = query.where(Article.id != exclude_id)
        if (await db.execute(query)).first() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1


async def author_ids(db: AsyncSession, article: Article) -> set[str]:
    """Ids of every user on the article byline, primary author included."""
    result = await db.execute(
        select(ArticleAuthor.user_id).where(ArticleAuthor.article_id == article.id)
    )
    ids = set(result.scalars().all())
    ids.add(article.primary_author_id)
    return ids


def apply_content(article: Article, content: Optional[Iterable]) -> None:
    """Store normalized blocks and recompute the read time."""
    article.content = normalize_content(list(content or []))
    article.read_time = calculate_read_time(article.content)


class ArticleWorkflow:
    """Permission checks and status transitions for one article."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def can_view(self, article: Article, user: Optional[User]) -> bool:
        """Published articles are public; anything else needs a byline or editor role."""
        if article.is_published:
            return True
        if user is None:
            return False
        if user.is_editor:
            return True
        return user.id in await author_ids(self.db, article)

    async def can_edit(self, article: Article, user: User) -> bool:
        if user.is_editor:
            return True
        return user.id in await author_ids(self.db, article)

    @staticmethod
    def can_delete(article: Article, user: User) -> bool:
        return user.is_admin or article.primary_author_id == user.id

    async def change_status(self, article: Article, new_status: str, user: User) -> Article:
        """
        Move ``article`` to ``new_status``.

        Raises:
            InvalidStatusError: unknown status value
            WorkflowPermissionError: user is not on the byline, or tries to
                publish without the editor role
        """
        if new_status not in SETTABLE_STATUSES:
            raise InvalidStatusError(f"Invalid status value: {new_status}")

        if not await self.can_edit(article, user):
            raise WorkflowPermissionError("You do not have permission to modify this article")

        entering_published = (
            new_status == ArticleStatus.PUBLISHED.value and not article.is_published
        )
        if entering_published and not user.is_editor:
            raise WorkflowPermissionError("Only editors and admins can publish articles")

        previous = article.status
        article.status = new_status
        if entering_published:
            article.published_at = utcnow()

        await self.db.flush()
        logger.info(
            "Article %s status %s -> %s by user %s", article.id, previous, new_status, user.id
        )
        return article
