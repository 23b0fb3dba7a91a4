"""
Article search and search history.
"""

import logging
import math
from typing import Any, Optional

from sqlalchemy import String, cast, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.utils import escape_like
from infrastructure.database.models.content import Article, ArticleStatus
from infrastructure.database.models.search import SearchHistory

logger = logging.getLogger(__name__)


class SearchService:
    """LIKE-based search over published articles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search_articles(
        self,
        query: str,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        author_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Match title, summary, category and tags. Newest first."""
        pattern = f"%{escape_like(query.lower())}%"
        conditions = [
            Article.status == ArticleStatus.PUBLISHED.value,
            or_(
                func.lower(Article.title).like(pattern, escape="\\"),
                func.lower(Article.summary).like(pattern, escape="\\"),
                func.lower(Article.category).like(pattern, escape="\\"),
                func.lower(cast(Article.tags, String)).like(pattern, escape="\\"),
            ),
        ]
        if category:
            conditions.append(Article.category == category)
        if author_id:
            conditions.append(Article.primary_author_id == author_id)

        total = (
            await self.db.execute(select(func.count(Article.id)).where(*conditions))
        ).scalar_one()

        result = await self.db.execute(
            select(Article)
            .where(*conditions)
            .order_by(desc(Article.published_at))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "data": list(result.scalars().all()),
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    async def record(
        self,
        query: str,
        user_id: Optional[str] = None,
        result_count: int = 0,
    ) -> SearchHistory:
        entry = SearchHistory(query=query.strip(), user_id=user_id, result_count=result_count)
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def popular(self, limit: int = 5) -> list[dict[str, Any]]:
        """Most frequent queries, case-insensitive."""
        normalized = func.lower(SearchHistory.query)
        result = await self.db.execute(
            select(normalized.label("query"), func.count().label("count"))
            .group_by(normalized)
            .order_by(desc("count"), normalized)
            .limit(limit)
        )
        return [{"query": row.query, "count": row.count} for row in result.all()]
