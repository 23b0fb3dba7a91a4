"""
Search routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, status
from sqlalchemy import desc, func, select

from api.dependencies import DbSession, OptionalUser
from api.schemas.content import ArticleSummaryResponse
from api.schemas.site import PopularSearch, SearchHistoryRequest, SearchResponse
from api.utils import escape_like
from infrastructure.database.models.content import Article, ArticleStatus
from services.search import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

SUGGESTION_MIN_LENGTH = 2


@router.get("", response_model=SearchResponse)
async def search(
    db: DbSession,
    q: str = Query("", max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: Optional[str] = None,
    author_id: Optional[str] = None,
):
    """Search published articles by title, summary, category and tags."""
    q = q.strip()
    if not q:
        return SearchResponse(data=[], total=0, page=page, total_pages=0)

    result = await SearchService(db).search_articles(
        q, page=page, limit=limit, category=category, author_id=author_id
    )
    result["data"] = [ArticleSummaryResponse.model_validate(a) for a in result["data"]]
    return SearchResponse(**result)


@router.get("/suggestions")
async def search_suggestions(db: DbSession, q: str = Query("", max_length=200)):
    """Title matches for the search box, five at most."""
    q = q.strip()
    if len(q) < SUGGESTION_MIN_LENGTH:
        return {"data": []}

    pattern = f"%{escape_like(q.lower())}%"
    result = await db.execute(
        select(Article.id, Article.title, Article.slug, Article.category, Article.published_at)
        .where(
            Article.status == ArticleStatus.PUBLISHED.value,
            func.lower(Article.title).like(pattern, escape="\\"),
        )
        .order_by(desc(Article.published_at))
        .limit(5)
    )
    return {
        "data": [
            {
                "id": row.id,
                "title": row.title,
                "slug": row.slug,
                "category": row.category,
                "published_at": row.published_at,
            }
            for row in result.all()
        ]
    }


@router.post("/history", status_code=status.HTTP_201_CREATED)
async def record_search(body: SearchHistoryRequest, db: DbSession, viewer: OptionalUser):
    entry = await SearchService(db).record(
        body.query,
        user_id=viewer.id if viewer else None,
        result_count=body.result_count,
    )
    await db.commit()
    return {"id": entry.id, "query": entry.query}


@router.get("/popular", response_model=list[PopularSearch])
async def popular_searches(db: DbSession, limit: int = Query(5, ge=1, le=20)):
    return await SearchService(db).popular(limit)
