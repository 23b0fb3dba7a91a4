"""
Article API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status
from sqlalchemy import and_, delete, desc, func, or_, select, update

from api.dependencies import AuthorUser, CurrentUser, DbSession, Reader
from api.errors import DUPLICATE_AUTHOR, SLUG_EXISTS, ConflictError, commit_or_conflict
from api.schemas.content import (
    AddAuthorRequest,
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleResponse,
    ArticleSummaryResponse,
    ArticleUpdateRequest,
    BylineResponse,
    PaginationInfo,
    StatusChangeRequest,
    StatusChangeResponse,
)
from api.schemas.taxonomy import ArticleTaxonomyResponse, ArticleTaxonomySetRequest
from infrastructure.database.models.content import (
    Article,
    ArticleAuthor,
    ArticleStatus,
    AuthorRole,
)
from infrastructure.database.models.taxonomy import ArticleTaxonomy, Taxonomy, TaxonomyType
from infrastructure.database.models.user import User
from services.article_workflow import (
    ArticleWorkflow,
    InvalidStatusError,
    WorkflowPermissionError,
    apply_content,
    slugify,
    unique_slug,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])

_STATUS_MESSAGES = {
    ArticleStatus.PUBLISHED.value: "Article published successfully",
    ArticleStatus.DRAFT.value: "Article saved as draft",
}


# ============================================================================
# Helpers
# ============================================================================


async def _get_article_or_404(db, article_id: str) -> Article:
    result = await db.execute(select(Article).where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article


async def _bylines(db, article: Article) -> list[BylineResponse]:
    result = await db.execute(
        select(ArticleAuthor.user_id, ArticleAuthor.role, User.username, User.profile_picture)
        .join(User, User.id == ArticleAuthor.user_id)
        .where(ArticleAuthor.article_id == article.id)
        .order_by(ArticleAuthor.created_at)
    )
    bylines = [
        BylineResponse(
            user_id=row.user_id,
            username=row.username,
            profile_picture=row.profile_picture,
            role=row.role,
        )
        for row in result.all()
    ]
    # Primary author first
    bylines.sort(key=lambda b: b.role != AuthorRole.PRIMARY.value)
    return bylines


async def _article_response(db, article: Article) -> ArticleResponse:
    response = ArticleResponse.model_validate(article)
    response.bylines = await _bylines(db, article)
    return response


async def _ensure_visible(db, article: Article, viewer: Optional[User]) -> None:
    if not await ArticleWorkflow(db).can_view(article, viewer):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to view this article",
        )


async def _ensure_editable(db, article: Article, user: User) -> None:
    if not await ArticleWorkflow(db).can_edit(article, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to modify this article",
        )


def _visibility_filter(viewer: Optional[User], show_drafts: bool):
    """WHERE clause for the list endpoints."""
    published = Article.status == ArticleStatus.PUBLISHED.value
    if not show_drafts or viewer is None:
        return published
    if viewer.is_editor:
        return None
    own = select(ArticleAuthor.article_id).where(ArticleAuthor.user_id == viewer.id)
    return or_(published, Article.primary_author_id == viewer.id, Article.id.in_(own))


def _taxonomy_filter(slug: str, term_type: TaxonomyType):
    linked = (
        select(ArticleTaxonomy.article_id)
        .join(Taxonomy, Taxonomy.id == ArticleTaxonomy.taxonomy_id)
        .where(and_(Taxonomy.slug == slug, Taxonomy.type == term_type.value))
    )
    return Article.id.in_(linked)


# ============================================================================
# Listing and reading
# ============================================================================


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    db: DbSession,
    viewer: Reader,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    show_drafts: bool = False,
    category: Optional[str] = None,
    tag: Optional[str] = None,
):
    """
    Paginated article list, newest first.

    Drafts are included only with ``show_drafts=true``: every draft for editors
    and admins, the requester's own drafts for anyone else.
    """
    conditions = []
    visibility = _visibility_filter(viewer, show_drafts)
    if visibility is not None:
        conditions.append(visibility)
    if category:
        conditions.append(
            or_(Article.category == category, _taxonomy_filter(category, TaxonomyType.CATEGORY))
        )
    if tag:
        conditions.append(_taxonomy_filter(tag, TaxonomyType.TAG))

    total = (
        await db.execute(select(func.count()).select_from(Article).where(*conditions))
    ).scalar_one()

    result = await db.execute(
        select(Article)
        .where(*conditions)
        .order_by(desc(func.coalesce(Article.published_at, Article.created_at)))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    articles = list(result.scalars().all())

    return ArticleListResponse(
        articles=[ArticleSummaryResponse.model_validate(a) for a in articles],
        pagination=PaginationInfo(
            page=page,
            limit=limit,
            total=total,
            has_more=page * limit < total,
        ),
    )


@router.get("/recent", response_model=list[ArticleSummaryResponse])
async def recent_articles(db: DbSession, viewer: Reader, limit: int = Query(5, ge=1, le=50)):
    """Most recently published articles."""
    result = await db.execute(
        select(Article)
        .where(Article.status == ArticleStatus.PUBLISHED.value)
        .order_by(desc(Article.published_at))
        .limit(limit)
    )
    return list(result.scalars().all())


@router.get("/slug/{slug}", response_model=ArticleResponse)
async def get_article_by_slug(slug: str, db: DbSession, viewer: Reader):
    result = await db.execute(select(Article).where(Article.slug == slug))
    article = result.scalar_one_or_none()
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    await _ensure_visible(db, article, viewer)

    if article.is_published:
        await db.execute(
            update(Article)
            .where(Article.id == article.id)
            .values(view_count=Article.view_count + 1)
        )
        await db.commit()
        await db.refresh(article)

    return await _article_response(db, article)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str, db: DbSession, viewer: Reader):
    article = await _get_article_or_404(db, article_id)
    await _ensure_visible(db, article, viewer)
    return await _article_response(db, article)


# ============================================================================
# Writing
# ============================================================================


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(body: ArticleCreateRequest, current_user: AuthorUser, db: DbSession):
    """
    Create a draft with the requester as primary author.

    A slug derived from the title is made unique with a numeric suffix; an
    explicit slug that is already taken is rejected with ``SLUG_EXISTS``.
    """
    if body.slug:
        slug = slugify(body.slug)
        taken = await db.execute(select(Article.id).where(Article.slug == slug))
        if taken.first() is not None:
            raise ConflictError(SLUG_EXISTS)
    else:
        slug = await unique_slug(db, slugify(body.title))

    coauthor_ids = [uid for uid in dict.fromkeys(body.coauthor_ids) if uid != current_user.id]
    if coauthor_ids:
        found = await db.execute(select(User.id).where(User.id.in_(coauthor_ids)))
        missing = set(coauthor_ids) - set(found.scalars().all())
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown coauthor: {sorted(missing)[0]}",
            )

    article = Article(
        primary_author_id=current_user.id,
        title=body.title,
        slug=slug,
        summary=body.summary,
        category=body.category,
        tags=body.tags,
        featured_image=body.featured_image,
        is_breaking=body.is_breaking,
        is_premium=body.is_premium,
        status=ArticleStatus.DRAFT.value,
    )
    apply_content(article, body.content)
    db.add(article)
    await db.flush()

    db.add(
        ArticleAuthor(
            article_id=article.id,
            user_id=current_user.id,
            role=AuthorRole.PRIMARY.value,
        )
    )
    for uid in coauthor_ids:
        db.add(ArticleAuthor(article_id=article.id, user_id=uid, role=AuthorRole.COAUTHOR.value))

    await commit_or_conflict(db)
    await db.refresh(article)
    logger.info("Article %s created by user %s", article.id, current_user.id)
    return await _article_response(db, article)


async def _save_article(
    article_id: str, body: ArticleUpdateRequest, current_user: User, db
) -> ArticleResponse:
    article = await _get_article_or_404(db, article_id)
    await _ensure_editable(db, article, current_user)

    updates = body.model_dump(exclude_unset=True)
    content = updates.pop("content", None)

    slug = updates.pop("slug", None)
    if slug:
        slug = slugify(slug)
        taken = await db.execute(
            select(Article.id).where(Article.slug == slug, Article.id != article.id)
        )
        if taken.first() is not None:
            raise ConflictError(SLUG_EXISTS)
        article.slug = slug

    for field, value in updates.items():
        if value is not None or field == "featured_image":
            setattr(article, field, value)
    if content is not None:
        apply_content(article, content)

    await commit_or_conflict(db)
    await db.refresh(article)
    return await _article_response(db, article)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str, body: ArticleUpdateRequest, current_user: CurrentUser, db: DbSession
):
    """Content save. Any ``status`` in the body is ignored."""
    return await _save_article(article_id, body, current_user, db)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def patch_article(
    article_id: str, body: ArticleUpdateRequest, current_user: CurrentUser, db: DbSession
):
    return await _save_article(article_id, body, current_user, db)


@router.post("/{article_id}/status", response_model=StatusChangeResponse)
async def change_article_status(
    article_id: str, body: StatusChangeRequest, current_user: CurrentUser, db: DbSession
):
    """Publish, unpublish or otherwise move an article through the workflow."""
    article = await _get_article_or_404(db, article_id)
    try:
        await ArticleWorkflow(db).change_status(article, body.status, current_user)
    except InvalidStatusError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except WorkflowPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    await db.commit()
    await db.refresh(article)
    return StatusChangeResponse(
        article=await _article_response(db, article),
        message=_STATUS_MESSAGES.get(body.status, f"Article status changed to {body.status}"),
    )


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(article_id: str, current_user: CurrentUser, db: DbSession):
    article = await _get_article_or_404(db, article_id)
    if not ArticleWorkflow.can_delete(article, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the primary author or an admin can delete this article",
        )

    await db.delete(article)
    await db.commit()
    logger.info("Article %s deleted by user %s", article_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Bylines
# ============================================================================


@router.get("/{article_id}/authors", response_model=list[BylineResponse])
async def list_article_authors(article_id: str, db: DbSession, viewer: Reader):
    article = await _get_article_or_404(db, article_id)
    await _ensure_visible(db, article, viewer)
    return await _bylines(db, article)


@router.post(
    "/{article_id}/authors",
    response_model=list[BylineResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_article_author(
    article_id: str, body: AddAuthorRequest, current_user: CurrentUser, db: DbSession
):
    article = await _get_article_or_404(db, article_id)
    await _ensure_editable(db, article, current_user)

    user = (await db.execute(select(User).where(User.id == body.user_id))).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    existing = await db.execute(
        select(ArticleAuthor.id).where(
            ArticleAuthor.article_id == article.id,
            ArticleAuthor.user_id == user.id,
        )
    )
    if existing.first() is not None or user.id == article.primary_author_id:
        raise ConflictError(DUPLICATE_AUTHOR)

    db.add(ArticleAuthor(article_id=article.id, user_id=user.id, role=body.role))
    await commit_or_conflict(db)
    return await _bylines(db, article)


@router.delete("/{article_id}/authors/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_article_author(
    article_id: str, user_id: str, current_user: CurrentUser, db: DbSession
):
    article = await _get_article_or_404(db, article_id)
    await _ensure_editable(db, article, current_user)

    if user_id == article.primary_author_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The primary author cannot be removed",
        )

    result = await db.execute(
        delete(ArticleAuthor).where(
            ArticleAuthor.article_id == article.id,
            ArticleAuthor.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")

    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Taxonomy links
# ============================================================================


async def _article_taxonomy(db, article_id: str) -> list[ArticleTaxonomyResponse]:
    result = await db.execute(
        select(Taxonomy, ArticleTaxonomy.is_primary)
        .join(ArticleTaxonomy, ArticleTaxonomy.taxonomy_id == Taxonomy.id)
        .where(ArticleTaxonomy.article_id == article_id)
        .order_by(desc(ArticleTaxonomy.is_primary), Taxonomy.name)
    )
    items = []
    for term, is_primary in result.all():
        item = ArticleTaxonomyResponse.model_validate(term)
        item.is_primary = is_primary
        items.append(item)
    return items


@router.get("/{article_id}/taxonomy", response_model=list[ArticleTaxonomyResponse])
async def get_article_taxonomy(article_id: str, db: DbSession, viewer: Reader):
    article = await _get_article_or_404(db, article_id)
    await _ensure_visible(db, article, viewer)
    return await _article_taxonomy(db, article.id)


@router.put("/{article_id}/taxonomy", response_model=list[ArticleTaxonomyResponse])
async def set_article_taxonomy(
    article_id: str, body: ArticleTaxonomySetRequest, current_user: CurrentUser, db: DbSession
):
    """Replace every taxonomy link of the article. At most one may be primary."""
    article = await _get_article_or_404(db, article_id)
    await _ensure_editable(db, article, current_user)

    items = list({item.taxonomy_id: item for item in body.items}.values())
    if sum(1 for item in items if item.is_primary) > 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only one taxonomy entry can be primary",
        )

    ids = [item.taxonomy_id for item in items]
    if ids:
        found = await db.execute(select(Taxonomy.id).where(Taxonomy.id.in_(ids)))
        missing = set(ids) - set(found.scalars().all())
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown taxonomy: {sorted(missing)[0]}",
            )

    await db.execute(delete(ArticleTaxonomy).where(ArticleTaxonomy.article_id == article.id))
    for item in items:
        db.add(
            ArticleTaxonomy(
                article_id=article.id,
                taxonomy_id=item.taxonomy_id,
                is_primary=item.is_primary,
            )
        )
    await commit_or_conflict(db)
    return await _article_taxonomy(db, article.id)


@router.post(
    "/{article_id}/taxonomy/{taxonomy_id}/primary",
    response_model=list[ArticleTaxonomyResponse],
)
async def set_primary_taxonomy(
    article_id: str, taxonomy_id: str, current_user: CurrentUser, db: DbSession
):
    article = await _get_article_or_404(db, article_id)
    await _ensure_editable(db, article, current_user)

    link = await db.execute(
        select(ArticleTaxonomy).where(
            ArticleTaxonomy.article_id == article.id,
            ArticleTaxonomy.taxonomy_id == taxonomy_id,
        )
    )
    if link.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Taxonomy is not assigned to this article",
        )

    await db.execute(
        update(ArticleTaxonomy)
        .where(ArticleTaxonomy.article_id == article.id)
        .values(is_primary=ArticleTaxonomy.taxonomy_id == taxonomy_id)
    )
    await db.commit()
    return await _article_taxonomy(db, article.id)
