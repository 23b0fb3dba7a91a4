"""
Taxonomy routes: unified tags/categories plus the legacy read endpoints.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select

from api.dependencies import AdminUser, AuthorUser, DbSession
from api.errors import DUPLICATE_TAXONOMY, ConflictError, commit_or_conflict
from api.schemas.taxonomy import (
    LegacyTermResponse,
    TaxonomyCreateRequest,
    TaxonomyResponse,
    TaxonomyUpdateRequest,
)
from infrastructure.database.models.taxonomy import Category, Tag, Taxonomy
from services.article_workflow import slugify

logger = logging.getLogger(__name__)

router = APIRouter(tags=["taxonomy"])


async def _get_term_or_404(db, taxonomy_id: str) -> Taxonomy:
    result = await db.execute(select(Taxonomy).where(Taxonomy.id == taxonomy_id))
    term = result.scalar_one_or_none()
    if not term:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Taxonomy not found")
    return term


async def _ensure_slug_free(db, slug: str, term_type: str, exclude_id: Optional[str] = None):
    query = select(Taxonomy.id).where(Taxonomy.slug == slug, Taxonomy.type == term_type)
    if exclude_id:
        query = query.where(Taxonomy.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(DUPLICATE_TAXONOMY)


@router.get("/taxonomy", response_model=list[TaxonomyResponse])
async def list_taxonomy(db: DbSession, type: Optional[Literal["tag", "category"]] = None):
    query = select(Taxonomy).order_by(Taxonomy.type, Taxonomy.name)
    if type:
        query = query.where(Taxonomy.type == type)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/taxonomy/slug/{slug}", response_model=TaxonomyResponse)
async def get_taxonomy_by_slug(
    slug: str, db: DbSession, type: Optional[Literal["tag", "category"]] = None
):
    query = select(Taxonomy).where(Taxonomy.slug == slug)
    if type:
        query = query.where(Taxonomy.type == type)
    term = (await db.execute(query)).scalars().first()
    if not term:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Taxonomy not found")
    return term


@router.get("/taxonomy/{taxonomy_id}", response_model=TaxonomyResponse)
async def get_taxonomy(taxonomy_id: str, db: DbSession):
    return await _get_term_or_404(db, taxonomy_id)


@router.post("/taxonomy", response_model=TaxonomyResponse, status_code=status.HTTP_201_CREATED)
async def create_taxonomy(body: TaxonomyCreateRequest, current_user: AuthorUser, db: DbSession):
    slug = slugify(body.slug or body.name)
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid slug")
    await _ensure_slug_free(db, slug, body.type)
    if body.parent_id:
        await _get_term_or_404(db, body.parent_id)

    term = Taxonomy(
        name=body.name,
        slug=slug,
        type=body.type,
        description=body.description,
        color=body.color,
        parent_id=body.parent_id,
    )
    db.add(term)
    await commit_or_conflict(db)
    await db.refresh(term)
    logger.info("Taxonomy %s (%s) created by user %s", term.slug, term.type, current_user.id)
    return term


@router.patch("/taxonomy/{taxonomy_id}", response_model=TaxonomyResponse)
async def update_taxonomy(
    taxonomy_id: str, body: TaxonomyUpdateRequest, current_user: AuthorUser, db: DbSession
):
    term = await _get_term_or_404(db, taxonomy_id)
    updates = body.model_dump(exclude_unset=True)

    if updates.get("slug"):
        updates["slug"] = slugify(updates["slug"])
        await _ensure_slug_free(db, updates["slug"], term.type, exclude_id=term.id)
    if updates.get("parent_id"):
        if updates["parent_id"] == term.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A taxonomy entry cannot be its own parent",
            )
        await _get_term_or_404(db, updates["parent_id"])

    for field, value in updates.items():
        if value is None and field in ("name", "slug"):
            continue
        setattr(term, field, value)

    await commit_or_conflict(db)
    await db.refresh(term)
    return term


@router.delete("/taxonomy/{taxonomy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_taxonomy(taxonomy_id: str, admin: AdminUser, db: DbSession):
    term = await _get_term_or_404(db, taxonomy_id)
    await db.delete(term)
    await db.commit()
    logger.info("Taxonomy %s deleted by admin %s", taxonomy_id, admin.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Legacy tables


@router.get("/categories", response_model=list[LegacyTermResponse])
async def list_categories(db: DbSession):
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


@router.get("/tags", response_model=list[LegacyTermResponse])
async def list_tags(db: DbSession):
    result = await db.execute(select(Tag).order_by(Tag.name))
    return list(result.scalars().all())
