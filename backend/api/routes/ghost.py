"""
Ghost CMS proxy routes.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from adapters.cms import GhostAdapter, GhostAPIError, GhostConfigError, get_ghost_adapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ghost", tags=["ghost"])

Ghost = Annotated[GhostAdapter, Depends(get_ghost_adapter)]


@router.get("/posts")
async def list_ghost_posts(
    ghost: Ghost,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    filter: Optional[str] = None,
):
    try:
        result = await ghost.get_posts(page=page, limit=limit, filter=filter)
    except (GhostConfigError, GhostAPIError) as e:
        logger.error("Failed to fetch Ghost posts: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch posts from Ghost",
        )
    return result.to_dict()


@router.get("/posts/slug/{slug}")
async def get_ghost_post(slug: str, ghost: Ghost):
    try:
        post = await ghost.get_post_by_slug(slug)
    except (GhostConfigError, GhostAPIError) as e:
        logger.error("Failed to fetch Ghost post %s: %s", slug, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch post from Ghost",
        )
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post
