"""
Comment and vote routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import delete, select

from api.dependencies import CurrentUser, DbSession, OptionalUser
from api.errors import commit_or_conflict
from api.schemas.content import (
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    VoteRequest,
)
from infrastructure.database.models.comment import Comment, Vote
from infrastructure.database.models.content import Article
from infrastructure.database.models.user import User
from services.article_workflow import ArticleWorkflow
from services.comment_votes import CommentVoteService
from services.site_settings import load_site_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comments"])


def _to_response(comment: Comment, username: Optional[str]) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    response.author_username = username
    return response


async def _get_comment_or_404(db, comment_id: str) -> Comment:
    result = await db.execute(select(Comment).where(Comment.id == comment_id))
    comment = result.scalar_one_or_none()
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return comment


async def _get_visible_article(db, article_id: str, viewer: Optional[User]) -> Article:
    result = await db.execute(select(Article).where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    if not await ArticleWorkflow(db).can_view(article, viewer):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to view this article",
        )
    return article


async def _username(db, user_id: str) -> Optional[str]:
    result = await db.execute(select(User.username).where(User.id == user_id))
    return result.scalar_one_or_none()


def _ensure_owner_or_admin(comment: Comment, user: User) -> None:
    if comment.author_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own comments",
        )


@router.get("/articles/{article_id}/comments", response_model=list[CommentResponse])
async def list_comments(article_id: str, db: DbSession, viewer: OptionalUser):
    """Comments of an article as a tree; replies nest under their parent."""
    await _get_visible_article(db, article_id, viewer)

    result = await db.execute(
        select(Comment, User.username)
        .join(User, User.id == Comment.author_id)
        .where(Comment.article_id == article_id)
        .order_by(Comment.created_at)
    )

    nodes: dict[str, CommentResponse] = {}
    parents: dict[str, Optional[str]] = {}
    for comment, username in result.all():
        nodes[comment.id] = _to_response(comment, username)
        parents[comment.id] = comment.parent_id

    roots = []
    for comment_id, node in nodes.items():
        parent = nodes.get(parents[comment_id]) if parents[comment_id] else None
        if parent is not None:
            parent.replies.append(node)
        else:
            roots.append(node)
    return roots


@router.post(
    "/articles/{article_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    article_id: str, body: CommentCreateRequest, current_user: CurrentUser, db: DbSession
):
    site = await load_site_settings(db)
    if not site.allow_comments:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Comments are currently disabled",
        )
    await _get_visible_article(db, article_id, current_user)

    if body.parent_id:
        parent = await _get_comment_or_404(db, body.parent_id)
        if parent.article_id != article_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent comment belongs to another article",
            )

    comment = Comment(
        article_id=article_id,
        author_id=current_user.id,
        parent_id=body.parent_id,
        content=body.content.strip(),
    )
    db.add(comment)
    await commit_or_conflict(db)
    await db.refresh(comment)
    return _to_response(comment, current_user.username)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str, body: CommentUpdateRequest, current_user: CurrentUser, db: DbSession
):
    comment = await _get_comment_or_404(db, comment_id)
    _ensure_owner_or_admin(comment, current_user)

    comment.content = body.content.strip()
    await db.commit()
    await db.refresh(comment)
    return _to_response(comment, await _username(db, comment.author_id))


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: str, current_user: CurrentUser, db: DbSession):
    """Delete a comment together with its replies and their votes."""
    comment = await _get_comment_or_404(db, comment_id)
    _ensure_owner_or_admin(comment, current_user)

    doomed = [comment.id]
    frontier = [comment.id]
    while frontier:
        result = await db.execute(select(Comment.id).where(Comment.parent_id.in_(frontier)))
        frontier = list(result.scalars().all())
        doomed.extend(frontier)

    await db.execute(delete(Vote).where(Vote.comment_id.in_(doomed)))
    await db.execute(delete(Comment).where(Comment.id.in_(doomed)))
    await db.commit()
    logger.info("Comment %s deleted by user %s (%d total)", comment_id, current_user.id, len(doomed))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/comments/{comment_id}/vote", response_model=CommentResponse)
async def vote_comment(
    comment_id: str, body: VoteRequest, current_user: CurrentUser, db: DbSession
):
    comment = await _get_comment_or_404(db, comment_id)
    comment = await CommentVoteService(db).cast(comment, current_user.id, body.vote_type)
    await commit_or_conflict(db)
    return _to_response(comment, await _username(db, comment.author_id))


@router.delete("/comments/{comment_id}/vote", response_model=CommentResponse)
async def remove_vote(comment_id: str, current_user: CurrentUser, db: DbSession):
    comment = await _get_comment_or_404(db, comment_id)
    removed = await CommentVoteService(db).withdraw(comment, current_user.id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vote not found")
    await db.commit()
    return _to_response(comment, await _username(db, comment.author_id))
