"""
Comment voting.

A user holds at most one vote per comment (unique index on
``(user_id, comment_id)``). The ``upvotes``/``downvotes`` tallies on the
comment are adjusted with SQL expressions inside the caller's transaction,
so concurrent voters never overwrite each other's increments.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models.comment import Comment, Vote, VoteType

logger = logging.getLogger(__name__)

_COLUMNS = {
    VoteType.UP.value: Comment.upvotes,
    VoteType.DOWN.value: Comment.downvotes,
}


def _tally_change(vote_type: str, delta: int) -> dict:
    column = _COLUMNS[vote_type]
    return {column.key: column + delta}


class CommentVoteService:
    """Casts, switches and withdraws votes while keeping tallies in step."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_vote(self, comment_id: str, user_id: str) -> Optional[Vote]:
        result = await self.db.execute(
            select(Vote).where(Vote.comment_id == comment_id, Vote.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _adjust(self, comment_id: str, **values) -> None:
        await self.db.execute(
            update(Comment).where(Comment.id == comment_id).values(**values)
        )

    async def cast(self, comment: Comment, user_id: str, vote_type: VoteType) -> Comment:
        """
        Record ``vote_type`` for ``user_id`` on ``comment``.

        Repeating the same vote changes nothing. Switching direction moves one
        count from the old tally to the new one.
        """
        vote_type = VoteType(vote_type).value
        existing = await self.get_vote(comment.id, user_id)

        if existing is not None and existing.vote_type == vote_type:
            return comment

        if existing is not None:
            previous = existing.vote_type
            existing.vote_type = vote_type
            await self._adjust(
                comment.id,
                **_tally_change(previous, -1),
                **_tally_change(vote_type, 1),
            )
            logger.info("User %s switched vote on comment %s to %s", user_id, comment.id, vote_type)
        else:
            self.db.add(Vote(user_id=user_id, comment_id=comment.id, vote_type=vote_type))
            await self.db.flush()
            await self._adjust(comment.id, **_tally_change(vote_type, 1))

        await self.db.flush()
        await self.db.refresh(comment)
        return comment

    async def withdraw(self, comment: Comment, user_id: str) -> bool:
        """Remove the user's vote. Returns False when there was none."""
        existing = await self.get_vote(comment.id, user_id)
        if existing is None:
            return False

        vote_type = existing.vote_type
        await self.db.delete(existing)
        await self._adjust(comment.id, **_tally_change(vote_type, -1))
        await self.db.flush()
        await self.db.refresh(comment)
        return True
