from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, update, delete
import logging

from plog.exceptions import CommentError, CommentNotFoundError
from plog.models.comment import Comment
from plog.models.comment_like import CommentLike
from plog.services.comment_store import CommentStore

logger = logging.getLogger(__name__)

class CommentLikeService:
    def __init__(self, db: AsyncSession, store: Optional[CommentStore] = None):
        self.db = db
        self.store = store or CommentStore(db)

    async def like_comment(self, comment_id: int, member_id: int) -> bool:
        """Like a comment; returns False if the member already liked it"""
        try:
            await self._lock_comment(comment_id)

            if await self._find_like(comment_id, member_id) is not None:
                await self.store.commit()
                return False

            self.db.add(CommentLike(comment_id=comment_id, member_id=member_id))
            await self.store.execute(
                update(Comment)
                .where(Comment.id == comment_id)
                .values(like_count=Comment.like_count + 1),
                "increment_like_count",
            )
            await self.store.commit()

        except CommentError:
            await self.store.rollback()
            raise
        except Exception as e:
            logger.error(f"Error liking comment {comment_id}: {e}")
            await self.store.rollback()
            raise

        logger.info(f"Member {member_id} liked comment {comment_id}")
        return True

    async def unlike_comment(self, comment_id: int, member_id: int) -> bool:
        """Remove a like; returns False if the member had not liked the comment"""
        try:
            await self._lock_comment(comment_id)

            like_id = await self._find_like(comment_id, member_id)
            if like_id is None:
                await self.store.commit()
                return False

            await self.store.execute(delete(CommentLike).where(CommentLike.id == like_id), "delete_like")
            await self.store.execute(
                update(Comment)
                .where(and_(Comment.id == comment_id, Comment.like_count > 0))
                .values(like_count=Comment.like_count - 1),
                "decrement_like_count",
            )
            await self.store.commit()

        except CommentError:
            await self.store.rollback()
            raise
        except Exception as e:
            logger.error(f"Error unliking comment {comment_id}: {e}")
            await self.store.rollback()
            raise

        logger.info(f"Member {member_id} unliked comment {comment_id}")
        return True

    async def get_like_count(self, comment_id: int) -> int:
        comment = await self.store.get(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return comment.like_count

    async def _lock_comment(self, comment_id: int) -> Comment:
        comment = await self.store.get(comment_id, for_update=True)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return comment

    async def _find_like(self, comment_id: int, member_id: int) -> Optional[int]:
        result = await self.store.execute(
            select(CommentLike.id).where(
                and_(
                    CommentLike.comment_id == comment_id,
                    CommentLike.member_id == member_id
                )
            ),
            "find_like",
        )
        return result.scalar_one_or_none()
