from typing import Any, Awaitable, Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.engine import Result, Row
from sqlalchemy.orm import aliased
from sqlalchemy import select, func, or_
import asyncio
import logging

from plog.config import settings
from plog.exceptions import StoreUnavailableError
from plog.models.comment import Comment
from plog.models.image import Image
from plog.models.member import Member

logger = logging.getLogger(__name__)

class CommentStore:
    """Durable storage for comment records.

    Every round trip goes through :meth:`_guard`, which applies the
    store deadline and turns timeouts and connectivity failures into
    :class:`StoreUnavailableError`. Nothing here retries, and read
    methods never modify the session.

    Read queries return flat rows carrying the comment columns plus the
    author's ``nickname`` and ``profile_image_url``, so callers never
    navigate lazy relationships.
    """

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout

    async def _guard(self, awaitable: Awaitable[Any], operation: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Comment store {operation} exceeded {self.timeout}s deadline")
            raise StoreUnavailableError(f"Comment store timed out during {operation}")
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Comment store {operation} failed: {e}")
            raise StoreUnavailableError(f"Comment store unavailable during {operation}") from e

    async def execute(self, statement, operation: str) -> Result:
        """Execute a statement within the store deadline"""
        return await self._guard(self.db.execute(statement), operation)

    async def get(self, comment_id: int, for_update: bool = False) -> Optional[Comment]:
        """Get a comment by ID, optionally locking its row until commit"""
        stmt = select(Comment).where(Comment.id == comment_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.execute(stmt, "get")
        return result.scalar_one_or_none()

    async def add(self, comment: Comment) -> Comment:
        self.db.add(comment)
        await self._guard(self.db.flush(), "add")
        return comment

    async def remove(self, comment: Comment) -> None:
        await self.db.delete(comment)
        await self._guard(self.db.flush(), "remove")

    async def has_children(self, comment_id: int) -> bool:
        """Whether any comment, deleted or not, replies to this one"""
        stmt = select(select(Comment.id).where(Comment.parent_id == comment_id).exists())
        result = await self.execute(stmt, "has_children")
        return bool(result.scalar())

    async def find_root_page(self, post_id: int, offset: int, limit: int) -> List[Row]:
        """Root comments of a post, newest first.

        Deleted roots stay listed only while they still have replies.
        """
        child = aliased(Comment)
        has_children = select(child.id).where(child.parent_id == Comment.id).exists()
        stmt = (
            self._read_model(Comment.__table__.c)
            .where(
                Comment.post_id == post_id,
                Comment.parent_id.is_(None),
                or_(Comment.deleted.is_(False), has_children),
            )
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.execute(stmt, "find_root_page")
        return list(result.all())

    async def find_reply_page(self, parent_id: int, offset: int, limit: int) -> List[Row]:
        """Non-deleted direct replies of one comment, oldest first"""
        stmt = (
            self._read_model(Comment.__table__.c)
            .where(Comment.parent_id == parent_id, Comment.deleted.is_(False))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.execute(stmt, "find_reply_page")
        return list(result.all())

    async def find_replies_for_parents(
        self,
        parent_ids: Sequence[int],
        per_parent: int
    ) -> List[Row]:
        """Oldest non-deleted replies of many parents in a single query.

        Rows are numbered per parent with ``ROW_NUMBER()`` and cut at
        ``per_parent``, so no parent's reply list is loaded in full.
        Results are grouped by parent, oldest first within each group.
        """
        if not parent_ids:
            return []

        position = func.row_number().over(
            partition_by=Comment.parent_id,
            order_by=(Comment.created_at.asc(), Comment.id.asc()),
        ).label("position")
        ranked = (
            select(Comment.__table__, position)
            .where(Comment.parent_id.in_(parent_ids), Comment.deleted.is_(False))
            .subquery("ranked_replies")
        )
        stmt = (
            self._read_model(ranked.c)
            .where(ranked.c.position <= per_parent)
            .order_by(ranked.c.parent_id, ranked.c.position)
        )
        result = await self.execute(stmt, "find_replies_for_parents")
        return list(result.all())

    async def count_active_children(self, parent_ids: Sequence[int]) -> Dict[int, int]:
        """Non-deleted direct reply count per parent; parents without replies are absent"""
        if not parent_ids:
            return {}

        stmt = (
            select(Comment.parent_id, func.count(Comment.id))
            .where(Comment.parent_id.in_(parent_ids), Comment.deleted.is_(False))
            .group_by(Comment.parent_id)
        )
        result = await self.execute(stmt, "count_active_children")
        return {parent_id: count for parent_id, count in result.all()}

    async def commit(self) -> None:
        await self._guard(self.db.commit(), "commit")

    async def rollback(self) -> None:
        """Roll back the transaction; failures are logged so the caller's error is the one raised"""
        try:
            await self._guard(self.db.rollback(), "rollback")
        except (StoreUnavailableError, SQLAlchemyError) as e:
            logger.warning(f"Comment store rollback failed: {e}")

    @staticmethod
    def _read_model(columns):
        """Comment columns joined with the author's display fields"""
        return (
            select(
                columns.id,
                columns.post_id,
                columns.author_id,
                columns.parent_id,
                columns.content,
                columns.deleted,
                columns.like_count,
                columns.created_at,
                columns.updated_at,
                Member.nickname,
                Image.access_url.label("profile_image_url"),
            )
            .join(Member, Member.id == columns.author_id)
            .outerjoin(Image, Image.id == Member.profile_image_id)
        )
