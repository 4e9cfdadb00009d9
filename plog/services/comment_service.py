from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from plog.config import settings
from plog.exceptions import (
    CommentError,
    CommentNotFoundError,
    CommentValidationError,
    ParentCommentNotFoundError,
    PostNotFoundError,
)
from plog.models.comment import Comment
from plog.schemas.comment_schema import CommentResponse, ReplyResponse, Slice
from plog.services.comment_store import CommentStore
from plog.services.post_service import PostService
from plog.services.reply_aggregator import ReplyAggregator
from plog.services.reply_preview_loader import (
    ReplyPreviewLoader,
    author_from_row,
    reply_from_row,
    visible_content,
)
from plog.utils.pagination import page_offset, split_page

logger = logging.getLogger(__name__)

class CommentService:
    """Create, read, update and delete comments on a post.

    Comments form two tiers: root comments on the post and their direct
    replies. Deleting a comment that still has replies only blanks it
    (soft delete) so the replies keep their anchor; a comment without
    replies is removed outright.

    The service holds no state between calls. Each write runs as one
    transaction on the request's session, with the affected row locked
    while the decision is made.
    """

    def __init__(
        self,
        db: AsyncSession,
        post_service: Optional[PostService] = None,
        store: Optional[CommentStore] = None,
        aggregator: Optional[ReplyAggregator] = None,
        preview_loader: Optional[ReplyPreviewLoader] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.store = store or CommentStore(db)
        self.post_service = post_service or PostService(db, store=self.store)
        self.aggregator = aggregator or ReplyAggregator(self.store)
        self.preview_loader = preview_loader or ReplyPreviewLoader(self.store)
        self.clock = clock or datetime.utcnow

    async def create_comment(
        self,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: Optional[int] = None
    ) -> int:
        """Create a root comment, or a reply when parent_id is given.

        Returns:
            The id of the new comment

        Raises:
            CommentValidationError: If content is blank or too long
            PostNotFoundError: If the post does not exist
            ParentCommentNotFoundError: If the parent is missing or on another post
        """
        self._validate_content(content)

        try:
            if not await self.post_service.exists(post_id):
                raise PostNotFoundError(post_id)

            if parent_id is not None:
                # Locked so a concurrent delete cannot remove the parent under the new reply
                parent = await self.store.get(parent_id, for_update=True)
                if parent is None or parent.post_id != post_id:
                    raise ParentCommentNotFoundError(parent_id, post_id)

            now = self.clock()
            comment = Comment(
                post_id=post_id,
                author_id=author_id,
                content=content,
                parent_id=parent_id,
                deleted=False,
                like_count=0,
                created_at=now,
                updated_at=now,
            )
            await self.store.add(comment)
            await self.store.commit()

        except CommentError:
            await self.store.rollback()
            raise
        except Exception as e:
            logger.error(f"Error creating comment on post {post_id}: {e}")
            await self.store.rollback()
            raise

        logger.info(f"Created comment {comment.id} by member {author_id} on post {post_id}")
        return comment.id

    async def get_comments_by_post(
        self,
        post_id: int,
        page_index: int = 0
    ) -> Slice[CommentResponse]:
        """Get a page of root comments, newest first, with reply previews.

        The page costs a fixed number of queries however many roots it
        holds: one for the roots, one reply count for all of them and one
        preview batch for all of them.

        Raises:
            PostNotFoundError: If the post does not exist
        """
        self._validate_page_index(page_index)

        if not await self.post_service.exists(post_id):
            raise PostNotFoundError(post_id)

        page_size = settings.COMMENT_PAGE_SIZE
        rows = await self.store.find_root_page(
            post_id,
            offset=page_offset(page_index, page_size),
            limit=page_size + 1,
        )
        roots, has_next = split_page(rows, page_size)

        root_ids = [row.id for row in roots]
        reply_counts = await self.aggregator.count_replies(root_ids)
        previews = await self.preview_loader.load_previews(root_ids, settings.REPLY_PREVIEW_SIZE)

        comments = [
            self._comment_from_row(
                row,
                reply_count=reply_counts.get(row.id, 0),
                preview=previews.get(row.id) or Slice[ReplyResponse](),
            )
            for row in roots
        ]
        return Slice[CommentResponse](content=comments, has_next=has_next)

    async def get_replies_by_comment(
        self,
        comment_id: int,
        page_index: int = 0
    ) -> Slice[ReplyResponse]:
        """Get a page of a comment's active replies, oldest first.

        Raises:
            CommentNotFoundError: If the comment does not exist
        """
        self._validate_page_index(page_index)

        parent = await self.store.get(comment_id)
        if parent is None:
            raise CommentNotFoundError(comment_id)

        page_size = settings.REPLY_PAGE_SIZE
        rows = await self.store.find_reply_page(
            comment_id,
            offset=page_offset(page_index, page_size),
            limit=page_size + 1,
        )
        replies, has_next = split_page(rows, page_size)
        return Slice[ReplyResponse](
            content=[reply_from_row(row) for row in replies],
            has_next=has_next,
        )

    async def update_comment(self, comment_id: int, content: str) -> None:
        """Replace a comment's content.

        Soft-deleted comments are written like any other.

        Raises:
            CommentValidationError: If content is blank or too long
            CommentNotFoundError: If the comment does not exist
        """
        self._validate_content(content)

        try:
            comment = await self.store.get(comment_id, for_update=True)
            if comment is None:
                raise CommentNotFoundError(comment_id)

            comment.content = content
            comment.updated_at = self.clock()
            await self.store.commit()

        except CommentError:
            await self.store.rollback()
            raise
        except Exception as e:
            logger.error(f"Error updating comment {comment_id}: {e}")
            await self.store.rollback()
            raise

        logger.info(f"Updated comment {comment_id}")

    async def delete_comment(self, comment_id: int) -> None:
        """Delete a comment.

        A comment with replies is soft-deleted: flagged and its content
        replaced by the placeholder. A comment without replies is removed.
        Deleting an already soft-deleted comment does nothing.

        Raises:
            CommentNotFoundError: If the comment does not exist
        """
        try:
            # The lock keeps a reply from being attached between the check and the delete
            comment = await self.store.get(comment_id, for_update=True)
            if comment is None:
                raise CommentNotFoundError(comment_id)

            if comment.deleted:
                await self.store.commit()
                logger.info(f"Comment {comment_id} already deleted")
                return

            if await self.store.has_children(comment_id):
                comment.deleted = True
                comment.content = settings.DELETED_COMMENT_PLACEHOLDER
                comment.updated_at = self.clock()
                outcome = "soft-deleted"
            else:
                await self.store.remove(comment)
                outcome = "removed"

            await self.store.commit()

        except CommentError:
            await self.store.rollback()
            raise
        except Exception as e:
            logger.error(f"Error deleting comment {comment_id}: {e}")
            await self.store.rollback()
            raise

        logger.info(f"Comment {comment_id} {outcome}")

    def _comment_from_row(
        self,
        row: Row,
        reply_count: int,
        preview: Slice[ReplyResponse]
    ) -> CommentResponse:
        return CommentResponse(
            id=row.id,
            post_id=row.post_id,
            content=visible_content(row),
            deleted=row.deleted,
            like_count=row.like_count,
            author=author_from_row(row),
            reply_count=reply_count,
            preview_replies=preview,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _validate_content(content: str) -> None:
        if content is None or not content.strip():
            raise CommentValidationError("Comment content must not be empty")
        # len() counts code points
        if len(content) > settings.COMMENT_MAX_LENGTH:
            raise CommentValidationError(
                f"Comment content exceeds {settings.COMMENT_MAX_LENGTH} characters"
            )

    @staticmethod
    def _validate_page_index(page_index: int) -> None:
        if page_index < 0:
            raise CommentValidationError(f"Page index must not be negative, got {page_index}")
