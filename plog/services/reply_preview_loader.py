from collections import defaultdict
from typing import Dict, List, Sequence
from sqlalchemy.engine import Row
import logging

from plog.config import settings
from plog.exceptions import CommentValidationError
from plog.schemas.comment_schema import AuthorInfo, ReplyResponse, Slice
from plog.services.comment_store import CommentStore
from plog.utils.pagination import split_page

logger = logging.getLogger(__name__)

def author_from_row(row: Row) -> AuthorInfo:
    return AuthorInfo(
        id=row.author_id,
        nickname=row.nickname,
        profile_image_url=row.profile_image_url,
    )

def visible_content(row: Row) -> str:
    """Content as readers see it; deleted comments show the placeholder"""
    if row.deleted:
        return settings.DELETED_COMMENT_PLACEHOLDER
    return row.content

def reply_from_row(row: Row) -> ReplyResponse:
    return ReplyResponse(
        id=row.id,
        post_id=row.post_id,
        parent_id=row.parent_id,
        content=visible_content(row),
        deleted=row.deleted,
        like_count=row.like_count,
        author=author_from_row(row),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )

class ReplyPreviewLoader:
    """Loads capped reply previews for a batch of parent comments.

    One store round trip serves every parent: the store returns up to
    ``per_parent + 1`` oldest active replies per parent, and the extra
    row only tells whether that parent's preview has a next page.
    """

    def __init__(self, store: CommentStore):
        self.store = store

    async def load_previews(
        self,
        parent_ids: Sequence[int],
        per_parent: int
    ) -> Dict[int, Slice[ReplyResponse]]:
        if per_parent < 1:
            raise CommentValidationError(f"Preview size must be positive, got {per_parent}")

        ids = list(dict.fromkeys(parent_ids))
        if not ids:
            return {}

        rows = await self.store.find_replies_for_parents(ids, per_parent + 1)

        grouped: Dict[int, List[Row]] = defaultdict(list)
        for row in rows:
            grouped[row.parent_id].append(row)

        previews = {}
        for parent_id in ids:
            replies, has_next = split_page(grouped.get(parent_id, []), per_parent)
            previews[parent_id] = Slice[ReplyResponse](
                content=[reply_from_row(row) for row in replies],
                has_next=has_next,
            )

        logger.debug(f"Loaded reply previews for {len(ids)} parents from {len(rows)} rows")
        return previews
