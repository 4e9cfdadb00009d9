from typing import Dict, Sequence
import logging

from plog.services.comment_store import CommentStore

logger = logging.getLogger(__name__)

class ReplyAggregator:
    """Counts the non-deleted direct replies of many parents at once."""

    def __init__(self, store: CommentStore):
        self.store = store

    async def count_replies(self, parent_ids: Sequence[int]) -> Dict[int, int]:
        """Get the reply count of every given parent.

        Issues at most one grouped count query; parents without active
        replies map to 0.
        """
        ids = list(dict.fromkeys(parent_ids))
        if not ids:
            return {}

        counts = await self.store.count_active_children(ids)
        logger.debug(f"Counted replies for {len(ids)} parents")
        return {parent_id: counts.get(parent_id, 0) for parent_id in ids}
