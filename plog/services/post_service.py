from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from plog.models.post import Post
from plog.services.comment_store import CommentStore

class PostService:
    """Read-only view of posts needed by the comment engine.

    Post lifecycle lives elsewhere; comments only ask whether a post exists.
    Lookups share the comment store's deadline and error mapping.
    """

    def __init__(self, db: AsyncSession, store: Optional[CommentStore] = None):
        self.db = db
        self.store = store or CommentStore(db)

    async def exists(self, post_id: int) -> bool:
        stmt = select(select(Post.id).where(Post.id == post_id).exists())
        result = await self.store.execute(stmt, "post_exists")
        return bool(result.scalar())
