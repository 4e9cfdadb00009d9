from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from plog.db.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(1000), nullable=False)
    # NULL marks a root comment; the parent always belongs to the same post
    parent_id = Column(Integer, ForeignKey("comments.id"), nullable=True)
    deleted = Column(Boolean, default=False, nullable=False)

    # Relationships
    post = relationship("Post", back_populates="comments")
    author = relationship("Member", back_populates="comments")
    likes = relationship("CommentLike", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True)

    # Denormalized for performance
    like_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index('ix_comments_post_parent_created', 'post_id', 'parent_id', 'created_at'),
        Index('ix_comments_parent_created', 'parent_id', 'created_at'),
        Index('ix_comments_author_id', 'author_id'),
    )
