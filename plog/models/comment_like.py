from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from plog.db.base import BaseModel

class CommentLike(BaseModel):
    __tablename__ = "comment_likes"

    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    comment = relationship("Comment", back_populates="likes")
    member = relationship("Member")

    # One like per member per comment
    __table_args__ = (
        UniqueConstraint('comment_id', 'member_id', name='uk_comment_member'),
        Index('ix_comment_likes_member_id', 'member_id'),
    )
