from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from plog.db.base import BaseModel

class Post(BaseModel):
    __tablename__ = "posts"

    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)

    # Relationships
    member = relationship("Member", back_populates="posts")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_posts_member_id', 'member_id'),
        Index('ix_posts_created_at', 'created_at'),
    )
