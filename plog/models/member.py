from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from plog.db.base import BaseModel

class Member(BaseModel):
    __tablename__ = "members"

    email = Column(String(100), unique=True, index=True, nullable=False)
    nickname = Column(String(50), nullable=False)
    profile_image_id = Column(Integer, ForeignKey("images.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    profile_image = relationship("Image")
    posts = relationship("Post", back_populates="member", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")
