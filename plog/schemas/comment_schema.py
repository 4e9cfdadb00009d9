from pydantic import BaseModel, ConfigDict, Field
from typing import Generic, List, Optional, TypeVar
from datetime import datetime

T = TypeVar("T")

class Slice(BaseModel, Generic[T]):
    """A page of results that only knows whether another page follows."""
    content: List[T] = []
    has_next: bool = False

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: Optional[int] = None

class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

class CommentCreatedResponse(BaseModel):
    id: int

class AuthorInfo(BaseModel):
    id: int
    nickname: str
    profile_image_url: Optional[str] = None

class ReplyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    parent_id: int
    content: str
    deleted: bool = False
    like_count: int = 0
    author: AuthorInfo
    created_at: datetime
    updated_at: datetime

class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    content: str
    deleted: bool = False
    like_count: int = 0
    author: AuthorInfo
    reply_count: int = 0
    preview_replies: Slice[ReplyResponse]
    created_at: datetime
    updated_at: datetime

class CommentLikeResponse(BaseModel):
    comment_id: int
    liked: bool
    like_count: int
