"""
Models package for Plog API
"""
from plog.db.base import Base, BaseModel
from plog.models.image import Image
from plog.models.member import Member
from plog.models.post import Post
from plog.models.comment import Comment
from plog.models.comment_like import CommentLike

__all__ = [
    'Base',
    'BaseModel',
    'Image',
    'Member',
    'Post',
    'Comment',
    'CommentLike',
]
