from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from plog.config import settings
from plog.db.session import get_db
from plog.exceptions import (
    CommentError,
    CommentValidationError,
    NotFoundError,
    StoreUnavailableError,
)
from plog.schemas.comment_schema import (
    CommentCreate,
    CommentCreatedResponse,
    CommentLikeResponse,
    CommentResponse,
    CommentUpdate,
    ReplyResponse,
    Slice,
)
from plog.services.auth_service import get_current_member_id
from plog.services.comment_like_service import CommentLikeService
from plog.services.comment_service import CommentService
from plog.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()

def to_http_exception(error: CommentError) -> HTTPException:
    """Map a comment domain error to its HTTP status"""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, CommentValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment storage is temporarily unavailable",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))

@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.COMMENT_WRITE_RATE_LIMIT)
async def create_comment(
    request: Request,
    post_id: int,
    comment_data: CommentCreate,
    member_id: int = Depends(get_current_member_id),
    db: AsyncSession = Depends(get_db)
):
    """Create a comment on a post, or a reply when parent_id is set"""
    try:
        comment_service = CommentService(db)
        comment_id = await comment_service.create_comment(
            post_id=post_id,
            author_id=member_id,
            content=comment_data.content,
            parent_id=comment_data.parent_id,
        )
        return CommentCreatedResponse(id=comment_id)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error creating comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create comment"
        )

@router.get("/posts/{post_id}/comments", response_model=Slice[CommentResponse])
async def get_post_comments(
    post_id: int,
    page: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Get root comments of a post, newest first, each with a reply preview"""
    try:
        comment_service = CommentService(db)
        return await comment_service.get_comments_by_post(post_id, page)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting post comments: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comments"
        )

@router.get("/comments/{comment_id}/replies", response_model=Slice[ReplyResponse])
async def get_comment_replies(
    comment_id: int,
    page: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Get replies to a comment beyond its preview, oldest first"""
    try:
        comment_service = CommentService(db)
        return await comment_service.get_replies_by_comment(comment_id, page)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting comment replies: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get replies"
        )

@router.put("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.COMMENT_WRITE_RATE_LIMIT)
async def update_comment(
    request: Request,
    comment_id: int,
    comment_update: CommentUpdate,
    member_id: int = Depends(get_current_member_id),
    db: AsyncSession = Depends(get_db)
):
    """Update a comment's content"""
    try:
        comment_service = CommentService(db)
        await comment_service.update_comment(comment_id, comment_update.content)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update comment"
        )

@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.COMMENT_WRITE_RATE_LIMIT)
async def delete_comment(
    request: Request,
    comment_id: int,
    member_id: int = Depends(get_current_member_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a comment; comments that have replies are blanked instead of removed"""
    try:
        comment_service = CommentService(db)
        await comment_service.delete_comment(comment_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete comment"
        )

@router.post("/comments/{comment_id}/likes", response_model=CommentLikeResponse)
async def like_comment(
    comment_id: int,
    member_id: int = Depends(get_current_member_id),
    db: AsyncSession = Depends(get_db)
):
    """Like a comment"""
    try:
        like_service = CommentLikeService(db)
        await like_service.like_comment(comment_id, member_id)
        like_count = await like_service.get_like_count(comment_id)
        return CommentLikeResponse(comment_id=comment_id, liked=True, like_count=like_count)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error liking comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to like comment"
        )

@router.delete("/comments/{comment_id}/likes", response_model=CommentLikeResponse)
async def unlike_comment(
    comment_id: int,
    member_id: int = Depends(get_current_member_id),
    db: AsyncSession = Depends(get_db)
):
    """Remove the current member's like from a comment"""
    try:
        like_service = CommentLikeService(db)
        await like_service.unlike_comment(comment_id, member_id)
        like_count = await like_service.get_like_count(comment_id)
        return CommentLikeResponse(comment_id=comment_id, liked=False, like_count=like_count)

    except CommentError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error unliking comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to unlike comment"
        )
