from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from quietpost.config import settings
from quietpost.db.session import get_db
from quietpost.models.base import generate_anonymous_id
from quietpost.repositories.comment_store import CommentStore
from quietpost.schemas.comment_schema import (
    AuthorReplyCreate,
    AuthorReplyResponse,
    CommentCountResponse,
    CommentCreate,
    CommentCreatedResponse,
    CommentRead,
    CommentResponse,
    Thread,
    ThreadListResponse,
    ThreadResponse
)
from quietpost.schemas.participant_schema import Participant
from quietpost.services.exceptions import (
    InvalidContent,
    PostNotFound,
    StoreUnavailable,
    ThreadNotFound
)
from quietpost.services.identity_service import get_optional_participant, resolve_participant
from quietpost.services.redis_service import RedisService, get_redis
from quietpost.services.thread_partitioner import build_thread_key, participant_of
from quietpost.services.thread_service import ThreadService
from quietpost.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()

def to_comment_response(comment: CommentRead, viewer: Optional[Participant]) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        is_author_reply=comment.is_author_reply,
        is_mine=viewer is not None and participant_of(comment) == viewer,
        created_at=comment.created_at
    )

def to_thread_response(thread: Thread, viewer: Optional[Participant], own_key: Optional[str]) -> ThreadResponse:
    """Thread keys name their participant, so only the author and the
    participant of a thread get to see its key"""
    visible = thread.viewer_can_reply or thread.thread_key == own_key
    return ThreadResponse(
        thread_key=thread.thread_key if visible else None,
        comments=[to_comment_response(c, viewer) for c in thread.comments],
        viewer_can_reply=thread.viewer_can_reply,
        viewer_reply_count=thread.viewer_reply_count,
        last_activity=thread.last_activity
    )

@router.get("/{post_id}/threads", response_model=ThreadListResponse)
async def get_threads(
    post_id: int,
    viewer: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db)
):
    """Get the comment threads of a post, oldest conversation first"""
    try:
        service = ThreadService(CommentStore(db))
        threads = await service.get_threads(post_id, viewer)
        own_key = build_thread_key(post_id, viewer) if viewer is not None else None

        return ThreadListResponse(
            post_id=post_id,
            threads=[to_thread_response(t, viewer, own_key) for t in threads],
            total_comments=sum(len(t.comments) for t in threads)
        )
    except PostNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    except StoreUnavailable as e:
        logger.error(f"Get threads error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comments are temporarily unavailable"
        )
    except Exception as e:
        logger.error(f"Unexpected comments error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comments"
        )

@router.post("/{post_id}/comments", response_model=CommentCreatedResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.COMMENT_RATE_LIMIT)
async def create_comment(
    request: Request,
    response: Response,
    post_id: int,
    comment_data: CommentCreate,
    participant: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis)
):
    """Add a message to the caller's thread on a post.

    Anonymous callers without a session id get a new one, returned in the
    response and the X-Anonymous-Id header.
    """
    new_anonymous_id = None
    if participant is None:
        new_anonymous_id = generate_anonymous_id()
        participant = resolve_participant(None, new_anonymous_id)

    try:
        service = ThreadService(CommentStore(db), redis)
        result = await service.add_comment(post_id, comment_data.content, participant)
    except PostNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    except StoreUnavailable as e:
        logger.error(f"Create comment error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to save comment"
        )
    except Exception as e:
        logger.error(f"Unexpected error saving comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save comment"
        )

    if not result.accepted:
        if result.reason == InvalidContent.code:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Invalid comment content"
            )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"You can leave at most {settings.COMMENT_QUOTA} messages on a post"
        )

    if new_anonymous_id:
        response.headers[settings.ANONYMOUS_ID_HEADER] = new_anonymous_id

    return CommentCreatedResponse(
        thread_key=result.thread_key,
        comment=to_comment_response(result.comment, participant),
        remaining=result.remaining,
        anonymous_id=new_anonymous_id
    )

@router.post(
    "/{post_id}/threads/{thread_key}/replies",
    response_model=AuthorReplyResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit(settings.COMMENT_RATE_LIMIT)
async def create_author_reply(
    request: Request,
    post_id: int,
    thread_key: str,
    reply_data: AuthorReplyCreate,
    participant: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis)
):
    """Reply inside a thread as the author of the post"""
    if participant is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        service = ThreadService(CommentStore(db), redis)
        success = await service.add_author_reply(post_id, thread_key, reply_data.content, participant)
    except PostNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    except ThreadNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Thread not found"
        )
    except InvalidContent as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message
        )
    except StoreUnavailable as e:
        logger.error(f"Create author reply error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to save reply"
        )
    except Exception as e:
        logger.error(f"Unexpected error saving reply: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save reply"
        )

    if not success:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author of the post can reply"
        )

    return AuthorReplyResponse(success=True, thread_key=thread_key)

@router.get("/{post_id}/comments/count", response_model=CommentCountResponse)
async def get_comment_count(
    post_id: int,
    participant: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db)
):
    """Get the number of comments on a post and the caller's own usage"""
    try:
        service = ThreadService(CommentStore(db))
        return await service.get_comment_counts(post_id, participant)
    except PostNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    except StoreUnavailable as e:
        logger.error(f"Get comment count error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comments are temporarily unavailable"
        )
    except Exception as e:
        logger.error(f"Unexpected comments error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comments"
        )
