from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from quietpost.db.session import get_db
from quietpost.schemas.participant_schema import Participant
from quietpost.schemas.post_schema import PostCreate, PostResponse, CommentedPostResponse
from quietpost.services.identity_service import get_current_user_id, get_optional_participant
from quietpost.services.post_service import PostService, to_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Publish a new post"""
    try:
        post_service = PostService(db)
        post = await post_service.create_post(user_id, post_data)
        return to_response(post, Participant.user(user_id))
    except Exception as e:
        logger.error(f"Create post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post"
        )

@router.get("/", response_model=List[PostResponse])
async def get_posts(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    viewer: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db)
):
    """Get recent posts with pagination"""
    try:
        post_service = PostService(db)
        posts = await post_service.get_recent_posts(skip, limit)
        return [to_response(post, viewer) for post in posts]
    except Exception as e:
        logger.error(f"Get posts error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get posts"
        )

@router.get("/mine", response_model=List[PostResponse])
async def get_my_posts(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's own posts"""
    try:
        post_service = PostService(db)
        posts = await post_service.get_user_posts(user_id, skip, limit)
        return [to_response(post, Participant.user(user_id)) for post in posts]
    except Exception as e:
        logger.error(f"Get my posts error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get posts"
        )

@router.get("/commented", response_model=List[CommentedPostResponse])
async def get_commented_posts(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    participant: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db)
):
    """Get the posts the caller has commented on"""
    if participant is None:
        return []

    try:
        post_service = PostService(db)
        return await post_service.get_commented_posts(participant, skip, limit)
    except Exception as e:
        logger.error(f"Get commented posts error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get commented posts"
        )

@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    viewer: Optional[Participant] = Depends(get_optional_participant),
    db: AsyncSession = Depends(get_db)
):
    """Get a post by ID"""
    try:
        post_service = PostService(db)
        post = await post_service.get_post(post_id)

        if not post:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found"
            )

        return to_response(post, viewer)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get post"
        )

@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a post"""
    try:
        post_service = PostService(db)

        # Check if post exists and user owns it
        post = await post_service.get_post(post_id)
        if not post:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found"
            )

        if post.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to delete this post"
            )

        await post_service.delete_post(post_id)
        return {"message": "Post deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Delete post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete post"
        )
