from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from quietpost.db.session import get_db
from quietpost.schemas.notification_schema import (
    NotificationListResponse,
    UnreadCountResponse
)
from quietpost.services.identity_service import get_current_user_id
from quietpost.services.notification_service import NotificationService
from quietpost.services.redis_service import RedisService, get_redis

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=NotificationListResponse)
async def get_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis)
):
    """Get user's notifications"""
    try:
        service = NotificationService(db, redis)
        return await service.get_user_notifications(
            user_id=user_id,
            skip=skip,
            limit=limit,
            unread_only=unread_only
        )
    except Exception as e:
        logger.error(f"Error getting notifications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get notifications"
        )

@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis)
):
    """Get the number of unread notifications"""
    try:
        service = NotificationService(db, redis)
        return UnreadCountResponse(unread_count=await service.get_unread_count(user_id))
    except Exception as e:
        logger.error(f"Error getting unread count: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get unread count"
        )

@router.put("/read-all")
async def mark_all_notifications_as_read(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis)
):
    """Mark all notifications as read"""
    try:
        service = NotificationService(db, redis)
        count = await service.mark_all_as_read(user_id=user_id)

        return {"message": f"Marked {count} notifications as read", "count": count}
    except Exception as e:
        logger.error(f"Error marking all notifications as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark all notifications as read"
        )

@router.put("/{notification_id}/read")
async def mark_notification_as_read(
    notification_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis)
):
    """Mark a notification as read"""
    try:
        service = NotificationService(db, redis)
        notification = await service.mark_as_read(
            notification_id=notification_id,
            user_id=user_id
        )

        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )

        return {"message": "Notification marked as read"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error marking notification as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark notification as read"
        )
