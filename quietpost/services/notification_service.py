from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, update, desc, func
from redis.exceptions import RedisError
import logging

from quietpost.config import settings
from quietpost.models.notification import Notification
from quietpost.schemas.notification_schema import (
    NotificationResponse,
    NotificationListResponse
)
from quietpost.services.redis_service import RedisService

logger = logging.getLogger(__name__)

def unread_count_key(user_id: str) -> str:
    return f"user:{user_id}:unread_count"

class NotificationService:
    """Notifications as seen by their recipient.

    Notifications are only created by the dispatcher; here they are listed
    and marked read. The unread count is cached in Redis and dropped on
    every change.
    """

    def __init__(self, db: AsyncSession, redis: Optional[RedisService] = None):
        self.db = db
        self.redis = redis

    async def get_user_notifications(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 20,
        unread_only: bool = False
    ) -> NotificationListResponse:
        """Get a user's notifications, newest first"""
        conditions = [Notification.user_id == user_id]
        if unread_only:
            conditions.append(Notification.read == False)

        stmt = select(Notification).where(
            and_(*conditions)
        ).order_by(
            desc(Notification.created_at), desc(Notification.id)
        ).offset(skip).limit(limit)

        result = await self.db.execute(stmt)
        notifications = result.scalars().all()

        count_stmt = select(func.count(Notification.id)).where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        return NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            total=total,
            skip=skip,
            limit=limit,
            unread_count=await self.get_unread_count(user_id)
        )

    async def get_unread_count(self, user_id: str) -> int:
        """Get unread notification count, cached for UNREAD_COUNT_TTL seconds"""
        cache_key = unread_count_key(user_id)

        if self.redis is not None:
            try:
                cached = await self.redis.get(cache_key)
                if cached is not None:
                    return int(cached)
            except RedisError as e:
                logger.error(f"Error reading unread count from cache: {e}")

        stmt = select(func.count(Notification.id)).where(
            and_(
                Notification.user_id == user_id,
                Notification.read == False
            )
        )
        result = await self.db.execute(stmt)
        count = result.scalar() or 0

        if self.redis is not None:
            try:
                await self.redis.set(cache_key, str(count), expire=settings.UNREAD_COUNT_TTL)
            except RedisError as e:
                logger.error(f"Error caching unread count: {e}")

        return count

    async def mark_as_read(self, notification_id: int, user_id: str) -> Optional[Notification]:
        """Mark a notification as read; only its recipient may do so"""
        stmt = select(Notification).where(
            and_(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
        result = await self.db.execute(stmt)
        notification = result.scalar_one_or_none()

        if not notification:
            return None

        if not notification.read:
            notification.read = True
            await self.db.commit()
            await self._invalidate_unread_count(user_id)

        return notification

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark all of a user's notifications as read"""
        stmt = update(Notification).where(
            and_(
                Notification.user_id == user_id,
                Notification.read == False
            )
        ).values(read=True)

        result = await self.db.execute(stmt)
        await self.db.commit()
        await self._invalidate_unread_count(user_id)

        logger.info(f"Marked {result.rowcount} notifications as read for user {user_id}")
        return result.rowcount

    async def _invalidate_unread_count(self, user_id: str):
        if self.redis is None:
            return
        try:
            await self.redis.delete(unread_count_key(user_id))
        except RedisError as e:
            logger.error(f"Error invalidating unread count: {e}")
