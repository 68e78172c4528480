from typing import Optional
import logging

from redis.exceptions import RedisError

from quietpost.models.notification import Notification
from quietpost.repositories.comment_store import CommentStore
from quietpost.schemas.notification_schema import NotificationType
from quietpost.schemas.participant_schema import Participant
from quietpost.services.exceptions import NotificationFailure, StoreUnavailable
from quietpost.services.notification_service import unread_count_key
from quietpost.services.redis_service import RedisService
from quietpost.services.reply_authorizer import is_post_author

logger = logging.getLogger(__name__)

class NotificationDispatcher:
    """Tells a post author about activity on their post.

    One event produces one notification: nothing is batched, deduplicated
    or edited afterwards. Authors are never notified of their own activity.
    """

    templates = {
        NotificationType.COMMENT: "Someone commented on your post",
        NotificationType.REPLY: "Someone replied to a comment on your post",
    }

    def __init__(self, store: CommentStore, redis: Optional[RedisService] = None):
        self.store = store
        self.redis = redis

    async def dispatch(
        self,
        post_id: int,
        comment_id: int,
        kind: NotificationType,
        actor: Participant
    ) -> Optional[Notification]:
        """Record the notification for one comment or reply.

        Returns None when the notification is suppressed. Raises
        NotificationFailure when it could not be recorded.
        """
        try:
            post = await self.store.get_post(post_id)
        except StoreUnavailable as e:
            raise NotificationFailure(f"Could not look up author of post {post_id}") from e

        if post is None:
            logger.warning(f"Post {post_id} disappeared before notifying its author")
            return None

        if is_post_author(post, actor):
            logger.debug(f"Not notifying author of post {post_id} about their own {kind.value}")
            return None

        try:
            notification = await self.store.insert_notification(
                recipient_id=post.user_id,
                post_id=post_id,
                comment_id=comment_id,
                kind=kind.value,
                message=self.templates[kind]
            )
        except StoreUnavailable as e:
            raise NotificationFailure(f"Could not notify author of post {post_id}") from e

        if self.redis is not None:
            try:
                await self.redis.delete(unread_count_key(post.user_id))
            except RedisError as e:
                logger.error(f"Error invalidating unread count for post {post_id} author: {e}")

        logger.info(f"Created {kind.value} notification {notification.id} for post {post_id}")
        return notification
