"""Comment threads: reading them, commenting and author replies.

Write path: validate content, lock the post row, check the quota against a
fresh count, insert, then notify the author. The notification is best
effort: once the comment is committed a notification failure is logged and
the call still succeeds.

On backends without row locks (SQLite) two racing submissions from one
participant may both pass the quota check.
"""
from typing import List, Optional
import logging

from quietpost.config import settings
from quietpost.models.post import Post
from quietpost.repositories.comment_store import CommentStore
from quietpost.schemas.comment_schema import CommentRead, CommentResult, Thread
from quietpost.schemas.notification_schema import NotificationType
from quietpost.schemas.participant_schema import Participant
from quietpost.services.exceptions import (
    InvalidContent,
    NotAuthorized,
    NotificationFailure,
    PostNotFound,
    QuotaExceeded,
)
from quietpost.services.notification_dispatcher import NotificationDispatcher
from quietpost.services.quota_enforcer import QuotaEnforcer
from quietpost.services.redis_service import RedisService
from quietpost.services.reply_authorizer import ReplyAuthorizer
from quietpost.services.thread_partitioner import build_thread_key, build_threads

logger = logging.getLogger(__name__)

def clean_content(content: Optional[str]) -> str:
    """Trimmed content, or InvalidContent when empty or too long"""
    content = (content or "").strip()
    if not content:
        raise InvalidContent("Comment cannot be empty")
    if len(content) > settings.COMMENT_MAX_LENGTH:
        raise InvalidContent(f"Comment cannot exceed {settings.COMMENT_MAX_LENGTH} characters")
    return content

class ThreadService:
    def __init__(self, store: CommentStore, redis: Optional[RedisService] = None):
        self.store = store
        self.quota = QuotaEnforcer(store)
        self.authorizer = ReplyAuthorizer(store)
        self.dispatcher = NotificationDispatcher(store, redis)

    async def _get_post(self, post_id: int, lock: bool = False) -> Post:
        post = await self.store.get_post(post_id, lock=lock)
        if post is None:
            if lock:
                await self.store.rollback()
            raise PostNotFound(post_id)
        return post

    async def get_threads(self, post_id: int, viewer: Optional[Participant] = None) -> List[Thread]:
        """Threads of a post, oldest conversation first, seen by ``viewer``"""
        post = await self._get_post(post_id)
        comments = await self.store.list_comments(post_id)
        return build_threads(
            post_id,
            comments,
            viewer=viewer,
            author_id=post.user_id,
            quota=self.quota.limit
        )

    async def add_comment(self, post_id: int, content: str, participant: Participant) -> CommentResult:
        """Add a participant message to their own thread on a post.

        Quota and content problems come back as ``accepted=False``; a missing
        post raises PostNotFound and store failures raise StoreUnavailable.
        """
        thread_key = build_thread_key(post_id, participant)

        await self._get_post(post_id, lock=True)

        try:
            content = clean_content(content)
        except InvalidContent as e:
            await self.store.rollback()
            logger.warning(f"Rejected comment from {participant} on post {post_id}: {e.message}")
            return CommentResult(accepted=False, thread_key=thread_key, reason=e.code)

        try:
            used = await self.quota.check(post_id, participant)
        except QuotaExceeded as e:
            await self.store.rollback()
            return CommentResult(accepted=False, thread_key=thread_key, reason=e.code, remaining=0)

        comment = await self.store.insert_comment(
            post_id=post_id,
            participant=participant,
            content=content,
            is_author_reply=False,
            thread_key=thread_key
        )
        logger.info(f"Comment {comment.id} added to thread {thread_key}")

        await self._notify(post_id, comment.id, NotificationType.COMMENT, participant)

        return CommentResult(
            accepted=True,
            thread_key=thread_key,
            comment=CommentRead.model_validate(comment),
            remaining=self.quota.remaining(used + 1)
        )

    async def add_author_reply(
        self,
        post_id: int,
        thread_key: str,
        content: str,
        candidate_author: Participant
    ) -> bool:
        """Reply as the post author inside an existing thread.

        Returns False when ``candidate_author`` is not the author of the post.
        Raises PostNotFound, ThreadNotFound or InvalidContent.
        """
        post = await self._get_post(post_id)

        try:
            await self.authorizer.authorize(post, thread_key, candidate_author)
        except NotAuthorized:
            return False

        content = clean_content(content)

        comment = await self.store.insert_comment(
            post_id=post_id,
            participant=candidate_author,
            content=content,
            is_author_reply=True,
            thread_key=thread_key
        )
        logger.info(f"Author reply {comment.id} added to thread {thread_key}")

        await self._notify(post_id, comment.id, NotificationType.REPLY, candidate_author)
        return True

    async def get_comment_counts(self, post_id: int, participant: Optional[Participant] = None) -> dict:
        """Total comments on a post, plus the caller's own usage"""
        await self._get_post(post_id)
        total = await self.store.count_all_comments(post_id)
        if participant is None:
            return {"post_id": post_id, "total": total, "mine": 0, "remaining": None}
        mine = await self.quota.used(post_id, participant)
        return {
            "post_id": post_id,
            "total": total,
            "mine": mine,
            "remaining": self.quota.remaining(mine)
        }

    async def _notify(self, post_id: int, comment_id: int, kind: NotificationType, actor: Participant):
        try:
            await self.dispatcher.dispatch(post_id, comment_id, kind, actor)
        except NotificationFailure as e:
            logger.error(f"Comment {comment_id} saved but notification failed: {e.message}")
