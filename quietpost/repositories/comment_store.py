"""Data access for comments and the notifications they produce."""
from typing import List, Optional
import logging

from sqlalchemy import select, func, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quietpost.models.comment import Comment
from quietpost.models.notification import Notification
from quietpost.models.post import Post
from quietpost.schemas.participant_schema import Participant
from quietpost.services.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

__all__ = ["CommentStore", "participant_filter"]


def participant_filter(participant: Participant):
    """SQL condition matching comments written by ``participant``"""
    if participant.is_anonymous:
        return Comment.anonymous_id == participant.anonymous_id
    return Comment.user_id == participant.user_id


class CommentStore:
    """Append-only access to comments, bound to one request's session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_post(self, post_id: int, *, lock: bool = False) -> Optional[Post]:
        """Return a post by identifier.

        With ``lock`` the post row stays locked until the transaction ends,
        which serializes comment writes on that post where the backend
        supports row locks.
        """
        stmt = select(Post).where(Post.id == post_id)
        if lock:
            stmt = stmt.with_for_update()
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error loading post {post_id}: {e}")
            raise StoreUnavailable("Failed to load post") from e
        return result.scalar_one_or_none()

    async def list_comments(self, post_id: int) -> List[Comment]:
        """Return every comment on a post, oldest first"""
        stmt = select(Comment).where(
            Comment.post_id == post_id
        ).order_by(
            Comment.created_at.asc(), Comment.id.asc()
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error listing comments for post {post_id}: {e}")
            raise StoreUnavailable("Failed to list comments") from e
        return list(result.scalars().all())

    async def count_comments(
        self,
        post_id: int,
        participant: Participant,
        is_author_reply: bool = False
    ) -> int:
        """Count a participant's comments on a post"""
        stmt = select(func.count(Comment.id)).where(
            and_(
                Comment.post_id == post_id,
                participant_filter(participant),
                Comment.is_author_reply == is_author_reply
            )
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error counting comments of {participant} on post {post_id}: {e}")
            raise StoreUnavailable("Failed to count comments") from e
        return result.scalar() or 0

    async def thread_exists(self, post_id: int, thread_key: str) -> bool:
        stmt = select(func.count(Comment.id)).where(
            and_(
                Comment.post_id == post_id,
                Comment.thread_identifier == thread_key
            )
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error looking up thread {thread_key}: {e}")
            raise StoreUnavailable("Failed to look up thread") from e
        return (result.scalar() or 0) > 0

    async def count_all_comments(self, post_id: int) -> int:
        stmt = select(func.count(Comment.id)).where(Comment.post_id == post_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error counting comments on post {post_id}: {e}")
            raise StoreUnavailable("Failed to count comments") from e
        return result.scalar() or 0

    async def insert_comment(
        self,
        post_id: int,
        participant: Participant,
        content: str,
        is_author_reply: bool,
        thread_key: str
    ) -> Comment:
        """Insert and commit a comment"""
        comment = Comment(
            post_id=post_id,
            user_id=participant.user_id,
            anonymous_id=participant.anonymous_id,
            content=content,
            thread_identifier=thread_key,
            is_author_reply=is_author_reply
        )
        try:
            self.session.add(comment)
            await self.session.commit()
            await self.session.refresh(comment)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting comment on post {post_id}: {e}")
            await self.session.rollback()
            raise StoreUnavailable("Failed to insert comment") from e
        return comment

    async def insert_notification(
        self,
        recipient_id: str,
        post_id: int,
        comment_id: Optional[int],
        kind: str,
        message: str
    ) -> Notification:
        """Insert and commit a notification in its own transaction"""
        notification = Notification(
            user_id=recipient_id,
            post_id=post_id,
            comment_id=comment_id,
            type=kind,
            message=message,
            read=False
        )
        try:
            self.session.add(notification)
            await self.session.commit()
            await self.session.refresh(notification)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting notification for post {post_id}: {e}")
            await self.session.rollback()
            raise StoreUnavailable("Failed to insert notification") from e
        return notification

    async def rollback(self) -> None:
        """End the current transaction without writing, releasing any post lock"""
        await self.session.rollback()
