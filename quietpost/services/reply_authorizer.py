import logging

from quietpost.models.post import Post
from quietpost.repositories.comment_store import CommentStore
from quietpost.schemas.participant_schema import Participant
from quietpost.services.exceptions import NotAuthorized, ThreadNotFound
from quietpost.services.thread_partitioner import parse_thread_key

logger = logging.getLogger(__name__)

def is_post_author(post: Post, participant: Participant) -> bool:
    """Anonymous sessions never author posts"""
    return (
        participant is not None
        and not participant.is_anonymous
        and participant.user_id == post.user_id
    )

class ReplyAuthorizer:
    """Only the author of a post may reply inside its threads.

    Author replies are not limited in number; they reuse the key of the
    thread they answer and never open a new one.
    """

    def __init__(self, store: CommentStore):
        self.store = store

    async def authorize(self, post: Post, thread_key: str, candidate: Participant) -> None:
        if not is_post_author(post, candidate):
            logger.warning(f"{candidate} is not the author of post {post.id}, reply refused")
            raise NotAuthorized(f"Only the author of post {post.id} may reply")

        try:
            _, key_post_id = parse_thread_key(thread_key)
        except ValueError:
            raise ThreadNotFound(f"Thread {thread_key} not found")

        if key_post_id != post.id or not await self.store.thread_exists(post.id, thread_key):
            raise ThreadNotFound(f"Thread {thread_key} not found on post {post.id}")
