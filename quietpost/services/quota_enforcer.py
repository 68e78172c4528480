from typing import Optional
import logging

from quietpost.config import settings
from quietpost.repositories.comment_store import CommentStore
from quietpost.schemas.participant_schema import Participant
from quietpost.services.exceptions import QuotaExceeded

logger = logging.getLogger(__name__)

class QuotaEnforcer:
    """Limits how many messages a participant may write in their thread.

    A participant has exactly one thread per post, so the per-thread limit
    is counted per (post, participant). Author replies never count.
    """

    def __init__(self, store: CommentStore, limit: Optional[int] = None):
        self.store = store
        self.limit = limit if limit is not None else settings.COMMENT_QUOTA

    async def used(self, post_id: int, participant: Participant) -> int:
        """Messages already written, always read from the store"""
        return await self.store.count_comments(post_id, participant, is_author_reply=False)

    def remaining(self, used: int) -> int:
        return max(self.limit - used, 0)

    async def check(self, post_id: int, participant: Participant) -> int:
        """Admit one more message or raise QuotaExceeded.

        Returns the number of messages written before this one.
        """
        used = await self.used(post_id, participant)
        if used >= self.limit:
            logger.warning(f"Quota exceeded for {participant} on post {post_id} ({used}/{self.limit})")
            raise QuotaExceeded(post_id, str(participant), self.limit)
        return used
