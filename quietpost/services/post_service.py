from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func
import logging

from quietpost.models.comment import Comment
from quietpost.models.post import Post
from quietpost.repositories.comment_store import participant_filter
from quietpost.schemas.participant_schema import Participant
from quietpost.schemas.post_schema import PostCreate, PostResponse, CommentedPostResponse

logger = logging.getLogger(__name__)

def count_words(content: str) -> int:
    return len(content.split())

def to_response(post: Post, viewer: Optional[Participant] = None) -> PostResponse:
    """Public view of a post; the author identifier is never exposed"""
    return PostResponse(
        id=post.id,
        title=post.title,
        content=post.content,
        word_count=post.word_count,
        language=post.language,
        is_mine=viewer is not None and not viewer.is_anonymous and viewer.user_id == post.user_id,
        created_at=post.created_at
    )

class PostService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_post(self, user_id: str, post_data: PostCreate) -> Post:
        """Create a new post"""
        content = post_data.content.strip()
        post = Post(
            user_id=user_id,
            title=post_data.title.strip() if post_data.title else None,
            content=content,
            word_count=count_words(content),
            language=post_data.language
        )

        self.db.add(post)
        await self.db.commit()
        await self.db.refresh(post)

        logger.info(f"Post {post.id} created ({post.word_count} words)")
        return post

    async def get_post(self, post_id: int) -> Optional[Post]:
        """Get a post by ID"""
        stmt = select(Post).where(Post.id == post_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_recent_posts(self, skip: int = 0, limit: int = 20) -> List[Post]:
        """Get every post, newest first"""
        stmt = select(Post).order_by(
            desc(Post.created_at), desc(Post.id)
        ).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_user_posts(self, user_id: str, skip: int = 0, limit: int = 20) -> List[Post]:
        """Get posts written by a user, newest first"""
        stmt = select(Post).where(
            Post.user_id == user_id
        ).order_by(
            desc(Post.created_at), desc(Post.id)
        ).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_commented_posts(
        self,
        participant: Participant,
        skip: int = 0,
        limit: int = 20
    ) -> List[CommentedPostResponse]:
        """Posts the participant has written to, most recently active first.

        Only the participant's own messages are counted; author replies they
        wrote on their own posts are left out.
        """
        activity = select(
            Comment.post_id.label("post_id"),
            func.count(Comment.id).label("comment_count"),
            func.max(Comment.created_at).label("last_comment_at")
        ).where(
            participant_filter(participant),
            Comment.is_author_reply == False
        ).group_by(
            Comment.post_id
        ).subquery()

        stmt = select(
            Post,
            activity.c.comment_count,
            activity.c.last_comment_at
        ).join(
            activity, activity.c.post_id == Post.id
        ).order_by(
            desc(activity.c.last_comment_at)
        ).offset(skip).limit(limit)

        result = await self.db.execute(stmt)

        return [
            CommentedPostResponse(
                post=to_response(row.Post, participant),
                comment_count=row.comment_count,
                last_comment_at=row.last_comment_at
            )
            for row in result.all()
        ]

    async def delete_post(self, post_id: int) -> None:
        """Delete a post along with its comments and notifications"""
        stmt = select(Post).where(Post.id == post_id)
        result = await self.db.execute(stmt)
        post = result.scalar_one_or_none()

        if not post:
            raise ValueError("Post not found")

        await self.db.delete(post)
        await self.db.commit()
        logger.info(f"Post {post_id} deleted")
