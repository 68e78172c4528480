from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from quietpost.models.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    # Exactly one of user_id / anonymous_id identifies the participant
    user_id = Column(String(64), nullable=True)
    anonymous_id = Column(String(64), nullable=True)
    content = Column(Text, nullable=False)
    thread_identifier = Column(String(160), nullable=False)
    is_author_reply = Column(Boolean, default=False, nullable=False)
    # Deprecated: grouping is done by thread_identifier only
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    post = relationship("Post", back_populates="comments")

    __table_args__ = (
        CheckConstraint(
            '(user_id IS NOT NULL AND anonymous_id IS NULL) OR (user_id IS NULL AND anonymous_id IS NOT NULL)',
            name='check_comment_participant'
        ),
        CheckConstraint(
            'NOT is_author_reply OR user_id IS NOT NULL',
            name='check_author_reply_user'
        ),
        Index('ix_comments_post_id_created_at', 'post_id', 'created_at'),
        Index('ix_comments_thread_identifier', 'thread_identifier'),
        Index('ix_comments_post_user', 'post_id', 'user_id', 'is_author_reply'),
        Index('ix_comments_post_anonymous', 'post_id', 'anonymous_id', 'is_author_reply'),
    )
