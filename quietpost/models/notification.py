from sqlalchemy import Column, String, Text, Integer, ForeignKey, Boolean, Index
from quietpost.models.base import BaseModel

class Notification(BaseModel):
    __tablename__ = "notifications"

    # Recipient: always the author of the post
    user_id = Column(String(64), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    type = Column(String(20), nullable=False)  # comment, reply
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index('ix_notifications_user_id', 'user_id'),
        Index('ix_notifications_user_read', 'user_id', 'read'),
        Index('ix_notifications_created_at', 'created_at'),
    )
