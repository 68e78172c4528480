from sqlalchemy import Column, String, Text, Integer, Index
from sqlalchemy.orm import relationship
from quietpost.models.base import BaseModel

class Post(BaseModel):
    __tablename__ = "posts"

    # Identifier issued by the identity provider; never exposed to readers
    user_id = Column(String(64), nullable=False)
    title = Column(String(200))
    content = Column(Text, nullable=False)
    word_count = Column(Integer, default=0, nullable=False)
    language = Column(String(8), default="en", nullable=False)

    # Relationships
    comments = relationship("Comment", back_populates="post", passive_deletes=True)

    __table_args__ = (
        Index('ix_posts_user_id', 'user_id'),
        Index('ix_posts_created_at', 'created_at'),
    )
