"""
Models package for Quietpost
"""
from quietpost.models.base import Base, BaseModel
from quietpost.models.post import Post
from quietpost.models.comment import Comment
from quietpost.models.notification import Notification

__all__ = [
    'Base',
    'BaseModel',
    'Post',
    'Comment',
    'Notification',
]
