from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)

class AuthorReplyCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)

class CommentRead(BaseModel):
    """Comment record as stored, including participant identifiers"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    user_id: Optional[str] = None
    anonymous_id: Optional[str] = None
    content: str
    thread_identifier: str
    is_author_reply: bool = False
    created_at: datetime

class Thread(BaseModel):
    """Conversation between one participant and the post author (never persisted)"""
    thread_key: str
    comments: List[CommentRead]
    viewer_can_reply: bool = False
    viewer_reply_count: int = 0
    last_activity: datetime

class CommentResult(BaseModel):
    accepted: bool
    thread_key: Optional[str] = None
    reason: Optional[str] = None  # quota_exceeded, invalid_content
    comment: Optional[CommentRead] = None
    remaining: Optional[int] = None

# API responses never carry participant identifiers

class CommentResponse(BaseModel):
    id: int
    post_id: int
    content: str
    is_author_reply: bool
    is_mine: bool = False
    created_at: datetime

class ThreadResponse(BaseModel):
    thread_key: Optional[str] = None
    comments: List[CommentResponse]
    viewer_can_reply: bool
    viewer_reply_count: int
    last_activity: datetime

class ThreadListResponse(BaseModel):
    post_id: int
    threads: List[ThreadResponse]
    total_comments: int

class CommentCreatedResponse(BaseModel):
    accepted: bool = True
    thread_key: str
    comment: CommentResponse
    remaining: int
    anonymous_id: Optional[str] = None

class AuthorReplyResponse(BaseModel):
    success: bool
    thread_key: str

class CommentCountResponse(BaseModel):
    post_id: int
    total: int
    mine: int
    remaining: Optional[int] = None
