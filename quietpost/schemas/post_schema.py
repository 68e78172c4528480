from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class PostCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1)
    language: str = Field("en", min_length=2, max_length=8)

class PostResponse(BaseModel):
    id: int
    title: Optional[str] = None
    content: str
    word_count: int
    language: str
    is_mine: bool = False
    created_at: datetime

class CommentedPostResponse(BaseModel):
    post: PostResponse
    comment_count: int
    last_comment_at: datetime
