from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime
from enum import Enum

class NotificationType(str, Enum):
    COMMENT = "comment"
    REPLY = "reply"

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    comment_id: Optional[int] = None
    type: NotificationType
    message: str
    read: bool
    created_at: datetime

class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    skip: int
    limit: int
    unread_count: int

class UnreadCountResponse(BaseModel):
    unread_count: int
