"""Notification schemas."""
from datetime import datetime
from typing import Optional
from tracker.schemas.common import CamelModel


class NotificationResponse(CamelModel):
    id: str
    type: str
    title: str
    message: str
    user_id: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime


class UnreadCount(CamelModel):
    count: int
