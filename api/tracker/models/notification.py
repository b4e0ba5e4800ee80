"""Notification model."""
import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from tracker.core.time import utc_now
from tracker.models.base import Base, new_id


class NotificationType(str, enum.Enum):
    VALIDATION_REQUEST = "VALIDATION_REQUEST"
    VALIDATION_RESPONSE = "VALIDATION_RESPONSE"
    PROJECT_ALERT = "PROJECT_ALERT"
    SYSTEM = "SYSTEM"


class Notification(Base):
    """In-app notification addressed to a single user."""
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    link: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
