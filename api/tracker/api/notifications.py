"""Notification center endpoints for the current user."""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tracker.core.database import get_db
from tracker.core.deps import get_current_user
from tracker.core.exceptions import Forbidden, NotFound
from tracker.models import Notification, User
from tracker.schemas.notification import NotificationResponse, UnreadCount

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
def list_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Current user's notifications, newest first."""
    return db.query(Notification).filter(
        Notification.user_id == current_user.id
    ).order_by(Notification.created_at.desc()).all()


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    count = db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.is_read == False  # noqa: E712
    ).count()
    return UnreadCount(count=count)


@router.put("/read-all", response_model=UnreadCount)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark every unread notification as read. Returns how many were updated."""
    updated = db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.is_read == False  # noqa: E712
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return UnreadCount(count=updated)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotFound("Notification not found")
    if notification.user_id != current_user.id:
        raise Forbidden("You can only update your own notifications")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
