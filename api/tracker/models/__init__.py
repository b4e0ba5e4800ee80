"""Models package."""
from tracker.models.base import Base
from tracker.models.department import Department
from tracker.models.user import User
from tracker.models.project import Project, ProjectStatus
from tracker.models.notification import Notification, NotificationType
from tracker.models.validation import ValidationRequest, RequestType, RequestStatus

__all__ = [
    "Base",
    "Department",
    "User",
    "Project",
    "ProjectStatus",
    "Notification",
    "NotificationType",
    "ValidationRequest",
    "RequestType",
    "RequestStatus",
]
