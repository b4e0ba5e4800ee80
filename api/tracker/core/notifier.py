"""Best-effort notification fan-out for the validation workflow.

Notifications are written after the workflow transition has committed, in a
session of their own. A failure here is logged and dropped: it never undoes an
approval, a rejection or a submission.
"""
import logging
from typing import Callable, Iterable, List

from sqlalchemy.orm import Session

from tracker.core.database import SessionLocal
from tracker.core.roles import RoleCode
from tracker.core.time import utc_now
from tracker.models.notification import Notification, NotificationType
from tracker.models.user import User
from tracker.models.validation import RequestType

logger = logging.getLogger(__name__)


def validation_link(request_id: str) -> str:
    return f"/validations/{request_id}"


class Notifier:
    """Creates Notification rows for approvers and requesters."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def notify_approvers(
        self,
        request_id: str,
        request_type: str,
        project_name: str,
        requester_name: str,
        approver_roles: Iterable[RoleCode],
    ) -> int:
        """Notify every active user holding one of ``approver_roles``.

        Returns the number of notifications created (0 on failure).
        """
        roles: List[str] = sorted(RoleCode(role).value for role in approver_roles)
        if request_type == RequestType.PROJECT_APPROVAL.value:
            title = "New project awaiting validation"
            message = f'{requester_name} submitted the project "{project_name}" for approval'
        else:
            title = "New validation request"
            message = (
                f'{requester_name} submitted a "{request_type}" request '
                f'for the project "{project_name}"'
            )

        db = self.session_factory()
        try:
            approver_ids = [
                row.id for row in db.query(User.id).filter(
                    User.role.in_(roles),
                    User.is_active == True  # noqa: E712
                ).all()
            ]
            now = utc_now()
            db.add_all([
                Notification(
                    type=NotificationType.VALIDATION_REQUEST.value,
                    title=title,
                    message=message,
                    user_id=approver_id,
                    link=validation_link(request_id),
                    is_read=False,
                    created_at=now,
                )
                for approver_id in approver_ids
            ])
            db.commit()
            logger.info(
                "Notified %d approver(s) of validation request %s", len(approver_ids), request_id)
            return len(approver_ids)
        except Exception:
            db.rollback()
            logger.exception("Failed to notify approvers of validation request %s", request_id)
            return 0
        finally:
            db.close()

    def notify_requester(
        self,
        request_id: str,
        request_type: str,
        requester_id: str,
        project_name: str,
        approver_name: str,
        approved: bool,
    ) -> bool:
        """Tell the requester how their request was decided."""
        verb = "approved" if approved else "rejected"
        db = self.session_factory()
        try:
            db.add(Notification(
                type=NotificationType.VALIDATION_RESPONSE.value,
                title=f"Request {verb}",
                message=(
                    f'{approver_name} {verb} your "{request_type}" request '
                    f'for the project "{project_name}"'
                ),
                user_id=requester_id,
                link=validation_link(request_id),
                is_read=False,
                created_at=utc_now(),
            ))
            db.commit()
            return True
        except Exception:
            db.rollback()
            logger.exception("Failed to notify requester of validation request %s", request_id)
            return False
        finally:
            db.close()


def get_notifier() -> Notifier:
    """FastAPI dependency for the notification dispatcher."""
    return Notifier(SessionLocal)
