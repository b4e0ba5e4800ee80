"""Validation request model for the project approval workflow."""
import enum
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from tracker.core.time import utc_now
from tracker.models.base import Base, new_id

if TYPE_CHECKING:
    from tracker.core.validation_payloads import RequestPayload
    from tracker.models.project import Project
    from tracker.models.user import User


class RequestType(str, enum.Enum):
    PROJECT_APPROVAL = "PROJECT_APPROVAL"
    BUDGET_INCREASE = "BUDGET_INCREASE"
    STATUS_CHANGE = "STATUS_CHANGE"
    UNBLOCK_REQUEST = "UNBLOCK_REQUEST"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ValidationRequest(Base):
    """A proposed governance action on a project awaiting a single decision.

    status moves PENDING -> APPROVED or PENDING -> REJECTED exactly once.
    approver_id and responded_at are populated only by that decision.
    """
    __tablename__ = "validation_requests"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value)
    project_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=False, index=True)
    approver_id: Mapped[Optional[str]] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    response_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Serialized JSON; use .payload to read it
    request_metadata: Mapped[Optional[str]] = mapped_column("metadata", Text, nullable=True)
    # Whether approval actually changed the project (NULL while pending / on rejection)
    effect_applied: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    project: Mapped["Project"] = relationship("Project", foreign_keys=[project_id])
    requester: Mapped["User"] = relationship("User", foreign_keys=[requester_id])
    approver: Mapped[Optional["User"]] = relationship("User", foreign_keys=[approver_id])

    __table_args__ = (
        Index("ix_validation_requests_status_created", "status", "created_at"),
        CheckConstraint(
            "(status = 'PENDING' AND approver_id IS NULL AND responded_at IS NULL) OR "
            "(status != 'PENDING' AND responded_at IS NOT NULL)",
            name="chk_validation_decision_fields"
        ),
    )

    @property
    def payload(self) -> "RequestPayload":
        from tracker.core.validation_payloads import decode_payload
        return decode_payload(self.type, self.request_metadata)

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING.value
