"""Project model (only the fields the approval workflow reads or writes)."""
import enum
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from tracker.core.time import utc_now
from tracker.models.base import Base, new_id

if TYPE_CHECKING:
    from tracker.models.department import Department


# Exclusive upper bound for budgets stored as Numeric(18, 2)
BUDGET_LIMIT = 10 ** 16


class ProjectStatus(str, enum.Enum):
    PENDING_VALIDATION = "PENDING_VALIDATION"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DELAYED = "DELAYED"
    SUSPENDED = "SUSPENDED"
    BLOCKED = "BLOCKED"


class Project(Base):
    """Employment program project."""
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    department_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ProjectStatus.PENDING_VALIDATION.value)
    budget: Mapped[Optional[float]] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    department: Mapped["Department"] = relationship("Department", back_populates="projects")
