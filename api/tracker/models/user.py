"""User model."""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from tracker.core.roles import RoleCode
from tracker.core.time import utc_now
from tracker.models.base import Base, new_id

if TYPE_CHECKING:
    from tracker.models.department import Department


class User(Base):
    """Authenticated actor. Identity fields are maintained outside the workflow engine."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default=RoleCode.AGENT.value, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Only ADMIN_DEPARTMENT and AGENT users are attached to a department
    department_id: Mapped[Optional[str]] = mapped_column(
        String(32),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    department: Mapped[Optional["Department"]] = relationship(
        "Department", back_populates="users")
