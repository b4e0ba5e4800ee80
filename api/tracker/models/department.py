"""Department model."""
from datetime import datetime
from typing import List, TYPE_CHECKING
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from tracker.core.time import utc_now
from tracker.models.base import Base, new_id

if TYPE_CHECKING:
    from tracker.models.project import Project
    from tracker.models.user import User


class Department(Base):
    """Ministerial department that owns projects and department administrators."""
    __tablename__ = "departments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    projects: Mapped[List["Project"]] = relationship("Project", back_populates="department")
    users: Mapped[List["User"]] = relationship("User", back_populates="department")
