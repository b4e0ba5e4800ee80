"""Project schemas."""
from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator
from tracker.models.project import BUDGET_LIMIT, ProjectStatus
from tracker.schemas.common import CamelModel


class DepartmentBrief(CamelModel):
    id: str
    name: str
    code: str


class ProjectBrief(CamelModel):
    id: str
    name: str
    status: ProjectStatus
    budget: Optional[float] = None
    department: Optional[DepartmentBrief] = None


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    department_id: str
    budget: Optional[float] = Field(default=None, ge=0, lt=BUDGET_LIMIT, allow_inf_nan=False)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Project name is required")
        return v.strip()


class ProjectResponse(ProjectBrief):
    description: Optional[str] = None
    department_id: str
    created_at: datetime
    updated_at: datetime
