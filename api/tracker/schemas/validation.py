"""Pydantic schemas for the validation request workflow."""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import Field, field_validator

from tracker.models.validation import RequestStatus, RequestType
from tracker.schemas.common import CamelModel
from tracker.schemas.project import ProjectBrief
from tracker.schemas.user import UserBrief


class ValidationRequestCreate(CamelModel):
    """Body of POST /validations.

    metadata shape depends on type:
    BUDGET_INCREASE -> {"newBudget": 50000000}, STATUS_CHANGE -> {"newStatus": "SUSPENDED"}.
    """
    type: RequestType
    project_id: str
    comment: str = Field(min_length=1)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        if not v or not v.strip():
            raise ValueError("Comment is required")
        return v.strip()


class ValidationDecision(CamelModel):
    """Body of PUT /validations/{id}/approve and /reject."""
    response_comment: Optional[str] = None


class ValidationRequestResponse(CamelModel):
    id: str
    type: RequestType
    status: RequestStatus
    project_id: str
    requester_id: str
    approver_id: Optional[str] = None
    comment: str
    response_comment: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    effect_applied: Optional[bool] = None
    created_at: datetime
    updated_at: datetime
    responded_at: Optional[datetime] = None
    project: Optional[ProjectBrief] = None
    requester: Optional[UserBrief] = None
    approver: Optional[UserBrief] = None
