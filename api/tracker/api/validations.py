"""API endpoints for project validation requests."""
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from tracker.core.approval_policy import ApprovalPolicy, get_approval_policy
from tracker.core.database import get_db
from tracker.core.deps import get_current_user
from tracker.core.notifier import Notifier, get_notifier
from tracker.core.validation_payloads import payload_to_metadata
from tracker.core import validation_workflow as workflow
from tracker.models import User, ValidationRequest, RequestStatus, RequestType
from tracker.schemas.project import ProjectBrief
from tracker.schemas.user import UserBrief
from tracker.schemas.validation import (
    ValidationDecision,
    ValidationRequestCreate,
    ValidationRequestResponse,
)

router = APIRouter()


def build_request_response(request: ValidationRequest) -> ValidationRequestResponse:
    """Build the API representation of a request with its relations."""
    return ValidationRequestResponse(
        id=request.id,
        type=request.type,
        status=request.status,
        project_id=request.project_id,
        requester_id=request.requester_id,
        approver_id=request.approver_id,
        comment=request.comment,
        response_comment=request.response_comment,
        metadata=payload_to_metadata(request.payload),
        effect_applied=request.effect_applied,
        created_at=request.created_at,
        updated_at=request.updated_at,
        responded_at=request.responded_at,
        project=ProjectBrief.model_validate(request.project) if request.project else None,
        requester=UserBrief.model_validate(request.requester) if request.requester else None,
        approver=UserBrief.model_validate(request.approver) if request.approver else None,
    )


@router.get("/", response_model=List[ValidationRequestResponse])
def list_validation_requests(
    status: Optional[RequestStatus] = Query(None, description="Filter by status"),
    type: Optional[RequestType] = Query(None, description="Filter by request type"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    requester_id: Optional[str] = Query(None, alias="requesterId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List validation requests. Department administrators only see their own."""
    requests = workflow.list_requests(
        db,
        current_user,
        status=status.value if status else None,
        request_type=type.value if type else None,
        project_id=project_id,
        requester_id=requester_id,
    )
    return [build_request_response(r) for r in requests]


@router.get("/pending", response_model=List[ValidationRequestResponse])
def list_pending_validation_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    policy: ApprovalPolicy = Depends(get_approval_policy)
):
    """Pending requests awaiting a decision. Non-approvers get an empty list."""
    requests = workflow.pending_requests(db, current_user, policy)
    return [build_request_response(r) for r in requests]


@router.get("/{request_id}", response_model=ValidationRequestResponse)
def get_validation_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a validation request by ID."""
    return build_request_response(workflow.get_request(db, current_user, request_id))


@router.post("/", response_model=ValidationRequestResponse, status_code=status.HTTP_201_CREATED)
def create_validation_request(
    data: ValidationRequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    policy: ApprovalPolicy = Depends(get_approval_policy),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Submit a validation request for a project.

    Business Rules:
    - The project must exist
    - Department administrators may only target their own department's projects
    - BUDGET_INCREASE requires metadata {"newBudget": number}
    - STATUS_CHANGE requires metadata {"newStatus": ProjectStatus}
    - Approvers are notified after the request is stored
    """
    request = workflow.submit_request(
        db,
        current_user,
        data.type,
        data.project_id,
        data.comment,
        data.metadata,
        policy=policy,
        notifier=notifier,
        schedule=background_tasks.add_task,
    )
    return build_request_response(request)


@router.put("/{request_id}/approve", response_model=ValidationRequestResponse)
def approve_validation_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    decision: Optional[ValidationDecision] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    policy: ApprovalPolicy = Depends(get_approval_policy),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Approve a pending request and apply its change to the project.

    If the change no longer applies (e.g. the project already left
    PENDING_VALIDATION) the request is still approved and effectApplied is false.
    """
    request = workflow.approve_request(
        db,
        current_user,
        request_id,
        decision.response_comment if decision else None,
        policy=policy,
        notifier=notifier,
        schedule=background_tasks.add_task,
    )
    return build_request_response(request)


@router.put("/{request_id}/reject", response_model=ValidationRequestResponse)
def reject_validation_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    decision: Optional[ValidationDecision] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    policy: ApprovalPolicy = Depends(get_approval_policy),
    notifier: Notifier = Depends(get_notifier)
):
    """Reject a pending request. The project is never modified."""
    request = workflow.reject_request(
        db,
        current_user,
        request_id,
        decision.response_comment if decision else None,
        policy=policy,
        notifier=notifier,
        schedule=background_tasks.add_task,
    )
    return build_request_response(request)
