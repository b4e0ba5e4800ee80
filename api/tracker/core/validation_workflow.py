"""Validation/approval workflow engine.

Department administrators submit requests against a project; senior approvers
(Minister, Primature, Presidency, Super Admin) approve or reject them. Approval
applies the type-specific change to the project in the same transaction that
moves the request out of PENDING.

Notifications are never sent inline. Callers pass a ``schedule`` callable
(typically ``BackgroundTasks.add_task``) that is invoked only after the
transition has committed.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from tracker.core.approval_policy import ApprovalPolicy
from tracker.core.exceptions import (
    AlreadyProcessed,
    DatabaseError,
    Forbidden,
    InvalidReference,
    InvalidRequest,
    NotFound,
)
from tracker.core.notifier import Notifier
from tracker.core.roles import is_department_admin
from tracker.core.time import utc_now
from tracker.core.validation_payloads import (
    BudgetIncreasePayload,
    PayloadError,
    RequestPayload,
    StatusChangePayload,
    encode_payload,
    parse_payload,
)
from tracker.models.project import Project, ProjectStatus
from tracker.models.user import User
from tracker.models.validation import RequestStatus, RequestType, ValidationRequest

logger = logging.getLogger(__name__)

Scheduler = Callable[..., Any]


def run_now(func: Callable[..., Any], *args, **kwargs) -> None:
    """Scheduler that runs the task immediately (used outside request handlers)."""
    func(*args, **kwargs)


# --- Loading ---

def _request_query(db: Session):
    return db.query(ValidationRequest).options(
        joinedload(ValidationRequest.project).joinedload(Project.department),
        joinedload(ValidationRequest.requester),
        joinedload(ValidationRequest.approver),
    )


def load_request(db: Session, request_id: str) -> ValidationRequest:
    """Fetch a request with project, requester and approver resolved."""
    request = _request_query(db).filter(ValidationRequest.id == request_id).first()
    if not request:
        raise NotFound("Validation request not found")
    return request


# --- Submit ---

def submit_request(
    db: Session,
    actor: User,
    request_type: RequestType | str,
    project_id: str,
    comment: str,
    metadata: Optional[Dict[str, Any]] = None,
    *,
    policy: ApprovalPolicy,
    notifier: Optional[Notifier] = None,
    schedule: Scheduler = run_now,
) -> ValidationRequest:
    """Create a PENDING request and notify the approvers for its type.

    Anything pending in the session (e.g. a freshly flushed project) is
    committed together with the request.
    """
    try:
        request_type = RequestType(request_type)
    except ValueError:
        raise InvalidRequest(f"Unknown request type: {request_type}")

    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise InvalidReference("Project not found")

    if is_department_admin(actor) and actor.department_id != project.department_id:
        raise Forbidden("Department administrators can only submit requests for their own department's projects")

    if not comment or not comment.strip():
        raise InvalidRequest("A comment is required")

    try:
        payload = parse_payload(request_type, metadata)
    except PayloadError as exc:
        raise InvalidRequest(str(exc))

    now = utc_now()
    request = ValidationRequest(
        type=request_type.value,
        status=RequestStatus.PENDING.value,
        project_id=project.id,
        requester_id=actor.id,
        approver_id=None,
        comment=comment.strip(),
        request_metadata=encode_payload(payload),
        created_at=now,
        updated_at=now,
    )
    db.add(request)
    project_name = project.name
    requester_name = actor.name

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error creating %s request for project %s", request_type.value, project_id)
        raise DatabaseError("Error creating the validation request") from exc

    request_id = request.id
    logger.info(
        "Validation request %s (%s) submitted by %s for project %s",
        request_id, request_type.value, actor.id, project_id
    )

    if notifier is not None:
        schedule(
            notifier.notify_approvers,
            request_id,
            request_type.value,
            project_name,
            requester_name,
            policy.approver_roles_for(request_type),
        )

    return load_request(db, request_id)


# --- Approval side effects ---

def _update_project(db: Session, project_id: str, values: dict, *conditions) -> bool:
    """Single-row conditional project write. True if the row was changed."""
    result = db.execute(
        update(Project)
        .where(Project.id == project_id, *conditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _activate_pending_project(db, project_id, payload, now) -> bool:
    return _update_project(
        db, project_id,
        {"status": ProjectStatus.IN_PROGRESS.value, "updated_at": now},
        Project.status == ProjectStatus.PENDING_VALIDATION.value,
    )


def _apply_budget_increase(db, project_id, payload, now) -> bool:
    if not isinstance(payload, BudgetIncreasePayload):
        return False
    return _update_project(db, project_id, {"budget": payload.new_budget, "updated_at": now})


def _apply_status_change(db, project_id, payload, now) -> bool:
    if not isinstance(payload, StatusChangePayload):
        return False
    return _update_project(db, project_id, {"status": payload.new_status.value, "updated_at": now})


def _unblock_project(db, project_id, payload, now) -> bool:
    return _update_project(
        db, project_id,
        {"status": ProjectStatus.IN_PROGRESS.value, "updated_at": now},
        Project.status == ProjectStatus.BLOCKED.value,
    )


APPROVAL_EFFECTS: Dict[RequestType, Callable[[Session, str, RequestPayload, Any], bool]] = {
    RequestType.PROJECT_APPROVAL: _activate_pending_project,
    RequestType.BUDGET_INCREASE: _apply_budget_increase,
    RequestType.STATUS_CHANGE: _apply_status_change,
    RequestType.UNBLOCK_REQUEST: _unblock_project,
}


def apply_approval_effect(db: Session, request: ValidationRequest, now) -> bool:
    """Apply the project change carried by an approved request.

    Returns False when the precondition no longer holds (for instance the
    project already left PENDING_VALIDATION); the approval still stands.
    """
    effect = APPROVAL_EFFECTS[RequestType(request.type)]
    applied = effect(db, request.project_id, request.payload, now)
    if not applied:
        logger.info(
            "Approval of %s request %s left project %s unchanged",
            request.type, request.id, request.project_id
        )
    return applied


# --- Decide ---

def decide_request(
    db: Session,
    actor: User,
    request_id: str,
    approve: bool,
    response_comment: Optional[str] = None,
    *,
    policy: ApprovalPolicy,
    notifier: Optional[Notifier] = None,
    schedule: Scheduler = run_now,
) -> ValidationRequest:
    """Approve or reject a pending request.

    Checks, in order: actor is an approver, request exists, request is still
    PENDING, actor may decide this request type. The status write is
    conditioned on status = 'PENDING' so that of two concurrent decisions only
    one succeeds; the other gets AlreadyProcessed.
    """
    if not policy.is_approver(actor.role):
        raise Forbidden("Only approvers can decide validation requests")

    request = db.query(ValidationRequest).filter(ValidationRequest.id == request_id).first()
    if not request:
        raise NotFound("Validation request not found")
    if not request.is_pending:
        raise AlreadyProcessed()
    if not policy.can_decide(actor.role, request.type):
        raise Forbidden(f"Your role cannot decide {request.type} requests")

    now = utc_now()
    new_status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
    effect_applied = None

    try:
        result = db.execute(
            update(ValidationRequest)
            .where(
                ValidationRequest.id == request_id,
                ValidationRequest.status == RequestStatus.PENDING.value,
            )
            .values(
                status=new_status.value,
                approver_id=actor.id,
                response_comment=response_comment,
                responded_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning("Validation request %s was decided concurrently", request_id)
            raise AlreadyProcessed()

        if approve:
            effect_applied = apply_approval_effect(db, request, now)
            db.execute(
                update(ValidationRequest)
                .where(ValidationRequest.id == request_id)
                .values(effect_applied=effect_applied)
                .execution_options(synchronize_session=False)
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error deciding validation request %s", request_id)
        raise DatabaseError("Error updating the validation request") from exc

    logger.info(
        "Validation request %s %s by %s (effect_applied=%s)",
        request_id, new_status.value, actor.id, effect_applied
    )

    decided = load_request(db, request_id)
    if notifier is not None:
        schedule(
            notifier.notify_requester,
            decided.id,
            decided.type,
            decided.requester_id,
            decided.project.name if decided.project else "",
            actor.name,
            approve,
        )
    return decided


def approve_request(db: Session, actor: User, request_id: str, response_comment: Optional[str] = None, **kwargs):
    return decide_request(db, actor, request_id, True, response_comment, **kwargs)


def reject_request(db: Session, actor: User, request_id: str, response_comment: Optional[str] = None, **kwargs):
    return decide_request(db, actor, request_id, False, response_comment, **kwargs)


# --- Listing / visibility ---

def list_requests(
    db: Session,
    actor: User,
    status: Optional[str] = None,
    request_type: Optional[str] = None,
    project_id: Optional[str] = None,
    requester_id: Optional[str] = None,
) -> List[ValidationRequest]:
    """List requests matching the filters, newest first.

    Department administrators only ever see their own submissions, whatever
    requester filter they pass.
    """
    query = _request_query(db)
    if status:
        query = query.filter(ValidationRequest.status == status)
    if request_type:
        query = query.filter(ValidationRequest.type == request_type)
    if project_id:
        query = query.filter(ValidationRequest.project_id == project_id)

    if is_department_admin(actor):
        query = query.filter(ValidationRequest.requester_id == actor.id)
    elif requester_id:
        query = query.filter(ValidationRequest.requester_id == requester_id)

    return query.order_by(ValidationRequest.created_at.desc()).all()


def pending_requests(db: Session, actor: User, policy: ApprovalPolicy) -> List[ValidationRequest]:
    """PENDING requests for approvers, newest first; empty for everyone else."""
    if not policy.is_approver(actor.role):
        return []
    return _request_query(db).filter(
        ValidationRequest.status == RequestStatus.PENDING.value
    ).order_by(ValidationRequest.created_at.desc()).all()


def get_request(db: Session, actor: User, request_id: str) -> ValidationRequest:
    request = load_request(db, request_id)
    if is_department_admin(actor) and request.requester_id != actor.id:
        raise Forbidden("Department administrators can only view their own requests")
    return request
