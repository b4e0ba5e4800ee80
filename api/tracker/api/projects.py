"""Project endpoints used by the approval workflow.

Creating a project always opens a PROJECT_APPROVAL request; the project stays
in PENDING_VALIDATION until that request is approved.
"""
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session, joinedload

from tracker.core.approval_policy import ApprovalPolicy, get_approval_policy
from tracker.core.database import get_db
from tracker.core.deps import get_current_user
from tracker.core.exceptions import Forbidden, InvalidRequest, NotFound
from tracker.core.notifier import Notifier, get_notifier
from tracker.core.roles import is_department_admin, is_super_admin
from tracker.core.time import utc_now
from tracker.core import validation_workflow as workflow
from tracker.models import Department, Project, ProjectStatus, RequestType, User
from tracker.schemas.project import ProjectCreate, ProjectResponse

router = APIRouter()

PROJECT_APPROVAL_COMMENT = "Approval request for new project"


def get_project_or_404(db: Session, project_id: str) -> Project:
    project = db.query(Project).options(
        joinedload(Project.department)
    ).filter(Project.id == project_id).first()
    if not project:
        raise NotFound("Project not found")
    return project


@router.get("/", response_model=List[ProjectResponse])
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List projects. Department administrators only see their department's projects."""
    query = db.query(Project).options(joinedload(Project.department))
    if is_department_admin(current_user):
        query = query.filter(Project.department_id == current_user.department_id)
    return query.order_by(Project.created_at.desc()).all()


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a project by ID."""
    project = get_project_or_404(db, project_id)
    if is_department_admin(current_user) and project.department_id != current_user.department_id:
        raise Forbidden("Department administrators can only view their own department's projects")
    return project


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    policy: ApprovalPolicy = Depends(get_approval_policy),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Create a project in PENDING_VALIDATION.

    The project and its PROJECT_APPROVAL request are committed together.
    Only Super Admins and the department's own administrators can create projects.
    """
    if not (is_super_admin(current_user) or is_department_admin(current_user)):
        raise Forbidden("Only administrators can create projects")
    if is_department_admin(current_user) and current_user.department_id != data.department_id:
        raise Forbidden("Department administrators can only create projects for their own department")

    department = db.query(Department).filter(Department.id == data.department_id).first()
    if not department:
        raise InvalidRequest("Department not found")

    now = utc_now()
    project = Project(
        name=data.name,
        description=data.description,
        department_id=data.department_id,
        budget=data.budget,
        status=ProjectStatus.PENDING_VALIDATION.value,
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    db.flush()

    workflow.submit_request(
        db,
        current_user,
        RequestType.PROJECT_APPROVAL,
        project.id,
        PROJECT_APPROVAL_COMMENT,
        policy=policy,
        notifier=notifier,
        schedule=background_tasks.add_task,
    )
    return get_project_or_404(db, project.id)
