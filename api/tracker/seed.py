"""Seed reference data: departments, one account per role and a demo project."""
import os
import sys

from tracker.core.approval_policy import default_policy
from tracker.core.config import settings
from tracker.core.database import SessionLocal
from tracker.core.notifier import Notifier
from tracker.core.roles import RoleCode
from tracker.core.security import get_password_hash, verify_password
from tracker.core.validation_workflow import submit_request
from tracker.models import Department, Project, ProjectStatus, RequestType, User, ValidationRequest


DEPARTMENTS = [
    {"code": "MEFP", "name": "Ministry of Employment and Vocational Training"},
    {"code": "MJS", "name": "Ministry of Youth and Sports"},
    {"code": "MAG", "name": "Ministry of Agriculture"},
]

SEED_USERS = [
    {"email": "admin@example.com", "name": "Super Admin", "role": RoleCode.SUPER_ADMIN, "department": None},
    {"email": "minister@example.com", "name": "Minister of Employment", "role": RoleCode.MINISTER, "department": "MEFP"},
    {"email": "primature@example.com", "name": "Primature Office", "role": RoleCode.PRIMATURE, "department": None},
    {"email": "presidency@example.com", "name": "Presidency Office", "role": RoleCode.PRESIDENCY, "department": None},
    {"email": "dept.admin@example.com", "name": "MEFP Department Admin", "role": RoleCode.ADMIN_DEPARTMENT, "department": "MEFP"},
    {"email": "agent@example.com", "name": "Field Agent", "role": RoleCode.AGENT, "department": "MEFP"},
]

DEMO_PROJECT_NAME = "Youth Employment Pilot"


def is_production_env() -> bool:
    return settings.ENVIRONMENT.lower() == "production"


def get_seed_password() -> str:
    password = (os.getenv("SEED_PASSWORD") or "").strip()
    if is_production_env():
        if not password or password == "password123":
            print("FATAL: SEED_PASSWORD must be set to a non-default value in production.", file=sys.stderr)
            sys.exit(1)
        return password
    return password or "password123"


def seed_departments(db) -> dict:
    departments = {}
    for entry in DEPARTMENTS:
        department = db.query(Department).filter(Department.code == entry["code"]).first()
        if not department:
            department = Department(code=entry["code"], name=entry["name"])
            db.add(department)
            db.flush()
            print(f"✓ Created department {entry['code']}")
        departments[entry["code"]] = department
    db.commit()
    return departments


def seed_users(db, departments: dict, password: str) -> dict:
    users = {}
    for entry in SEED_USERS:
        user = db.query(User).filter(User.email == entry["email"]).first()
        if not user:
            department = departments.get(entry["department"]) if entry["department"] else None
            user = User(
                email=entry["email"],
                name=entry["name"],
                password_hash=get_password_hash(password),
                role=entry["role"].value,
                is_active=True,
                department_id=department.id if department else None,
            )
            db.add(user)
            db.commit()
            print(f"✓ Created {entry['role'].value} user ({entry['email']})")
        elif is_production_env() and verify_password("password123", user.password_hash):
            print(f"WARNING: {entry['email']} still uses the default password in production.", file=sys.stderr)
        users[entry["role"]] = user
    return users


def seed_demo_project(db, departments: dict, users: dict) -> None:
    """Create a PENDING_VALIDATION project with its approval request."""
    if db.query(Project).filter(Project.name == DEMO_PROJECT_NAME).first():
        print("✓ Demo project already exists")
        return

    requester = users[RoleCode.ADMIN_DEPARTMENT]
    project = Project(
        name=DEMO_PROJECT_NAME,
        description="Apprenticeship placements for first-time job seekers",
        department_id=departments["MEFP"].id,
        status=ProjectStatus.PENDING_VALIDATION.value,
        budget=25000000,
    )
    db.add(project)
    db.flush()
    request = submit_request(
        db,
        requester,
        RequestType.PROJECT_APPROVAL,
        project.id,
        "Approval request for new project",
        policy=default_policy,
        notifier=Notifier(SessionLocal),
    )
    print(f"✓ Created demo project with approval request {request.id}")


def seed_database():
    """Seed essential data."""
    db = SessionLocal()
    try:
        print("Starting database seeding...")
        password = get_seed_password()
        departments = seed_departments(db)
        users = seed_users(db, departments, password)
        if not is_production_env():
            seed_demo_project(db, departments, users)
        pending = db.query(ValidationRequest).filter(ValidationRequest.status == "PENDING").count()
        print(f"✓ Seeding complete ({pending} pending validation request(s))")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
