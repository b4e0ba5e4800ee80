"""Pytest fixtures for API testing."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tracker.main import app
from tracker.core.database import get_db
from tracker.core.notifier import Notifier, get_notifier
from tracker.core.roles import RoleCode
from tracker.core.security import get_password_hash, create_access_token
from tracker.models import Base, Department, Project, ProjectStatus, User

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


def override_get_notifier():
    return Notifier(TestingSessionLocal)


def headers_for(user: User) -> dict:
    token = create_access_token(user.email)
    return {"Authorization": f"Bearer {token}"}


def make_user(db_session, email, name, role: RoleCode, department=None, is_active=True) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=get_password_hash("testpass123"),
        role=role.value,
        is_active=is_active,
        department_id=department.id if department else None
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database and notifier overrides.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = override_get_notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def departments(db_session):
    """Two departments: projects in 'employment' are administered by dept_admin."""
    employment = Department(code="MEFP", name="Ministry of Employment")
    youth = Department(code="MJS", name="Ministry of Youth")
    db_session.add_all([employment, youth])
    db_session.commit()
    return {"employment": employment, "youth": youth}


@pytest.fixture
def dept_admin(db_session, departments):
    return make_user(db_session, "dept.admin@example.com", "Dept Admin",
                     RoleCode.ADMIN_DEPARTMENT, departments["employment"])


@pytest.fixture
def other_dept_admin(db_session, departments):
    return make_user(db_session, "youth.admin@example.com", "Youth Admin",
                     RoleCode.ADMIN_DEPARTMENT, departments["youth"])


@pytest.fixture
def minister(db_session):
    return make_user(db_session, "minister@example.com", "Minister", RoleCode.MINISTER)


@pytest.fixture
def primature(db_session):
    return make_user(db_session, "primature@example.com", "Primature", RoleCode.PRIMATURE)


@pytest.fixture
def super_admin(db_session):
    return make_user(db_session, "admin@example.com", "Super Admin", RoleCode.SUPER_ADMIN)


@pytest.fixture
def agent(db_session, departments):
    return make_user(db_session, "agent@example.com", "Field Agent",
                     RoleCode.AGENT, departments["employment"])


@pytest.fixture
def dept_admin_headers(dept_admin):
    return headers_for(dept_admin)


@pytest.fixture
def other_dept_admin_headers(other_dept_admin):
    return headers_for(other_dept_admin)


@pytest.fixture
def minister_headers(minister):
    return headers_for(minister)


@pytest.fixture
def super_admin_headers(super_admin):
    return headers_for(super_admin)


@pytest.fixture
def agent_headers(agent):
    return headers_for(agent)


def make_project(db_session, department, name, status: ProjectStatus, budget=None) -> Project:
    project = Project(
        name=name,
        department_id=department.id,
        status=status.value,
        budget=budget
    )
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def pending_project(db_session, departments):
    return make_project(db_session, departments["employment"], "Vocational Training Centres",
                        ProjectStatus.PENDING_VALIDATION, budget=10000000)


@pytest.fixture
def active_project(db_session, departments):
    return make_project(db_session, departments["employment"], "Youth Apprenticeships",
                        ProjectStatus.IN_PROGRESS, budget=20000000)


@pytest.fixture
def blocked_project(db_session, departments):
    return make_project(db_session, departments["employment"], "Rural Job Fairs",
                        ProjectStatus.BLOCKED, budget=5000000)


@pytest.fixture
def youth_project(db_session, departments):
    return make_project(db_session, departments["youth"], "Sports Coaching Jobs",
                        ProjectStatus.IN_PROGRESS, budget=3000000)
