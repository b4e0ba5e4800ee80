"""Authentication routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tracker.core.database import get_db
from tracker.core.deps import get_current_user
from tracker.core.exceptions import Unauthorized
from tracker.core.roles import get_role_display
from tracker.core.security import create_access_token, verify_password
from tracker.models.user import User
from tracker.schemas.user import LoginRequest, Token, UserResponse

router = APIRouter()


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login endpoint."""
    user = db.query(User).filter(User.email == login_data.email).first()

    if not user or not user.is_active or not verify_password(login_data.password, user.password_hash):
        raise Unauthorized("Incorrect email or password")

    access_token = create_access_token(user.email)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user."""
    return UserResponse(
        id=current_user.id,
        name=current_user.name,
        email=current_user.email,
        role=current_user.role,
        is_active=current_user.is_active,
        department_id=current_user.department_id,
        role_display=get_role_display(current_user.role),
    )
