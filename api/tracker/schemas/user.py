"""User schemas."""
from typing import Optional
from pydantic import BaseModel, EmailStr
from tracker.schemas.common import CamelModel


class UserBrief(CamelModel):
    id: str
    name: str
    email: str
    role: str


class UserResponse(UserBrief):
    is_active: bool
    department_id: Optional[str] = None
    role_display: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
