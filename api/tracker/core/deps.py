"""Request-scoped dependencies."""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tracker.core.database import get_db
from tracker.core.exceptions import Unauthorized
from tracker.core.security import decode_access_token
from tracker.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated actor from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    email = decode_access_token(credentials.credentials)
    if email is None:
        raise Unauthorized("Invalid or expired token")

    user = db.query(User).filter(User.email == email).first()
    if user is None or not user.is_active:
        raise Unauthorized("User not found or inactive")
    return user
