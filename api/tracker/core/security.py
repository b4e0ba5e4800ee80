"""Password hashing and bearer tokens for tracker users.

Tokens identify a user by email in the ``sub`` claim. When JWT_ISSUER or
JWT_AUDIENCE are configured they are stamped on every token and required on
every token presented back.
"""
from datetime import timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from tracker.core.config import settings
from tracker.core.time import utc_now


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False for a wrong password or an unusable stored hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def _scoped_claims() -> dict:
    claims = {}
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    return claims


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token for ``subject`` (the user's email)."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": subject, "exp": utc_now() + lifetime, **_scoped_claims()}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Return the token's subject, or None if it is invalid, expired or mis-scoped."""
    try:
        claims = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
            issuer=settings.JWT_ISSUER or None,
            options={
                "verify_aud": bool(settings.JWT_AUDIENCE),
                "require_aud": bool(settings.JWT_AUDIENCE),
                "require_iss": bool(settings.JWT_ISSUER),
            },
        )
    except JWTError:
        return None
    return claims.get("sub") or None
