"""Security utilities: bearer token validation."""

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_couple.config import settings
from budget_couple.core.database import get_db
from budget_couple.core.exceptions import UnauthorizedError
from budget_couple.models.user import User

logger = structlog.get_logger()


def decode_access_token(token: str) -> dict:
    """Decode and validate an HS256 access token."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise UnauthorizedError("Invalid or expired token") from e


def create_access_token(user_id: int, **claims) -> str:
    """Issue a token for ``user_id``; used by tooling and tests."""
    payload = {"sub": str(user_id), **claims}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


# ── Auth Dependencies ─────────────────────────────
security_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency: validate the bearer token and return the active user."""
    if credentials is None:
        raise UnauthorizedError("Missing bearer token")

    payload = decode_access_token(credentials.credentials)
    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise UnauthorizedError("Token missing subject")

    result = await db.execute(
        select(User).where(User.id == int(subject), User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("token_user_not_found", user_id=subject)
        raise UnauthorizedError("User not found or inactive")
    return user
