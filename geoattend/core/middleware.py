"""
Request authentication for the attendance API.

Callers present ``Authorization: Bearer <jwt>``. The token's ``sub`` is the
user's UUID; the user must exist and be active. Admin routes additionally
go through ``require_admin``.
"""

import logging
import uuid
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geoattend.core.security import decode_token
from geoattend.db.models import User
from geoattend.db.session import get_db

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(reason: str) -> HTTPException:
    logger.debug("Rejected bearer token: %s", reason)
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject(token: str) -> uuid.UUID:
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise _unauthorized(f"decode failed: {exc}")

    if payload.get("type") != "access":
        raise _unauthorized("not an access token")

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("sub is not a user id")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise _unauthorized("missing Authorization header")

    user_id = _subject(credentials.credentials)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized(f"unknown user {user_id}")

    if not user.is_active:
        logger.warning("Disabled user attempted access: user=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_role(*roles: str) -> Callable:
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(roles)}",
            )
        return current_user

    return role_checker


require_admin = require_role(ROLE_ADMIN)
