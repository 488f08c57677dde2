"""
FastAPI dependencies: auth guards, actor→employee resolution, DB session.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any, Optional

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.core.config import settings
from timekeeper.core.exceptions import ValidationError
from timekeeper.core.security import decode_access_token
from timekeeper.db.session import async_session_factory
from timekeeper.models.enums import Role
from timekeeper.models.user import User

# auto_error=False so the cookie can be checked when the header is missing
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login", auto_error=False
)

PRIVILEGED_ROLES = frozenset({Role.ADMIN.value, Role.HR.value, Role.MANAGER.value})


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    final_token = token
    if not final_token and access_token:
        # Cookie is stored as "Bearer <token>"
        if access_token.startswith("Bearer "):
            final_token = access_token.split(" ", 1)[1]
        else:
            final_token = access_token

    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not final_token:
        raise credentials_exc

    payload = decode_access_token(final_token)
    if payload is None:
        raise credentials_exc

    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise credentials_exc

    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


def require_roles(*roles: str) -> Callable[..., Coroutine[Any, Any, User]]:
    """Build a dependency admitting only the given roles."""
    allowed = frozenset(roles)

    async def _guard(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of the roles: {', '.join(sorted(allowed))}",
            )
        return current_user

    return _guard


async def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only allow admin role to proceed."""
    if current_user.role != Role.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


require_reviewer = require_roles(*PRIVILEGED_ROLES)
require_hr = require_roles(Role.ADMIN.value, Role.HR.value)


def is_privileged(user: User) -> bool:
    return user.role in PRIVILEGED_ROLES


def ensure_owner(user: User, employee_id: str, detail: str) -> None:
    """403 unless the actor is privileged or ``employee_id`` is their own."""
    if not is_privileged(user) and employee_id != user.employee_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def resolve_employee_id(user: User, requested: str | None) -> str:
    """The employee an actor is acting for.

    Defaults to the actor's own identity; acting for someone else needs a
    privileged role.
    """
    own = user.employee_id
    if not requested or requested == own:
        if not own:
            raise ValidationError("Employee ID is required")
        return own
    if not is_privileged(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to act for another employee",
        )
    return requested
