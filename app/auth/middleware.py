"""Session verification dependencies for FastAPI."""

import uuid
from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User, UserRole
from app.utils.crypto import verify_session_token


class AuthenticatedUser:
    """Container for the verified user context."""

    def __init__(self, user_id: uuid.UUID, user: User) -> None:
        self.user_id = user_id
        self.user = user


def _extract_bearer(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authentication headers")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization scheme")
    return auth_header[7:].strip()


async def verify_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Verify the bearer session token and load the user."""
    token = _extract_bearer(request)

    user_id = verify_session_token(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    if user.is_banned:
        raise HTTPException(status_code=403, detail="User is banned")

    return AuthenticatedUser(user_id=user_id, user=user)


def require_role(*roles: UserRole) -> Callable[..., Awaitable[AuthenticatedUser]]:
    """Dependency factory restricting an endpoint to the given roles."""
    allowed = frozenset(roles)

    async def _check(
        auth: AuthenticatedUser = Depends(verify_session),
    ) -> AuthenticatedUser:
        if auth.user.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return auth

    return _check
