"""User accounts: sign-in upsert, profile edits, admin bans and role changes."""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotAuthorized, NotFound
from app.models.user import ADMIN_ROLES, User, UserRole
from app.schemas.user import UserUpdate
from app.services import notifications
from app.services.notifications import NotificationType
from app.services.report import record_admin_action

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


async def upsert_user(
    db: AsyncSession, email: str, name: str, role: UserRole | None = None
) -> User:
    """Create the user on first sign-in; refresh name and activity afterwards."""
    email = email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    now = datetime.now(UTC)

    if user is None:
        user = User(
            user_id=uuid.uuid4(),
            email=email,
            name=name,
            role=role or UserRole.USER,
        )
        db.add(user)
        logger.info("New user %s signed in", email)
    else:
        user.name = name
        if role is not None:
            user.role = role
    user.is_online = True
    user.last_active = now

    await db.commit()
    await db.refresh(user)
    return user


async def update_profile(db: AsyncSession, user: User, data: UserUpdate) -> User:
    for field_name, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field_name, value)
    await db.commit()
    await db.refresh(user)
    return user


def _assert_can_moderate(actor: User, target: User) -> None:
    if actor.role not in ADMIN_ROLES:
        raise NotAuthorized("Admin role required")
    if target.user_id == actor.user_id:
        raise NotAuthorized("Cannot moderate your own account")
    # Admins cannot act on other admins; only a superadmin can
    if target.role in ADMIN_ROLES and actor.role != UserRole.SUPERADMIN:
        raise NotAuthorized("Only a superadmin can moderate admins")


async def ban_user(
    db: AsyncSession, user_id: uuid.UUID, reason: str, actor: User
) -> User:
    """Soft ban: the account stays, every authenticated request is refused."""
    user = await get_user(db, user_id)
    _assert_can_moderate(actor, user)
    user.is_banned = True
    user.ban_reason = reason
    user.is_online = False
    record_admin_action(db, actor.user_id, "user.banned", "user", user.user_id, {"reason": reason})
    await db.commit()
    await db.refresh(user)
    logger.info("User %s banned by %s", user_id, actor.user_id)
    return user


async def unban_user(db: AsyncSession, user_id: uuid.UUID, actor: User) -> User:
    user = await get_user(db, user_id)
    _assert_can_moderate(actor, user)
    user.is_banned = False
    user.ban_reason = None
    record_admin_action(db, actor.user_id, "user.unbanned", "user", user.user_id)
    await db.commit()
    await db.refresh(user)

    await notifications.notify(
        db, user.user_id, "Account restored",
        "Your account has been reinstated.",
        NotificationType.ACCOUNT,
    )
    return user


async def set_role(
    db: AsyncSession, user_id: uuid.UUID, role: UserRole, actor: User
) -> User:
    """Superadmin only."""
    if actor.role != UserRole.SUPERADMIN:
        raise NotAuthorized("Only a superadmin can change roles")
    user = await get_user(db, user_id)
    previous = user.role
    user.role = role
    record_admin_action(
        db, actor.user_id, "user.role_changed", "user", user.user_id,
        {"from": previous.value, "to": role.value},
    )
    await db.commit()
    await db.refresh(user)
    logger.info("User %s role %s → %s", user_id, previous.value, role.value)
    return user
