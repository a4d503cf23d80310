"""Notification emitter.

The core calls ``notify`` only after its own unit of work has committed.
Delivery is fire-and-forget: a failure to store a notification is logged
and swallowed so it can never undo the business transaction that caused it.
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotAuthorized, NotFound
from app.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationType:
    BID_RECEIVED = "bid_received"
    BID_ACCEPTED = "bid_accepted"
    BID_REJECTED = "bid_rejected"
    BID_WITHDRAWN = "bid_withdrawn"
    BID_SHORTLISTED = "bid_shortlisted"
    JOB_COMPLETED = "job_completed"
    JOB_CANCELLED = "job_cancelled"
    PAYMENT_RECEIVED = "payment_received"
    REPORT_UPDATE = "report_update"
    LISTING_UPDATE = "listing_update"
    ACCOUNT = "account"


async def notify(
    db: AsyncSession,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: str,
    data: dict | None = None,
) -> Notification | None:
    """Store one in-app notification. Returns None if it could not be stored."""
    stored = await notify_many(db, [(user_id, title, message, type, data)])
    return stored[0] if stored else None


async def notify_many(
    db: AsyncSession,
    entries: list[tuple[uuid.UUID, str, str, str, dict | None]],
) -> list[Notification]:
    """Store a batch of notifications in one commit. Never raises on store failure.

    Writes go through a separate session on the caller's engine, so a failed
    write cannot roll back or expire anything the caller already committed.
    """
    if not entries:
        return []
    notifications = [
        Notification(
            notification_id=uuid.uuid4(),
            user_id=user_id,
            title=title,
            message=message,
            type=type_,
            data=data,
        )
        for user_id, title, message, type_, data in entries
    ]
    async with AsyncSession(db.bind, expire_on_commit=False) as session:
        try:
            session.add_all(notifications)
            await session.commit()
        except SQLAlchemyError:
            logger.warning(
                "Failed to store %d notification(s) of type %s",
                len(notifications), notifications[0].type, exc_info=True,
            )
            await session.rollback()
            return []

    for n in notifications:
        logger.info("Notification %s → %s", n.type, n.user_id)
    return notifications


async def list_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712
    result = await db.execute(
        query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def mark_read(
    db: AsyncSession, notification_id: uuid.UUID, actor_id: uuid.UUID
) -> Notification:
    result = await db.execute(
        select(Notification).where(Notification.notification_id == notification_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound("Notification not found")
    if notification.user_id != actor_id:
        raise NotAuthorized("Can only mark own notifications as read")
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Returns the number of notifications that changed."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount or 0
