"""In-app notification inbox."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.notification import MarkAllReadResponse, NotificationResponse
from app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(check_rate_limit)])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[NotificationResponse]:
    items = await notification_service.list_notifications(
        db, auth.user_id, unread_only=unread_only, limit=limit, offset=offset
    )
    return [NotificationResponse.model_validate(n) for n in items]


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    updated = await notification_service.mark_all_read(db, auth.user_id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await notification_service.mark_read(db, notification_id, auth.user_id)
    return NotificationResponse.model_validate(notification)
