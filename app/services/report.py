"""Moderation queue: users file reports, admins review and close them.

    pending ──review──▶ reviewed
       │                   │
       └──resolve/dismiss──┴──▶ resolved | dismissed   (terminal)
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import AlreadyResolved, NotAuthorized, NotFound, ValidationFailed
from app.models.listing import Listing, ListingStatus
from app.models.report import (
    TERMINAL_REPORT_STATUSES,
    AdminAction,
    Report,
    ReportStatus,
    ReportTarget,
)
from app.models.user import User
from app.schemas.report import ReportCreate
from app.services import notifications
from app.services.notifications import NotificationType

logger = logging.getLogger(__name__)


def _assert_admin(actor: User) -> None:
    if not actor.is_admin:
        raise NotAuthorized("Admin role required")


async def _get_report(
    db: AsyncSession, report_id: uuid.UUID, for_update: bool = False
) -> Report:
    query = select(Report).where(Report.report_id == report_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFound("Report not found")
    return report


def record_admin_action(
    db: AsyncSession,
    admin_id: uuid.UUID,
    action: str,
    target_type: str,
    target_id: uuid.UUID,
    details: dict | None = None,
) -> AdminAction:
    """Append to the admin audit log. Committed with the caller's unit of work."""
    entry = AdminAction(
        action_id=uuid.uuid4(),
        admin_id=admin_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )
    db.add(entry)
    return entry


async def _flag_listing(db: AsyncSession, listing_id: uuid.UUID) -> None:
    """Count a report against a listing; enough of them put it on hold."""
    result = await db.execute(
        update(Listing)
        .where(Listing.listing_id == listing_id)
        .values(report_count=Listing.report_count + 1)
    )
    if result.rowcount == 0:
        raise NotFound("Listing not found")
    held = await db.execute(
        update(Listing)
        .where(
            Listing.listing_id == listing_id,
            Listing.status == ListingStatus.ACTIVE,
            Listing.report_count >= settings.listing_report_threshold,
        )
        .values(status=ListingStatus.PENDING)
    )
    if held.rowcount:
        logger.info("Listing %s held for moderation after repeated reports", listing_id)


async def create_report(
    db: AsyncSession, reporter_id: uuid.UUID, data: ReportCreate
) -> Report:
    if data.target_type == ReportTarget.LISTING:
        await _flag_listing(db, data.target_id)
    report = Report(
        report_id=uuid.uuid4(),
        reporter_id=reporter_id,
        target_type=data.target_type,
        target_id=data.target_id,
        reason=data.reason,
        description=data.description,
        status=ReportStatus.PENDING,
    )
    db.add(report)
    await db.commit()
    await db.refresh(report)
    logger.info("Report %s filed on %s %s", report.report_id, data.target_type.value, data.target_id)
    return report


async def mark_reviewed(
    db: AsyncSession, report_id: uuid.UUID, actor: User
) -> Report:
    """pending → reviewed. Admin only."""
    _assert_admin(actor)
    report = await _get_report(db, report_id, for_update=True)
    if report.status in TERMINAL_REPORT_STATUSES:
        raise AlreadyResolved(report.status.value)
    if report.status != ReportStatus.PENDING:
        return report
    report.status = ReportStatus.REVIEWED
    record_admin_action(db, actor.user_id, "report.reviewed", "report", report.report_id)
    await db.commit()
    await db.refresh(report)
    return report


async def resolve_report(
    db: AsyncSession,
    report_id: uuid.UUID,
    outcome: ReportStatus,
    resolution_note: str | None,
    actor: User,
) -> Report:
    """Close a report as resolved or dismissed. Admin only; terminal."""
    _assert_admin(actor)
    if outcome not in TERMINAL_REPORT_STATUSES:
        raise ValidationFailed("Outcome must be resolved or dismissed")

    report = await _get_report(db, report_id, for_update=True)
    if report.status in TERMINAL_REPORT_STATUSES:
        raise AlreadyResolved(report.status.value)

    report.status = outcome
    report.resolution = resolution_note
    report.resolved_by = actor.user_id
    record_admin_action(
        db, actor.user_id, f"report.{outcome.value}", "report", report.report_id,
        {"resolution": resolution_note},
    )
    await db.commit()
    await db.refresh(report)
    logger.info("Report %s closed as %s by %s", report_id, outcome.value, actor.user_id)

    await notifications.notify(
        db, report.reporter_id, "Report update",
        f"Your report was {outcome.value}.",
        NotificationType.REPORT_UPDATE,
        {"report_id": str(report.report_id)},
    )
    return report


async def list_reports(
    db: AsyncSession,
    actor: User,
    status: ReportStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Report]:
    _assert_admin(actor)
    query = select(Report)
    if status is not None:
        query = query.where(Report.status == status)
    result = await db.execute(
        query.order_by(Report.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())
