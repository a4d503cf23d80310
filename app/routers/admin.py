"""Admin endpoints: moderation queue, listing takedowns, user bans, role changes, manual credits."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, require_role
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.models.report import ReportStatus
from app.models.user import UserRole
from app.schemas.ledger import AdminCreditRequest, TransactionResponse
from app.schemas.listing import ListingRemoveRequest, ListingResponse
from app.schemas.report import ReportResolve, ReportResponse
from app.schemas.user import BanRequest, RoleChangeRequest, UserResponse
from app.services import ledger as ledger_service
from app.services import listing as listing_service
from app.services import report as report_service
from app.services import user as user_service
from app.services.locks import run_unit_of_work

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(check_rate_limit)])

require_admin = require_role(UserRole.ADMIN, UserRole.SUPERADMIN)
require_superadmin = require_role(UserRole.SUPERADMIN)


# --- Reports ---


@router.get("/reports", response_model=list[ReportResponse])
async def list_reports(
    status: ReportStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ReportResponse]:
    reports = await report_service.list_reports(db, auth.user, status=status, limit=limit, offset=offset)
    return [ReportResponse.model_validate(r) for r in reports]


@router.post("/reports/{report_id}/review", response_model=ReportResponse)
async def review_report(
    report_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    report = await report_service.mark_reviewed(db, report_id, auth.user)
    return ReportResponse.model_validate(report)


@router.post("/reports/{report_id}/resolve", response_model=ReportResponse)
async def resolve_report(
    report_id: uuid.UUID,
    data: ReportResolve,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """Close the report as resolved or dismissed. Terminal."""
    report = await report_service.resolve_report(
        db, report_id, ReportStatus(data.outcome), data.resolution, auth.user
    )
    return ReportResponse.model_validate(report)


# --- Listings ---


@router.post("/listings/{listing_id}/remove", response_model=ListingResponse)
async def remove_listing(
    listing_id: uuid.UUID,
    data: ListingRemoveRequest,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.remove_listing(db, listing_id, data.reason, auth.user)
    return ListingResponse.model_validate(listing)


@router.post("/listings/{listing_id}/restore", response_model=ListingResponse)
async def restore_listing(
    listing_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    """Clear a held or removed listing back to active."""
    listing = await listing_service.restore_listing(db, listing_id, auth.user)
    return ListingResponse.model_validate(listing)


# --- Users ---


@router.post("/users/{user_id}/ban", response_model=UserResponse)
async def ban_user(
    user_id: uuid.UUID,
    data: BanRequest,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.ban_user(db, user_id, data.reason, auth.user)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/unban", response_model=UserResponse)
async def unban_user(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.unban_user(db, user_id, auth.user)
    return UserResponse.model_validate(user)


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: uuid.UUID,
    data: RoleChangeRequest,
    auth: AuthenticatedUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.set_role(db, user_id, data.role, auth.user)
    return UserResponse.model_validate(user)


# --- Wallets ---


@router.post("/wallets/{user_id}/credit", response_model=TransactionResponse, status_code=201)
async def credit_wallet(
    user_id: uuid.UUID,
    data: AdminCreditRequest,
    auth: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Manual credit, e.g. a goodwill adjustment. Recorded in the admin audit log."""
    await user_service.get_user(db, user_id)
    entry = await run_unit_of_work(
        db,
        lambda: ledger_service.admin_credit(db, user_id, data.amount, data.description, auth.user),
        "admin_credit",
    )
    return TransactionResponse.model_validate(entry)
