"""Report filing endpoint. Moderation lives in the admin router."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.report import ReportCreate, ReportResponse
from app.services import report as report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportResponse, status_code=201, dependencies=[Depends(check_rate_limit)])
async def file_report(
    data: ReportCreate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    report = await report_service.create_report(db, auth.user_id, data)
    return ReportResponse.model_validate(report)
