"""Review endpoints."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.review import ReviewCreate, ReviewResponse
from app.services import review as review_service

router = APIRouter(tags=["reviews"])


@router.post(
    "/jobs/{job_id}/reviews",
    response_model=ReviewResponse,
    status_code=201,
    dependencies=[Depends(check_rate_limit)],
)
async def submit_review(
    job_id: uuid.UUID,
    data: ReviewCreate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    """Submit a review for a completed job."""
    review = await review_service.submit_review(db, job_id, auth.user_id, data)
    return ReviewResponse.model_validate(review)
