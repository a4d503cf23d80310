"""Review and rating business logic."""

import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import DuplicateReview, InvalidJobState, NotAuthorized
from app.models.job import Job, JobStatus
from app.models.review import Review
from app.schemas.review import RatingSummary, ReviewCreate
from app.services import technician
from app.services.job import get_job


async def submit_review(
    db: AsyncSession,
    job_id: uuid.UUID,
    reviewer_id: uuid.UUID,
    data: ReviewCreate,
) -> Review:
    """Owner and assigned vendor may each review the other once per completed job."""
    job: Job = await get_job(db, job_id)
    if job.status != JobStatus.COMPLETED:
        raise InvalidJobState(job.status.value, "reviewed")

    if reviewer_id == job.owner_id and job.assigned_vendor_id is not None:
        reviewee_id = job.assigned_vendor_id
    elif reviewer_id == job.assigned_vendor_id:
        reviewee_id = job.owner_id
    else:
        raise NotAuthorized("Only parties to the job can leave reviews")

    existing = await db.execute(
        select(Review.review_id).where(
            Review.job_id == job_id,
            Review.reviewer_id == reviewer_id,
        )
    )
    if existing.first() is not None:
        raise DuplicateReview()

    review = Review(
        review_id=uuid.uuid4(),
        job_id=job_id,
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        rating=data.rating,
        comment=data.comment,
    )
    db.add(review)
    await technician.refresh_rating(db, reviewee_id)
    await db.commit()
    await db.refresh(review)
    return review


async def get_reviews_for_user(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 20, offset: int = 0
) -> list[Review]:
    """Reviews where the user is the reviewee, newest first."""
    result = await db.execute(
        select(Review)
        .where(Review.reviewee_id == user_id)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_rating_summary(db: AsyncSession, user_id: uuid.UUID) -> RatingSummary:
    result = await db.execute(
        select(func.count(Review.review_id), func.avg(Review.rating))
        .where(Review.reviewee_id == user_id)
    )
    count, average = result.one()
    if not count:
        return RatingSummary(user_id=user_id, review_count=0, average_rating=None)
    return RatingSummary(
        user_id=user_id,
        review_count=count,
        average_rating=Decimal(str(average)).quantize(Decimal("0.01")),
    )
