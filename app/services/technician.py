"""Technician profiles and the counters fed by reviews and completed jobs."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import String, cast, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, ProfileExists
from app.models.job import Job
from app.models.review import Review
from app.models.technician import TechnicianProfile
from app.models.user import User
from app.schemas.technician import TechnicianProfileCreate, TechnicianProfileUpdate

logger = logging.getLogger(__name__)


async def _find_profile(
    db: AsyncSession, user_id: uuid.UUID, for_update: bool = False
) -> TechnicianProfile | None:
    query = select(TechnicianProfile).where(TechnicianProfile.user_id == user_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> TechnicianProfile:
    profile = await _find_profile(db, user_id)
    if profile is None:
        raise NotFound("Technician profile not found")
    return profile


async def create_profile(
    db: AsyncSession, user_id: uuid.UUID, data: TechnicianProfileCreate
) -> TechnicianProfile:
    """A user has at most one technician profile."""
    if await _find_profile(db, user_id) is not None:
        raise ProfileExists()
    profile = TechnicianProfile(
        profile_id=uuid.uuid4(),
        user_id=user_id,
        **data.model_dump(),
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    logger.info("Technician profile created for %s", user_id)
    return profile


async def update_profile(
    db: AsyncSession, user_id: uuid.UUID, data: TechnicianProfileUpdate
) -> TechnicianProfile:
    profile = await get_profile(db, user_id)
    for field_name, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field_name, value)
    await db.commit()
    await db.refresh(profile)
    return profile


async def list_technicians(
    db: AsyncSession,
    category: str | None = None,
    city: str | None = None,
    min_rating: Decimal | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[TechnicianProfile]:
    """Available, unbanned technicians, best rated first."""
    query = (
        select(TechnicianProfile)
        .join(User, User.user_id == TechnicianProfile.user_id)
        .where(TechnicianProfile.is_available == True)  # noqa: E712
        .where(User.is_banned == False)  # noqa: E712
    )
    if category:
        # Categories are stored lowercased as a JSON array of strings
        needle = f'%"{category.strip().lower()}"%'
        query = query.where(cast(TechnicianProfile.categories, String).like(needle))
    if city:
        query = query.where(func.lower(User.city) == city.strip().lower())
    if min_rating is not None:
        query = query.where(TechnicianProfile.rating >= min_rating)
    query = query.order_by(
        TechnicianProfile.rating.desc(),
        TechnicianProfile.completed_jobs.desc(),
        TechnicianProfile.created_at.asc(),
    )
    result = await db.execute(query.limit(limit).offset(offset))
    return list(result.scalars().all())


async def record_completed_job(db: AsyncSession, vendor_id: uuid.UUID) -> None:
    """Bump the vendor's completed_jobs counter. Committed with the caller's unit of work."""
    await db.execute(
        update(TechnicianProfile)
        .where(TechnicianProfile.user_id == vendor_id)
        .values(completed_jobs=TechnicianProfile.completed_jobs + 1)
    )


async def refresh_rating(db: AsyncSession, user_id: uuid.UUID) -> TechnicianProfile | None:
    """Recompute rating and total_reviews from reviews received as the job's vendor.

    Committed with the caller's unit of work. No-op for users without a profile.
    """
    profile = await _find_profile(db, user_id, for_update=True)
    if profile is None:
        return None
    result = await db.execute(
        select(func.count(Review.review_id), func.avg(Review.rating))
        .join(Job, Job.job_id == Review.job_id)
        .where(Review.reviewee_id == user_id, Job.assigned_vendor_id == user_id)
    )
    count, average = result.one()
    profile.total_reviews = count
    profile.rating = Decimal(str(average or 0)).quantize(Decimal("0.01"))
    return profile
