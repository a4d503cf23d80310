"""Listing business logic: post, browse, edit and moderate buy/sell/rent listings.

    active ◀──owner──▶ hidden
      │
      └──reports reach threshold──▶ pending ──admin──▶ active | removed

Only moderators move a listing out of pending or removed.
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ListingUnderModeration, NotAuthorized, NotFound
from app.models.listing import OWNER_SETTABLE_STATUSES, Listing, ListingStatus, ListingType
from app.models.user import User
from app.schemas.listing import ListingCreate, ListingUpdate
from app.services import notifications
from app.services.notifications import NotificationType
from app.services.report import record_admin_action

logger = logging.getLogger(__name__)


async def _get_listing(
    db: AsyncSession, listing_id: uuid.UUID, for_update: bool = False
) -> Listing:
    query = select(Listing).where(Listing.listing_id == listing_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    listing = result.scalar_one_or_none()
    if listing is None:
        raise NotFound("Listing not found")
    return listing


async def create_listing(
    db: AsyncSession, owner_id: uuid.UUID, data: ListingCreate
) -> Listing:
    listing = Listing(
        listing_id=uuid.uuid4(),
        owner_id=owner_id,
        title=data.title,
        description=data.description,
        type=data.type,
        category=data.category,
        price=data.price,
        price_type=data.price_type,
        city=data.city,
        state=data.state,
        pincode=data.pincode,
        status=ListingStatus.ACTIVE,
    )
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    logger.info("Listing %s (%s) posted by %s", listing.listing_id, data.type.value, owner_id)
    return listing


async def get_listing(
    db: AsyncSession, listing_id: uuid.UUID, viewer: User
) -> Listing:
    """Active listings are public; others are visible to the owner and admins.

    A view by anyone other than the owner is counted.
    """
    listing = await _get_listing(db, listing_id)
    is_owner = listing.owner_id == viewer.user_id
    if listing.status != ListingStatus.ACTIVE and not (is_owner or viewer.is_admin):
        raise NotFound("Listing not found")
    if not is_owner:
        await db.execute(
            update(Listing)
            .where(Listing.listing_id == listing_id)
            .values(views=Listing.views + 1)
        )
        await db.commit()
        await db.refresh(listing)
    return listing


async def update_listing(
    db: AsyncSession,
    listing_id: uuid.UUID,
    actor_id: uuid.UUID,
    data: ListingUpdate,
) -> Listing:
    """Owner edits. Pending and removed listings are frozen until moderated."""
    listing = await _get_listing(db, listing_id, for_update=True)
    if listing.owner_id != actor_id:
        raise NotAuthorized("Can only update own listings")
    if listing.status not in OWNER_SETTABLE_STATUSES:
        raise ListingUnderModeration(listing.status.value)

    for field_name, value in data.model_dump(exclude_unset=True).items():
        if field_name == "status" and value is not None:
            value = ListingStatus(value)
        setattr(listing, field_name, value)
    await db.commit()
    await db.refresh(listing)
    return listing


async def list_listings(
    db: AsyncSession,
    type: ListingType | None = None,
    category: str | None = None,
    city: str | None = None,
    owner_id: uuid.UUID | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Listing]:
    """Browse active listings, or every listing of one owner."""
    if owner_id is not None:
        query = select(Listing).where(Listing.owner_id == owner_id)
    else:
        query = select(Listing).where(Listing.status == ListingStatus.ACTIVE)
    if type is not None:
        query = query.where(Listing.type == type)
    if category:
        query = query.where(Listing.category == category.strip().lower())
    if city:
        query = query.where(Listing.city.ilike(city.strip()))
    result = await db.execute(
        query.order_by(Listing.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def remove_listing(
    db: AsyncSession, listing_id: uuid.UUID, reason: str, actor: User
) -> Listing:
    """Admin takes a listing down. Audited; the owner is told why."""
    if not actor.is_admin:
        raise NotAuthorized("Admin role required")
    listing = await _get_listing(db, listing_id, for_update=True)
    listing.status = ListingStatus.REMOVED
    record_admin_action(
        db, actor.user_id, "listing.removed", "listing", listing.listing_id, {"reason": reason}
    )
    await db.commit()
    await db.refresh(listing)
    logger.info("Listing %s removed by %s", listing_id, actor.user_id)

    await notifications.notify(
        db, listing.owner_id, "Listing removed",
        f"Your listing '{listing.title}' was removed: {reason}",
        NotificationType.LISTING_UPDATE,
        {"listing_id": str(listing.listing_id)},
    )
    return listing


async def restore_listing(
    db: AsyncSession, listing_id: uuid.UUID, actor: User
) -> Listing:
    """Admin clears a held or removed listing back to active."""
    if not actor.is_admin:
        raise NotAuthorized("Admin role required")
    listing = await _get_listing(db, listing_id, for_update=True)
    previous = listing.status
    listing.status = ListingStatus.ACTIVE
    record_admin_action(
        db, actor.user_id, "listing.restored", "listing", listing.listing_id,
        {"from": previous.value},
    )
    await db.commit()
    await db.refresh(listing)

    await notifications.notify(
        db, listing.owner_id, "Listing restored",
        f"Your listing '{listing.title}' is visible again.",
        NotificationType.LISTING_UPDATE,
        {"listing_id": str(listing.listing_id)},
    )
    return listing
