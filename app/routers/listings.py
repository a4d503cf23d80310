"""Buy, sell and rent listing endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.models.listing import ListingType
from app.schemas.listing import ListingCreate, ListingResponse, ListingUpdate
from app.services import listing as listing_service

router = APIRouter(prefix="/listings", tags=["listings"], dependencies=[Depends(check_rate_limit)])


@router.post("", response_model=ListingResponse, status_code=201)
async def create_listing(
    data: ListingCreate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.create_listing(db, auth.user_id, data)
    return ListingResponse.model_validate(listing)


@router.get("", response_model=list[ListingResponse])
async def list_listings(
    type: ListingType | None = Query(None),
    category: str | None = Query(None, max_length=64),
    city: str | None = Query(None, max_length=100),
    mine: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[ListingResponse]:
    """Browse active listings. With mine=true, every listing you own in any status."""
    listings = await listing_service.list_listings(
        db,
        type=type,
        category=category,
        city=city,
        owner_id=auth.user_id if mine else None,
        limit=limit,
        offset=offset,
    )
    return [ListingResponse.model_validate(item) for item in listings]


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.get_listing(db, listing_id, auth.user)
    return ListingResponse.model_validate(listing)


@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: uuid.UUID,
    data: ListingUpdate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    """Owner edits the listing or toggles it between active and hidden."""
    listing = await listing_service.update_listing(db, listing_id, auth.user_id, data)
    return ListingResponse.model_validate(listing)
