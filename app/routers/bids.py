"""Bid endpoints addressed by bid id."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.bid import BidResponse
from app.services import bid as bid_service
from app.services.locks import run_unit_of_work

router = APIRouter(prefix="/bids", tags=["bids"])


@router.get("", response_model=list[BidResponse], dependencies=[Depends(check_rate_limit)])
async def list_my_bids(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[BidResponse]:
    """Bids placed by the caller, newest first."""
    bids = await bid_service.list_bids_for_vendor(db, auth.user_id, limit=limit, offset=offset)
    return [BidResponse.model_validate(b) for b in bids]


@router.post("/{bid_id}/withdraw", response_model=BidResponse, dependencies=[Depends(check_rate_limit)])
async def withdraw_bid(
    bid_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> BidResponse:
    """Vendor withdraws their own pending or shortlisted bid."""
    bid = await run_unit_of_work(
        db, lambda: bid_service.withdraw_bid(db, bid_id, auth.user_id), "withdraw_bid"
    )
    return BidResponse.model_validate(bid)


@router.post("/{bid_id}/shortlist", response_model=BidResponse, dependencies=[Depends(check_rate_limit)])
async def shortlist_bid(
    bid_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> BidResponse:
    """Job owner shortlists a pending bid."""
    bid = await run_unit_of_work(
        db, lambda: bid_service.shortlist_bid(db, bid_id, auth.user_id), "shortlist_bid"
    )
    return BidResponse.model_validate(bid)
