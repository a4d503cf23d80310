"""Job lifecycle and bidding endpoints."""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.models.job import JobStatus
from app.schemas.bid import BidCreate, BidResponse
from app.schemas.job import (
    AcceptBidResponse,
    CancelJobResponse,
    CompleteJobResponse,
    JobCreate,
    JobResponse,
)
from app.services import bid as bid_service
from app.services import job as job_service
from app.services.locks import run_unit_of_work

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse, status_code=201, dependencies=[Depends(check_rate_limit)])
async def create_job(
    data: JobCreate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    """Owner posts a job, open for bidding."""
    job = await job_service.create_job(db, auth.user_id, data)
    return JobResponse.model_validate(job)


@router.get("", response_model=list[JobResponse], dependencies=[Depends(check_rate_limit)])
async def list_jobs(
    status: JobStatus | None = Query(None),
    category: str | None = Query(None, max_length=64),
    mine: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[JobResponse]:
    jobs = await job_service.list_jobs(
        db,
        status=status,
        category=category,
        owner_id=auth.user_id if mine else None,
        limit=limit,
        offset=offset,
    )
    return [JobResponse.model_validate(j) for j in jobs]


@router.get("/{job_id}", response_model=JobResponse, dependencies=[Depends(check_rate_limit)])
async def get_job(
    job_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    job = await job_service.get_job(db, job_id)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/complete", response_model=CompleteJobResponse, dependencies=[Depends(check_rate_limit)])
async def complete_job(
    job_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> CompleteJobResponse:
    """Owner confirms the work; escrow is released to the vendor."""
    outcome = await run_unit_of_work(
        db, lambda: job_service.complete_job(db, job_id, auth.user_id), "complete_job"
    )
    return CompleteJobResponse(
        job=JobResponse.model_validate(outcome.job),
        released_amount=outcome.released_amount,
    )


@router.post("/{job_id}/cancel", response_model=CancelJobResponse, dependencies=[Depends(check_rate_limit)])
async def cancel_job(
    job_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> CancelJobResponse:
    """Owner cancels. In-progress jobs refund the held escrow."""
    outcome = await run_unit_of_work(
        db, lambda: job_service.cancel_job(db, job_id, auth.user_id), "cancel_job"
    )
    return CancelJobResponse(
        job=JobResponse.model_validate(outcome.job),
        refunded_amount=outcome.refunded_amount,
    )


# --- Bids on a job ---


@router.post("/{job_id}/bids", response_model=BidResponse, status_code=201, dependencies=[Depends(check_rate_limit)])
async def submit_bid(
    job_id: uuid.UUID,
    data: BidCreate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> BidResponse:
    bid = await run_unit_of_work(
        db, lambda: bid_service.submit_bid(db, job_id, auth.user_id, data), "submit_bid"
    )
    return BidResponse.model_validate(bid)


@router.get("/{job_id}/bids", response_model=list[BidResponse], dependencies=[Depends(check_rate_limit)])
async def list_bids(
    job_id: uuid.UUID,
    sort: Literal["recent", "price"] = Query("recent"),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[BidResponse]:
    """Only the job owner sees every bid on the job."""
    job = await job_service.get_job(db, job_id)
    if auth.user_id != job.owner_id:
        raise HTTPException(status_code=403, detail="Only the job owner can list bids")
    bids = await bid_service.list_bids_for_job(db, job_id, sort=sort)
    return [BidResponse.model_validate(b) for b in bids]


@router.post(
    "/{job_id}/bids/{bid_id}/accept",
    response_model=AcceptBidResponse,
    dependencies=[Depends(check_rate_limit)],
)
async def accept_bid(
    job_id: uuid.UUID,
    bid_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> AcceptBidResponse:
    """Owner accepts a bid: escrow is held and the job moves to in_progress."""
    outcome = await run_unit_of_work(
        db, lambda: bid_service.accept_bid(db, job_id, bid_id, auth.user_id), "accept_bid"
    )
    return AcceptBidResponse(
        job=JobResponse.model_validate(outcome.job),
        accepted_bid=BidResponse.model_validate(outcome.accepted_bid),
    )
