"""Bid registry business logic: submit, shortlist, accept, withdraw.

A vendor holds at most one active (pending or shortlisted) bid per job.
Accepting one bid rejects every other active bid on the job in the same
commit, so a job never has more than one accepted bid.
"""

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import (
    BidNotPending,
    DuplicateBid,
    JobNotOpen,
    NotAuthorized,
    NotFound,
    SelfBidForbidden,
)
from app.models.bid import ACTIVE_BID_STATUSES, Bid, BidStatus
from app.models.job import Job, JobStatus
from app.schemas.bid import BidCreate
from app.services import job as job_service
from app.services import notifications
from app.services.locks import aggregate_locks
from app.services.notifications import NotificationType

logger = logging.getLogger(__name__)


@dataclass
class AcceptOutcome:
    job: Job
    accepted_bid: Bid
    rejected_bids: list[Bid] = field(default_factory=list)


async def _get_bid(
    db: AsyncSession, bid_id: uuid.UUID, for_update: bool = False
) -> Bid:
    query = select(Bid).where(Bid.bid_id == bid_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    bid = result.scalar_one_or_none()
    if bid is None:
        raise NotFound("Bid not found")
    return bid


async def submit_bid(
    db: AsyncSession, job_id: uuid.UUID, vendor_id: uuid.UUID, data: BidCreate
) -> Bid:
    """Vendor bids on an open job. One active bid per vendor per job."""
    async with aggregate_locks(job_id=job_id):
        job = await job_service._get_job(db, job_id, for_update=True)
        if job.status != JobStatus.OPEN:
            raise JobNotOpen(job.status.value)
        if job.owner_id == vendor_id:
            raise SelfBidForbidden()

        existing = await db.execute(
            select(Bid.bid_id).where(
                Bid.job_id == job_id,
                Bid.vendor_id == vendor_id,
                Bid.status.in_(ACTIVE_BID_STATUSES),
            )
        )
        if existing.first() is not None:
            raise DuplicateBid()

        bid = Bid(
            bid_id=uuid.uuid4(),
            job_id=job_id,
            vendor_id=vendor_id,
            amount=data.amount,
            message=data.message,
            delivery_time=data.delivery_time,
            status=BidStatus.PENDING,
        )
        db.add(bid)
        job.bid_count = job.bid_count + 1
        await db.commit()
    await db.refresh(bid)
    logger.info("Bid %s on job %s by vendor %s for %s", bid.bid_id, job_id, vendor_id, bid.amount)

    await notifications.notify(
        db, job.owner_id, "New bid received",
        f"A vendor bid {bid.amount} on '{job.title}'.",
        NotificationType.BID_RECEIVED,
        {"job_id": str(job_id), "bid_id": str(bid.bid_id)},
    )
    return bid


async def accept_bid(
    db: AsyncSession, job_id: uuid.UUID, bid_id: uuid.UUID, actor_id: uuid.UUID
) -> AcceptOutcome:
    """Owner accepts one bid: hold escrow, start the job, reject the rest.

    All-or-nothing: if the owner cannot cover the bid the job stays open and
    every bid keeps its status.
    """
    async with aggregate_locks(job_id=job_id):
        job = await job_service._get_job(db, job_id, for_update=True)
        if job.owner_id != actor_id:
            raise NotAuthorized("Only the job owner can accept bids")
        if job.status != JobStatus.OPEN:
            raise JobNotOpen(job.status.value)

        bid = await _get_bid(db, bid_id, for_update=True)
        if bid.job_id != job.job_id:
            raise NotFound("Bid not found on this job")
        if bid.status not in ACTIVE_BID_STATUSES:
            raise BidNotPending(bid.status.value)

        async with aggregate_locks(account_user_ids=[job.owner_id]):
            await job_service.begin_work(db, job, bid)

            result = await db.execute(
                select(Bid)
                .where(
                    Bid.job_id == job_id,
                    Bid.bid_id != bid_id,
                    Bid.status.in_(ACTIVE_BID_STATUSES),
                )
                .with_for_update()
            )
            rejected = list(result.scalars().all())
            for sibling in rejected:
                sibling.status = BidStatus.REJECTED
            bid.status = BidStatus.ACCEPTED
            await db.commit()
    await db.refresh(job)
    await db.refresh(bid)
    logger.info(
        "Job %s: bid %s accepted, %d sibling bid(s) rejected",
        job_id, bid_id, len(rejected),
    )

    entries = [(
        bid.vendor_id, "Your bid was accepted",
        f"Your bid of {bid.amount} on '{job.title}' was accepted. The payment is held in escrow.",
        NotificationType.BID_ACCEPTED,
        {"job_id": str(job_id), "bid_id": str(bid.bid_id)},
    )]
    entries.extend(
        (
            sibling.vendor_id, "Bid not selected",
            f"The owner of '{job.title}' accepted another bid.",
            NotificationType.BID_REJECTED,
            {"job_id": str(job_id), "bid_id": str(sibling.bid_id)},
        )
        for sibling in rejected
    )
    await notifications.notify_many(db, entries)
    return AcceptOutcome(job=job, accepted_bid=bid, rejected_bids=rejected)


async def shortlist_bid(
    db: AsyncSession, bid_id: uuid.UUID, actor_id: uuid.UUID
) -> Bid:
    """Owner marks a pending bid as shortlisted."""
    bid = await _get_bid(db, bid_id)
    async with aggregate_locks(job_id=bid.job_id):
        job = await job_service._get_job(db, bid.job_id, for_update=True)
        bid = await _get_bid(db, bid_id, for_update=True)
        if job.owner_id != actor_id:
            raise NotAuthorized("Only the job owner can shortlist bids")
        if job.status != JobStatus.OPEN:
            raise JobNotOpen(job.status.value)
        if bid.status != BidStatus.PENDING:
            raise BidNotPending(bid.status.value)
        bid.status = BidStatus.SHORTLISTED
        await db.commit()
    await db.refresh(bid)

    await notifications.notify(
        db, bid.vendor_id, "You were shortlisted",
        f"Your bid on '{job.title}' was shortlisted.",
        NotificationType.BID_SHORTLISTED,
        {"job_id": str(job.job_id), "bid_id": str(bid.bid_id)},
    )
    return bid


async def withdraw_bid(
    db: AsyncSession, bid_id: uuid.UUID, actor_id: uuid.UUID
) -> Bid:
    """Vendor withdraws an active bid. bid_count still counts it."""
    bid = await _get_bid(db, bid_id)
    async with aggregate_locks(job_id=bid.job_id):
        job = await job_service._get_job(db, bid.job_id, for_update=True)
        bid = await _get_bid(db, bid_id, for_update=True)
        if bid.vendor_id != actor_id:
            raise NotAuthorized("Only the bidding vendor can withdraw this bid")
        if bid.status not in ACTIVE_BID_STATUSES:
            raise BidNotPending(bid.status.value)
        bid.status = BidStatus.WITHDRAWN
        await db.commit()
    await db.refresh(bid)
    logger.info("Bid %s withdrawn by vendor %s", bid_id, actor_id)

    await notifications.notify(
        db, job.owner_id, "Bid withdrawn",
        f"A vendor withdrew their bid on '{job.title}'.",
        NotificationType.BID_WITHDRAWN,
        {"job_id": str(job.job_id), "bid_id": str(bid.bid_id)},
    )
    return bid


async def list_bids_for_job(
    db: AsyncSession, job_id: uuid.UUID, sort: str = "recent"
) -> list[Bid]:
    """Display order only; acceptance never depends on it."""
    query = select(Bid).where(Bid.job_id == job_id)
    if sort == "price":
        query = query.order_by(Bid.amount.asc(), Bid.created_at.asc())
    else:
        query = query.order_by(Bid.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_bids_for_vendor(
    db: AsyncSession, vendor_id: uuid.UUID, limit: int = 50, offset: int = 0
) -> list[Bid]:
    result = await db.execute(
        select(Bid)
        .where(Bid.vendor_id == vendor_id)
        .order_by(Bid.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
