"""Job lifecycle business logic.

    open ──accept──▶ in_progress ──complete──▶ completed
      │                  │
      └──cancel──▶ cancelled ◀──cancel──┘

Accepting a bid holds the bid amount in the owner's escrow; completion
releases the held amount to the vendor; cancelling an in-progress job refunds
it to the owner.
"""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidEscrowState, InvalidJobState, NotAuthorized, NotFound
from app.models.bid import ACTIVE_BID_STATUSES, Bid, BidStatus
from app.models.job import VALID_TRANSITIONS, Job, JobStatus
from app.schemas.job import JobCreate
from app.services import ledger
from app.services import notifications
from app.services import technician
from app.services.locks import aggregate_locks
from app.services.notifications import NotificationType

logger = logging.getLogger(__name__)


@dataclass
class CompletionOutcome:
    job: Job
    released_amount: Decimal


@dataclass
class CancellationOutcome:
    job: Job
    refunded_amount: Decimal | None = None
    rejected_bids: list[Bid] = field(default_factory=list)


def _assert_transition(current: JobStatus, target: JobStatus) -> None:
    """Raise InvalidJobState if the state transition is not valid."""
    if target not in VALID_TRANSITIONS.get(current, set()):
        raise InvalidJobState(current.value, target.value)


def _assert_owner(job: Job, actor_id: uuid.UUID, action: str) -> None:
    if job.owner_id != actor_id:
        raise NotAuthorized(f"Only the job owner can {action}")


async def _get_job(
    db: AsyncSession, job_id: uuid.UUID, for_update: bool = False
) -> Job:
    query = select(Job).where(Job.job_id == job_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFound("Job not found")
    return job


async def create_job(db: AsyncSession, owner_id: uuid.UUID, data: JobCreate) -> Job:
    """Owner posts a new job, open for bids."""
    job = Job(
        job_id=uuid.uuid4(),
        owner_id=owner_id,
        title=data.title,
        description=data.description,
        category=data.category,
        budget_min=data.budget_min,
        budget_max=data.budget_max,
        city=data.city,
        urgency=data.urgency,
        status=JobStatus.OPEN,
        bid_count=0,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    logger.info("Job %s posted by %s", job.job_id, owner_id)
    return job


async def get_job(db: AsyncSession, job_id: uuid.UUID) -> Job:
    """Get job by ID (public)."""
    return await _get_job(db, job_id)


async def list_jobs(
    db: AsyncSession,
    status: JobStatus | None = None,
    category: str | None = None,
    owner_id: uuid.UUID | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Job]:
    query = select(Job)
    if status is not None:
        query = query.where(Job.status == status)
    if category:
        query = query.where(Job.category == category.strip().lower())
    if owner_id is not None:
        query = query.where(Job.owner_id == owner_id)
    result = await db.execute(
        query.order_by(Job.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def begin_work(db: AsyncSession, job: Job, bid: Bid) -> None:
    """open → in_progress for an accepted bid, holding its amount in escrow.

    Caller holds the job lock and the owner's account lock. The hold runs
    before any job field changes, so InsufficientFunds leaves the job open.
    """
    _assert_transition(job.status, JobStatus.IN_PROGRESS)
    owner_account = await ledger.lock_account(db, job.owner_id)
    await ledger.hold(
        db, owner_account, bid.amount, job.job_id,
        f"Escrow for job '{job.title}'",
    )
    job.status = JobStatus.IN_PROGRESS
    job.assigned_vendor_id = bid.vendor_id
    job.accepted_bid_id = bid.bid_id


async def complete_job(
    db: AsyncSession, job_id: uuid.UUID, actor_id: uuid.UUID
) -> CompletionOutcome:
    """Owner marks an in-progress job done; held escrow goes to the vendor."""
    async with aggregate_locks(job_id=job_id):
        job = await _get_job(db, job_id, for_update=True)
        _assert_owner(job, actor_id, "complete this job")
        _assert_transition(job.status, JobStatus.COMPLETED)
        vendor_id = job.assigned_vendor_id
        if vendor_id is None:
            raise InvalidJobState(job.status.value, JobStatus.COMPLETED.value)

        async with aggregate_locks(account_user_ids=[job.owner_id, vendor_id]):
            owner_account = await ledger.lock_account(db, job.owner_id)
            vendor_account = await ledger.lock_account(db, vendor_id)
            held = await ledger.escrow_held_for_job(db, owner_account, job.job_id)
            if held <= 0:
                raise InvalidEscrowState(held, held)
            await ledger.release(
                db, owner_account, held, job.job_id, vendor_account,
                f"Payment for job '{job.title}'",
            )
            await technician.record_completed_job(db, vendor_id)
            job.status = JobStatus.COMPLETED
            await db.commit()
    await db.refresh(job)
    logger.info("Job %s completed, released %s to %s", job_id, held, vendor_id)

    await notifications.notify_many(db, [
        (
            vendor_id, "Payment received",
            f"The owner marked '{job.title}' complete. {held} was added to your wallet.",
            NotificationType.PAYMENT_RECEIVED,
            {"job_id": str(job.job_id), "amount": str(held)},
        ),
        (
            job.owner_id, "Job completed",
            f"'{job.title}' is complete and the vendor has been paid. Leave them a review.",
            NotificationType.JOB_COMPLETED,
            {"job_id": str(job.job_id)},
        ),
    ])
    return CompletionOutcome(job=job, released_amount=held)


async def cancel_job(
    db: AsyncSession, job_id: uuid.UUID, actor_id: uuid.UUID
) -> CancellationOutcome:
    """Owner cancels. Open jobs reject their bids; in-progress jobs refund escrow."""
    async with aggregate_locks(job_id=job_id):
        job = await _get_job(db, job_id, for_update=True)
        _assert_owner(job, actor_id, "cancel this job")
        previous = job.status
        _assert_transition(previous, JobStatus.CANCELLED)

        outcome = CancellationOutcome(job=job)
        if previous == JobStatus.IN_PROGRESS:
            async with aggregate_locks(account_user_ids=[job.owner_id]):
                owner_account = await ledger.lock_account(db, job.owner_id)
                held = await ledger.escrow_held_for_job(db, owner_account, job.job_id)
                if held > 0:
                    await ledger.refund(
                        db, owner_account, held, job.job_id,
                        f"Refund for cancelled job '{job.title}'",
                    )
                    outcome.refunded_amount = held
                job.status = JobStatus.CANCELLED
                await db.commit()
        else:
            result = await db.execute(
                select(Bid)
                .where(Bid.job_id == job.job_id, Bid.status.in_(ACTIVE_BID_STATUSES))
                .with_for_update()
            )
            outcome.rejected_bids = list(result.scalars().all())
            for bid in outcome.rejected_bids:
                bid.status = BidStatus.REJECTED
            job.status = JobStatus.CANCELLED
            await db.commit()
    await db.refresh(job)
    logger.info("Job %s cancelled from %s (refund: %s)", job_id, previous.value, outcome.refunded_amount)

    entries = [
        (
            bid.vendor_id, "Job cancelled",
            f"'{job.title}' was cancelled by the owner. Your bid was closed.",
            NotificationType.JOB_CANCELLED, {"job_id": str(job.job_id), "bid_id": str(bid.bid_id)},
        )
        for bid in outcome.rejected_bids
    ]
    if previous == JobStatus.IN_PROGRESS and job.assigned_vendor_id is not None:
        entries.append((
            job.assigned_vendor_id, "Job cancelled",
            f"'{job.title}' was cancelled by the owner.",
            NotificationType.JOB_CANCELLED, {"job_id": str(job.job_id)},
        ))
    await notifications.notify_many(db, entries)
    return outcome
