"""Ledger business logic: credit, debit, hold, release, refund.

Each user owns one ``LedgerAccount`` with an available and an escrow balance.
Every balance change appends exactly one ``LedgerTransaction`` on the account
whose balance it changes; the cached balances always equal a replay of that
log (see ``replay_balances``).

The primitives (``credit``, ``debit``, ``hold``, ``release``, ``refund``)
expect accounts loaded via ``lock_account`` inside ``aggregate_locks`` and do
not commit: the caller's unit of work commits once, so a failure anywhere
leaves no partial state. ``deposit`` and ``withdraw`` are the standalone
units of work used by the wallet endpoints.
"""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InsufficientFunds, InvalidEscrowState, NotAuthorized, ValidationFailed
from app.models.job import Job  # noqa: F401  (ledger rows reference jobs)
from app.models.ledger import LedgerAccount, LedgerTransaction, TransactionType
from app.models.user import User
from app.services.locks import aggregate_locks
from app.services.report import record_admin_action

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def normalize_amount(amount: Decimal | int | str) -> Decimal:
    """Quantize to cents and reject non-positive amounts."""
    try:
        value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    except ArithmeticError:
        raise ValidationFailed(f"Invalid amount: {amount!r}")
    if value <= 0:
        raise ValidationFailed(f"Amount must be positive, got {value}")
    return value


# ---------------------------------------------------------------------------
# Account access
# ---------------------------------------------------------------------------


async def _load_account(
    db: AsyncSession, user_id: uuid.UUID, for_update: bool
) -> LedgerAccount | None:
    query = select(LedgerAccount).where(LedgerAccount.user_id == user_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def lock_account(db: AsyncSession, user_id: uuid.UUID) -> LedgerAccount:
    """Row-lock the user's account, creating it on first access."""
    account = await _load_account(db, user_id, for_update=True)
    if account is None:
        account = LedgerAccount(
            account_id=uuid.uuid4(),
            user_id=user_id,
            available_balance=ZERO,
            escrow_balance=ZERO,
        )
        db.add(account)
        await db.flush()
        logger.info("Opened ledger account %s for user %s", account.account_id, user_id)
    return account


async def get_account(db: AsyncSession, user_id: uuid.UUID) -> LedgerAccount:
    """Return the user's account (lazily created)."""
    account = await _load_account(db, user_id, for_update=False)
    if account is not None:
        return account
    async with aggregate_locks(account_user_ids=[user_id]):
        account = await lock_account(db, user_id)
        await db.commit()
    return account


# ---------------------------------------------------------------------------
# Primitives (no commit)
# ---------------------------------------------------------------------------


def _append(
    db: AsyncSession,
    account: LedgerAccount,
    tx_type: TransactionType,
    amount: Decimal,
    description: str | None,
    related_job_id: uuid.UUID | None = None,
    counterparty_account_id: uuid.UUID | None = None,
) -> LedgerTransaction:
    """Append to the immutable transaction log."""
    entry = LedgerTransaction(
        transaction_id=uuid.uuid4(),
        account_id=account.account_id,
        type=tx_type,
        amount=amount,
        description=description,
        related_job_id=related_job_id,
        counterparty_account_id=counterparty_account_id,
    )
    db.add(entry)
    return entry


async def credit(
    db: AsyncSession,
    account: LedgerAccount,
    amount: Decimal,
    description: str | None = None,
    related_job_id: uuid.UUID | None = None,
    counterparty_account_id: uuid.UUID | None = None,
) -> LedgerTransaction:
    """Increase available balance. No upper bound."""
    amount = normalize_amount(amount)
    account.available_balance = account.available_balance + amount
    logger.info("Credit %s to account %s", amount, account.account_id)
    return _append(
        db, account, TransactionType.CREDIT, amount, description,
        related_job_id, counterparty_account_id,
    )


async def debit(
    db: AsyncSession,
    account: LedgerAccount,
    amount: Decimal,
    description: str | None = None,
) -> LedgerTransaction:
    """Decrease available balance; never below zero."""
    amount = normalize_amount(amount)
    if amount > account.available_balance:
        raise InsufficientFunds(account.available_balance, amount)
    account.available_balance = account.available_balance - amount
    logger.info("Debit %s from account %s", amount, account.account_id)
    return _append(db, account, TransactionType.DEBIT, amount, description)


async def hold(
    db: AsyncSession,
    account: LedgerAccount,
    amount: Decimal,
    job_id: uuid.UUID,
    description: str | None = None,
) -> LedgerTransaction:
    """Move funds from available into escrow against a job."""
    amount = normalize_amount(amount)
    if amount > account.available_balance:
        raise InsufficientFunds(account.available_balance, amount)
    account.available_balance = account.available_balance - amount
    account.escrow_balance = account.escrow_balance + amount
    logger.info("Escrow hold %s on account %s for job %s", amount, account.account_id, job_id)
    return _append(
        db, account, TransactionType.ESCROW_HOLD, amount,
        description or f"Escrow hold for job {job_id}", job_id,
    )


async def escrow_held_for_job(
    db: AsyncSession, account: LedgerAccount, job_id: uuid.UUID
) -> Decimal:
    """Escrow still held on this account for one job, derived from the log."""
    signed = case(
        (LedgerTransaction.type == TransactionType.ESCROW_HOLD, LedgerTransaction.amount),
        else_=-LedgerTransaction.amount,
    )
    result = await db.execute(
        select(func.coalesce(func.sum(signed), 0))
        .where(LedgerTransaction.account_id == account.account_id)
        .where(LedgerTransaction.related_job_id == job_id)
        .where(
            LedgerTransaction.type.in_([
                TransactionType.ESCROW_HOLD,
                TransactionType.ESCROW_RELEASE,
                TransactionType.REFUND,
            ])
        )
    )
    return Decimal(str(result.scalar())).quantize(CENT)


async def _assert_escrow(
    db: AsyncSession, account: LedgerAccount, amount: Decimal, job_id: uuid.UUID
) -> None:
    held = await escrow_held_for_job(db, account, job_id)
    if amount > held or amount > account.escrow_balance:
        raise InvalidEscrowState(held, amount)


async def release(
    db: AsyncSession,
    account: LedgerAccount,
    amount: Decimal,
    job_id: uuid.UUID,
    destination: LedgerAccount,
    description: str | None = None,
) -> LedgerTransaction:
    """Pay escrow held for a job out to another account's available balance."""
    amount = normalize_amount(amount)
    await _assert_escrow(db, account, amount, job_id)

    account.escrow_balance = account.escrow_balance - amount
    entry = _append(
        db, account, TransactionType.ESCROW_RELEASE, amount,
        description or f"Escrow released for job {job_id}", job_id,
        destination.account_id,
    )
    await credit(
        db, destination, amount, f"Payment received for job {job_id}",
        related_job_id=job_id, counterparty_account_id=account.account_id,
    )
    logger.info(
        "Escrow release %s from account %s to %s for job %s",
        amount, account.account_id, destination.account_id, job_id,
    )
    return entry


async def refund(
    db: AsyncSession,
    account: LedgerAccount,
    amount: Decimal,
    job_id: uuid.UUID,
    description: str | None = None,
) -> LedgerTransaction:
    """Return escrow held for a job to the same account's available balance."""
    amount = normalize_amount(amount)
    await _assert_escrow(db, account, amount, job_id)

    account.escrow_balance = account.escrow_balance - amount
    account.available_balance = account.available_balance + amount
    logger.info("Escrow refund %s on account %s for job %s", amount, account.account_id, job_id)
    return _append(
        db, account, TransactionType.REFUND, amount,
        description or f"Escrow refunded for job {job_id}", job_id,
    )


# ---------------------------------------------------------------------------
# Standalone units of work
# ---------------------------------------------------------------------------


async def deposit(
    db: AsyncSession, user_id: uuid.UUID, amount: Decimal, description: str
) -> LedgerTransaction:
    """Credit the user's account and commit."""
    async with aggregate_locks(account_user_ids=[user_id]):
        account = await lock_account(db, user_id)
        entry = await credit(db, account, amount, description)
        await db.commit()
    await db.refresh(entry)
    return entry


async def withdraw(
    db: AsyncSession, user_id: uuid.UUID, amount: Decimal, description: str
) -> LedgerTransaction:
    """Debit the user's available balance and commit."""
    async with aggregate_locks(account_user_ids=[user_id]):
        account = await lock_account(db, user_id)
        entry = await debit(db, account, amount, description)
        await db.commit()
    await db.refresh(entry)
    return entry


async def admin_credit(
    db: AsyncSession,
    user_id: uuid.UUID,
    amount: Decimal,
    description: str,
    actor: User,
) -> LedgerTransaction:
    """Manual credit by an admin, audited alongside the ledger row."""
    if not actor.is_admin:
        raise NotAuthorized("Admin role required")
    async with aggregate_locks(account_user_ids=[user_id]):
        account = await lock_account(db, user_id)
        entry = await credit(db, account, amount, description)
        record_admin_action(
            db, actor.user_id, "wallet.credited", "user", user_id,
            {"amount": str(entry.amount), "description": description},
        )
        await db.commit()
    await db.refresh(entry)
    logger.info("Admin %s credited %s to %s", actor.user_id, entry.amount, user_id)
    return entry


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------


_REPLAY_EFFECTS: dict[TransactionType, tuple[int, int]] = {
    # (available delta sign, escrow delta sign)
    TransactionType.CREDIT: (1, 0),
    TransactionType.DEBIT: (-1, 0),
    TransactionType.ESCROW_HOLD: (-1, 1),
    TransactionType.REFUND: (1, -1),
    TransactionType.ESCROW_RELEASE: (0, -1),
}


async def replay_balances(
    db: AsyncSession, account: LedgerAccount
) -> tuple[Decimal, Decimal]:
    """Derive (available, escrow) purely from the transaction log."""
    result = await db.execute(
        select(LedgerTransaction.type, LedgerTransaction.amount)
        .where(LedgerTransaction.account_id == account.account_id)
    )
    available = ZERO
    escrow = ZERO
    for tx_type, amount in result:
        avail_sign, escrow_sign = _REPLAY_EFFECTS[tx_type]
        available += avail_sign * amount
        escrow += escrow_sign * amount
    return available.quantize(CENT), escrow.quantize(CENT)


async def list_transactions(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 50, offset: int = 0
) -> list[LedgerTransaction]:
    """Newest first."""
    account = await get_account(db, user_id)
    result = await db.execute(
        select(LedgerTransaction)
        .where(LedgerTransaction.account_id == account.account_id)
        .order_by(LedgerTransaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
