"""Ledger account and append-only transaction log models."""

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TransactionType(enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    REFUND = "refund"
    ESCROW_HOLD = "escrow_hold"
    ESCROW_RELEASE = "escrow_release"


class LedgerAccount(Base):
    """Cached balances. Always equal to a replay of the account's transactions."""
    __tablename__ = "ledger_accounts"
    __table_args__ = (
        CheckConstraint("available_balance >= 0", name="ck_ledger_accounts_available"),
        CheckConstraint("escrow_balance >= 0", name="ck_ledger_accounts_escrow"),
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.user_id", ondelete="RESTRICT"), unique=True, nullable=False
    )
    available_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    escrow_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


class LedgerTransaction(Base):
    """Append-only. Never update or delete rows."""
    __tablename__ = "ledger_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_ledger_transactions_amount"),
    )

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ledger_accounts.account_id", ondelete="RESTRICT"),
        nullable=False, index=True,
    )
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    related_job_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("jobs.job_id", ondelete="RESTRICT"), nullable=True, index=True
    )
    counterparty_account_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("ledger_accounts.account_id", ondelete="RESTRICT"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
