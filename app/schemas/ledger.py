"""Pydantic v2 schemas for wallet / ledger endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import settings


class WalletResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: uuid.UUID
    user_id: uuid.UUID
    available_balance: Decimal
    escrow_balance: Decimal


class DepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class WithdrawRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v < settings.min_withdrawal_amount:
            raise ValueError(f"Minimum withdrawal is {settings.min_withdrawal_amount}")
        return v


class AdminCreditRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str = Field(..., min_length=3, max_length=512)


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: uuid.UUID
    account_id: uuid.UUID
    type: str
    amount: Decimal
    description: str | None
    related_job_id: uuid.UUID | None
    counterparty_account_id: uuid.UUID | None
    created_at: datetime

    @field_validator("type", mode="before")
    @classmethod
    def serialize_type(cls, v: object) -> str:
        return v.value if hasattr(v, "value") else str(v)
