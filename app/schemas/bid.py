"""Pydantic v2 schemas for bids."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import settings


class BidCreate(BaseModel):
    """Vendor bids on an open job."""
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    message: str | None = Field(None, max_length=4096)
    delivery_time: str | None = Field(None, max_length=64)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v > settings.max_bid_amount:
            raise ValueError(f"Maximum bid is {settings.max_bid_amount}")
        return v


class BidResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bid_id: uuid.UUID
    job_id: uuid.UUID
    vendor_id: uuid.UUID
    amount: Decimal
    message: str | None
    delivery_time: str | None
    status: str
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def serialize_status(cls, v: object) -> str:
        return v.value if hasattr(v, "value") else str(v)
