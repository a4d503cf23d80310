"""Pydantic v2 schemas for Job lifecycle endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.config import settings
from app.schemas.bid import BidResponse


class JobCreate(BaseModel):
    """Owner posts a job."""
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1, max_length=10_000)
    category: str = Field(..., min_length=1, max_length=64)
    budget_min: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    budget_max: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    city: str | None = Field(None, max_length=128)
    urgency: Literal["low", "normal", "urgent"] = "normal"

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def validate_budget_range(self) -> "JobCreate":
        for value in (self.budget_min, self.budget_max):
            if value is not None and value > settings.max_job_budget:
                raise ValueError(f"Maximum budget is {settings.max_job_budget}")
        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_min > self.budget_max
        ):
            raise ValueError("budget_min cannot exceed budget_max")
        return self


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    category: str
    budget_min: Decimal | None
    budget_max: Decimal | None
    city: str | None
    urgency: str
    status: str
    assigned_vendor_id: uuid.UUID | None
    accepted_bid_id: uuid.UUID | None
    bid_count: int
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def serialize_status(cls, v: object) -> str:
        if hasattr(v, "value"):
            return v.value
        return str(v)


class AcceptBidResponse(BaseModel):
    job: JobResponse
    accepted_bid: BidResponse


class CompleteJobResponse(BaseModel):
    job: JobResponse
    released_amount: Decimal


class CancelJobResponse(BaseModel):
    job: JobResponse
    refunded_amount: Decimal | None = None
