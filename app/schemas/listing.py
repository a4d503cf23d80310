"""Pydantic v2 schemas for marketplace listings."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.listing import ListingType

_MAX_PRICE = Decimal("100000000")


class ListingCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1, max_length=10_000)
    type: ListingType
    category: str = Field(..., min_length=1, max_length=64)
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    price_type: Literal["fixed", "negotiable", "per_day", "per_month"] | None = None
    city: str | None = Field(None, max_length=128)
    state: str | None = Field(None, max_length=128)
    pincode: str | None = Field(None, pattern=r"^[0-9]{6}$")

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v >= _MAX_PRICE:
            raise ValueError("Price is too large")
        return v


class ListingUpdate(BaseModel):
    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=10_000)
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    price_type: Literal["fixed", "negotiable", "per_day", "per_month"] | None = None
    city: str | None = Field(None, max_length=128)
    state: str | None = Field(None, max_length=128)
    pincode: str | None = Field(None, pattern=r"^[0-9]{6}$")
    status: Literal["active", "hidden"] | None = None


class ListingRemoveRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=1024)


class ListingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    listing_id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    type: str
    category: str
    price: Decimal | None
    price_type: str | None
    city: str | None
    state: str | None
    pincode: str | None
    status: str
    views: int
    report_count: int
    created_at: datetime
    updated_at: datetime

    @field_validator("type", "status", mode="before")
    @classmethod
    def serialize_enum(cls, v: object) -> str:
        if hasattr(v, "value"):
            return v.value
        return str(v)
