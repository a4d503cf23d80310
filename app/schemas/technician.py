"""Pydantic v2 schemas for technician profiles."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_tags(values: list[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        tag = value.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class TechnicianProfileCreate(BaseModel):
    headline: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=4096)
    skills: list[str] = Field(default_factory=list, max_length=30)
    categories: list[str] = Field(default_factory=list, max_length=10)
    experience_years: int = Field(0, ge=0, le=70)
    daily_rate: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    hourly_rate: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    is_available: bool = True

    @field_validator("skills", "categories")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class TechnicianProfileUpdate(BaseModel):
    headline: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=4096)
    skills: list[str] | None = Field(None, max_length=30)
    categories: list[str] | None = Field(None, max_length=10)
    experience_years: int | None = Field(None, ge=0, le=70)
    daily_rate: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    hourly_rate: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    is_available: bool | None = None

    @field_validator("skills", "categories")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else _normalize_tags(v)


class TechnicianProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_id: uuid.UUID
    user_id: uuid.UUID
    headline: str | None
    bio: str | None
    skills: list[str]
    categories: list[str]
    experience_years: int
    daily_rate: Decimal | None
    hourly_rate: Decimal | None
    rating: Decimal
    total_reviews: int
    completed_jobs: int
    is_available: bool
    created_at: datetime
    updated_at: datetime
