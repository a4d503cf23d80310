"""Pydantic v2 schemas for reports and moderation."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.report import ReportTarget


class ReportCreate(BaseModel):
    target_type: ReportTarget
    target_id: uuid.UUID
    reason: str = Field(..., min_length=3, max_length=256)
    description: str | None = Field(None, max_length=4096)


class ReportResolve(BaseModel):
    outcome: Literal["resolved", "dismissed"]
    resolution: str | None = Field(None, max_length=4096)


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    report_id: uuid.UUID
    reporter_id: uuid.UUID
    target_type: str
    target_id: uuid.UUID
    reason: str
    description: str | None
    status: str
    resolution: str | None
    resolved_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    @field_validator("status", "target_type", mode="before")
    @classmethod
    def serialize_enum(cls, v: object) -> str:
        return v.value if hasattr(v, "value") else str(v)
