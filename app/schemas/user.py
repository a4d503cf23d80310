"""Pydantic v2 schemas for users and sessions."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.user import UserRole

_EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)


class DevLoginRequest(BaseModel):
    """Stand-in for the OAuth callback: upsert by email and mint a session."""
    email: str = Field(..., max_length=320)
    name: str = Field(..., min_length=1, max_length=128)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v


class SessionResponse(BaseModel):
    user_id: uuid.UUID
    token: str
    role: str


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    phone: str | None = Field(None, max_length=20, pattern=r"^\+?[0-9 \-]{6,20}$")
    city: str | None = Field(None, max_length=128)


class BanRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=1024)


class RoleChangeRequest(BaseModel):
    role: UserRole


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    email: str
    name: str
    phone: str | None
    city: str | None
    role: str
    is_online: bool
    is_banned: bool
    ban_reason: str | None
    created_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def serialize_role(cls, v: object) -> str:
        return v.value if hasattr(v, "value") else str(v)
