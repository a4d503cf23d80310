"""Technician profile endpoints and technician search."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.technician import (
    TechnicianProfileCreate,
    TechnicianProfileResponse,
    TechnicianProfileUpdate,
)
from app.services import technician as technician_service

router = APIRouter(tags=["technicians"], dependencies=[Depends(check_rate_limit)])


@router.get("/technicians", response_model=list[TechnicianProfileResponse])
async def list_technicians(
    category: str | None = Query(None, max_length=64),
    city: str | None = Query(None, max_length=100),
    min_rating: Decimal | None = Query(None, ge=0, le=5),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> list[TechnicianProfileResponse]:
    """Available technicians, best rated first."""
    profiles = await technician_service.list_technicians(
        db, category=category, city=city, min_rating=min_rating, limit=limit, offset=offset
    )
    return [TechnicianProfileResponse.model_validate(p) for p in profiles]


@router.get("/users/me/technician-profile", response_model=TechnicianProfileResponse)
async def get_my_profile(
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> TechnicianProfileResponse:
    profile = await technician_service.get_profile(db, auth.user_id)
    return TechnicianProfileResponse.model_validate(profile)


@router.post("/users/me/technician-profile", response_model=TechnicianProfileResponse, status_code=201)
async def create_my_profile(
    data: TechnicianProfileCreate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> TechnicianProfileResponse:
    profile = await technician_service.create_profile(db, auth.user_id, data)
    return TechnicianProfileResponse.model_validate(profile)


@router.patch("/users/me/technician-profile", response_model=TechnicianProfileResponse)
async def update_my_profile(
    data: TechnicianProfileUpdate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> TechnicianProfileResponse:
    """Rating and counters are not editable; they follow reviews and completed jobs."""
    profile = await technician_service.update_profile(db, auth.user_id, data)
    return TechnicianProfileResponse.model_validate(profile)


@router.get("/users/{user_id}/technician-profile", response_model=TechnicianProfileResponse)
async def get_profile(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> TechnicianProfileResponse:
    profile = await technician_service.get_profile(db, user_id)
    return TechnicianProfileResponse.model_validate(profile)
