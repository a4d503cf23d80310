"""Sign-in and profile endpoints."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import AuthenticatedUser, verify_session
from app.auth.rate_limit import check_rate_limit
from app.config import settings
from app.database import get_db
from app.schemas.review import RatingSummary, ReviewResponse
from app.schemas.user import DevLoginRequest, SessionResponse, UserResponse, UserUpdate
from app.services import review as review_service
from app.services import user as user_service
from app.utils.crypto import issue_session_token

router = APIRouter(tags=["users"])


@router.post("/auth/dev-login", response_model=SessionResponse, dependencies=[Depends(check_rate_limit)])
async def dev_login(
    data: DevLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Mint a session for an email without the OAuth round trip. Development only."""
    if not (settings.dev_login_enabled and settings.dev_endpoints_allowed):
        raise HTTPException(status_code=404, detail="Not found")
    user = await user_service.upsert_user(db, data.email, data.name, data.role)
    if user.is_banned:
        raise HTTPException(status_code=403, detail="User is banned")
    return SessionResponse(
        user_id=user.user_id,
        token=issue_session_token(user.user_id),
        role=user.role.value,
    )


@router.get("/users/me", response_model=UserResponse, dependencies=[Depends(check_rate_limit)])
async def get_me(
    auth: AuthenticatedUser = Depends(verify_session),
) -> UserResponse:
    return UserResponse.model_validate(auth.user)


@router.patch("/users/me", response_model=UserResponse, dependencies=[Depends(check_rate_limit)])
async def update_me(
    data: UserUpdate,
    auth: AuthenticatedUser = Depends(verify_session),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.update_profile(db, auth.user, data)
    return UserResponse.model_validate(user)


@router.get(
    "/users/{user_id}/reviews",
    response_model=list[ReviewResponse],
    dependencies=[Depends(check_rate_limit)],
)
async def get_user_reviews(
    user_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> list[ReviewResponse]:
    """Reviews the user received, newest first."""
    reviews = await review_service.get_reviews_for_user(db, user_id, limit, offset)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.get(
    "/users/{user_id}/rating",
    response_model=RatingSummary,
    dependencies=[Depends(check_rate_limit)],
)
async def get_user_rating(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> RatingSummary:
    return await review_service.get_rating_summary(db, user_id)
