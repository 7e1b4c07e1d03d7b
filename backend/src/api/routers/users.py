"""User identity, profile and preference endpoints."""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_caller_subject, get_current_user
from schemas.cached_user import CachedUser
from schemas.user import (
    IdentityHints,
    PreferencesUpdate,
    ProfileUpdate,
    ResolveIdentityResponse,
    UserResponse,
)
from services import identity_service, user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=ResolveIdentityResponse)
async def resolve_identity(
    hints: IdentityHints,
    response: Response,
    subject: str = Depends(get_caller_subject),
    db: AsyncSession = Depends(get_async_session),
) -> ResolveIdentityResponse:
    """
    Create or refresh the caller's user from identity-provider hints.

    Returns 201 when the user was created, 200 when it already existed.
    """
    user, created = await identity_service.resolve_identity(db, subject, hints)
    response.status_code = 201 if created else 200
    return ResolveIdentityResponse(user=UserResponse.model_validate(user), created=created)


@router.get("/", response_model=list[UserResponse])
async def list_users(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    _: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[UserResponse]:
    """List users, newest first."""
    users = await user_service.list_users(db, offset, limit)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    user = await user_service.get_user_by_subject(db, current_user.subject)
    return UserResponse.model_validate(user)


@router.patch("/me/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Partially update the caller's profile."""
    user = await user_service.update_profile(db, current_user.subject, data)
    return UserResponse.model_validate(user)


@router.patch("/me/preferences", response_model=UserResponse)
async def update_preferences(
    data: PreferencesUpdate,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    user = await user_service.update_preferences(db, current_user.subject, data)
    return UserResponse.model_validate(user)


@router.post("/me/login", response_model=UserResponse)
async def record_login(
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Refresh the caller's last_login_at."""
    user = await user_service.record_login(db, current_user.subject)
    return UserResponse.model_validate(user)


@router.delete("/me", status_code=204)
async def deactivate_me(
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Deactivate the caller. The user row and its recipes are kept."""
    await user_service.deactivate_user(db, current_user.subject)


@router.get("/{subject}", response_model=UserResponse)
async def get_user(
    subject: str,
    _: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Get an active user by auth subject."""
    user = await user_service.get_active_user(db, subject)
    return UserResponse.model_validate(user)
