"""FastAPI dependencies for injection."""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from schemas.cached_user import CachedUser
from services.exceptions import NotFoundError
from services.identity_service import get_cached_user

SUBJECT_HEADER = "X-User-Subject"


async def get_caller_subject(
    x_user_subject: str | None = Header(default=None, alias=SUBJECT_HEADER),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Return the authenticated caller's subject.

    Token verification happens upstream; the gateway forwards the verified
    subject in X-User-Subject. In dev mode a missing header acts as
    settings.dev_subject.
    """
    subject = (x_user_subject or "").strip()
    if subject:
        return subject
    if settings.dev_mode:
        return settings.dev_subject
    raise HTTPException(status_code=401, detail="Not authenticated")


async def get_current_user(
    subject: str = Depends(get_caller_subject),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> CachedUser:
    """
    Resolve the caller to a known, active user.

    Raises 401 for a subject with no user row (call POST /users first) and
    403 for a deactivated user.
    """
    try:
        user = await get_cached_user(db, subject, settings.identity_cache_ttl_seconds)
    except NotFoundError as e:
        raise HTTPException(status_code=401, detail="User not registered") from e
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is deactivated")
    return user


__all__ = [
    "get_async_session",
    "get_caller_subject",
    "get_current_user",
    "get_settings",
]
