"""Service layer for user profile, preferences and lifecycle."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utc_now
from models.user import User
from schemas.user import PreferencesUpdate, ProfileUpdate
from services.exceptions import NotFoundError
from services.identity_service import drop_cached_user

logger = logging.getLogger(__name__)


async def find_user_by_subject(db: AsyncSession, subject: str) -> User | None:
    return await db.scalar(select(User).where(User.subject == subject))


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def get_user_by_subject(db: AsyncSession, subject: str) -> User:
    """Get a user by auth subject, active or not."""
    user = await find_user_by_subject(db, subject)
    if user is None:
        raise NotFoundError("User", subject)
    return user


async def get_active_user(db: AsyncSession, subject: str) -> User:
    """Get a user that may author content; deactivated users count as absent."""
    user = await get_user_by_subject(db, subject)
    if not user.is_active:
        raise NotFoundError("User", subject)
    return user


async def list_users(db: AsyncSession, offset: int = 0, limit: int = 50) -> list[User]:
    """List users, newest first."""
    result = await db.execute(
        select(User).order_by(User.created_at.desc()).offset(offset).limit(limit),
    )
    return list(result.scalars().all())


async def update_profile(db: AsyncSession, subject: str, data: ProfileUpdate) -> User:
    """Apply a partial profile update; unset fields are left untouched."""
    user = await get_user_by_subject(db, subject)
    for field, value in data.model_dump(exclude_unset=True, mode="json").items():
        if value is None:
            continue
        if field in ("dietary_restrictions", "cuisine_preferences"):
            value = list(dict.fromkeys(value))
        setattr(user, field, value)
    await db.flush()
    return user


async def update_preferences(db: AsyncSession, subject: str, data: PreferencesUpdate) -> User:
    user = await get_user_by_subject(db, subject)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    await db.flush()
    return user


async def record_login(db: AsyncSession, subject: str) -> User:
    user = await get_user_by_subject(db, subject)
    user.last_login_at = utc_now()
    await db.flush()
    return user


async def deactivate_user(db: AsyncSession, subject: str) -> User:
    """Soft-delete: users are never removed, only marked inactive."""
    user = await get_user_by_subject(db, subject)
    user.is_active = False
    await db.flush()
    await drop_cached_user(db, subject)
    logger.info("user_deactivated", extra={"user_id": user.id})
    return user
