"""Maps external auth subjects to User rows, with a Redis-backed identity cache."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import get_redis_client
from db.session import after_commit
from models.base import utc_now
from models.user import User
from schemas.cached_user import CachedUser
from schemas.user import IdentityHints
from services.exceptions import ConflictError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300
MAX_DISPLAY_NAME_LENGTH = 100


def _cache_key(subject: str) -> str:
    return f"user:subject:{subject}"


def _normalize_email(email: str | None) -> str:
    normalized = (email or "").strip().lower()
    if not normalized:
        raise InvalidRequestError("email is required")
    local, _, domain = normalized.partition("@")
    if not local or not domain:
        raise InvalidRequestError(f"Invalid email address: '{normalized}'")
    return normalized


async def resolve_identity(
    db: AsyncSession,
    subject: str | None,
    hints: IdentityHints,
) -> tuple[User, bool]:
    """
    Create or refresh the User for an authenticated subject.

    Existing users get the hints applied and last_login_at refreshed; new
    users get a display name defaulting to the email's local part.

    Args:
        db: Database session.
        subject: External auth subject.
        hints: Profile data reported by the identity provider.

    Returns:
        Tuple of (user, created).

    Raises:
        InvalidRequestError: If subject or email is missing or malformed.
        ConflictError: If the email belongs to another subject.
    """
    subject = (subject or "").strip()
    if not subject:
        raise InvalidRequestError("subject is required")
    email = _normalize_email(hints.email)

    owner_of_email = await db.scalar(
        select(User.subject).where(User.email == email, User.subject != subject),
    )
    if owner_of_email is not None:
        raise ConflictError("A user with this email already exists")

    providers = (
        [provider.model_dump(mode="json") for provider in hints.providers]
        if hints.providers is not None
        else None
    )
    user = await db.scalar(select(User).where(User.subject == subject))
    created = user is None
    if user is None:
        user = User(
            subject=subject,
            email=email,
            display_name=hints.display_name or email.split("@")[0][:MAX_DISPLAY_NAME_LENGTH],
            photo_url=hints.photo_url,
            email_verified=bool(hints.email_verified),
            providers=providers or [],
        )
        db.add(user)
    else:
        user.email = email
        if hints.display_name:
            user.display_name = hints.display_name
        if hints.photo_url:
            user.photo_url = hints.photo_url
        if hints.email_verified is not None:
            user.email_verified = hints.email_verified
        if providers is not None:
            user.providers = providers
        user.last_login_at = utc_now()

    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent resolve for the same subject or email
        raise ConflictError("A user with this email or subject already exists") from e

    await drop_cached_user(db, subject)
    logger.info("identity_resolved", extra={"user_id": user.id, "is_new_user": created})
    return user, created


async def get_cached_user(
    db: AsyncSession,
    subject: str,
    cache_ttl: int = DEFAULT_CACHE_TTL,
) -> CachedUser:
    """
    Look up the caller's identity, Redis first, then the database.

    Raises:
        NotFoundError: If no user has this subject.
    """
    redis_client = get_redis_client()
    if redis_client is not None:
        raw = await redis_client.get(_cache_key(subject))
        if raw is not None:
            return CachedUser.from_json(raw)

    user = await db.scalar(select(User).where(User.subject == subject))
    if user is None:
        raise NotFoundError("User", subject)
    cached = CachedUser.from_user(user)
    if redis_client is not None:
        await redis_client.setex(_cache_key(subject), cache_ttl, cached.to_json())
    return cached


async def invalidate_cached_user(subject: str) -> None:
    """Drop the cached identity; a no-op when Redis is unavailable."""
    redis_client = get_redis_client()
    if redis_client is not None:
        await redis_client.delete(_cache_key(subject))


async def drop_cached_user(db: AsyncSession, subject: str) -> None:
    """
    Invalidate the cached identity for a user changed in this unit of work.

    The entry is dropped now and again after commit: a lookup that races the
    commit can re-cache the old row, and the second delete clears it.
    """
    await invalidate_cached_user(subject)
    after_commit(db, lambda: invalidate_cached_user(subject))
