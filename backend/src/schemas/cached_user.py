"""Cached user representation for identity caching."""
import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.user import User


@dataclass
class CachedUser:
    """
    Lightweight user representation for identity caching.

    Avoids ORM reconstruction - just the fields the request boundary needs to
    identify the caller. Ownership checks never use it; services compare the
    caller subject against freshly loaded rows.

    WARNING: Do NOT access ORM relationships like .recipes on CachedUser.
    Those only exist on User ORM objects.
    """

    id: int
    subject: str
    email: str
    display_name: str
    is_active: bool

    @classmethod
    def from_user(cls, user: "User") -> "CachedUser":
        return cls(
            id=user.id,
            subject=user.subject,
            email=user.email,
            display_name=user.display_name,
            is_active=user.is_active,
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CachedUser":
        return cls(**json.loads(raw))
