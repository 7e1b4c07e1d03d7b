"""User model for storing authenticated users."""
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UTCDateTime, utc_now
from models.enums import SkillLevel

if TYPE_CHECKING:
    from models.recipe import Recipe


class User(Base, TimestampMixin):
    """
    User model - one row per external auth subject.

    Never hard-deleted; deactivation clears is_active. Recipes reference the
    row by id, saved links only by subject.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("recipes_created >= 0", name="ck_users_recipes_created_nonneg"),
        CheckConstraint("recipes_liked >= 0", name="ck_users_recipes_liked_nonneg"),
        CheckConstraint("followers >= 0", name="ck_users_followers_nonneg"),
        CheckConstraint("following >= 0", name="ck_users_following_nonneg"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    subject: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        comment="Stable external auth subject - unique identifier from the identity provider",
    )
    # Stored lower-cased, so the unique constraint is case-insensitive
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100))
    photo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    email_verified: Mapped[bool] = mapped_column(default=False)
    providers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    # Profile
    bio: Mapped[str] = mapped_column(String(500), default="")
    location: Mapped[str] = mapped_column(String(100), default="")
    website: Mapped[str] = mapped_column(String(200), default="")
    dietary_restrictions: Mapped[list[str]] = mapped_column(JSON, default=list)
    cuisine_preferences: Mapped[list[str]] = mapped_column(JSON, default=list)
    skill_level: Mapped[str] = mapped_column(String(20), default=SkillLevel.BEGINNER, index=True)

    # Stats - maintained incrementally by services.stats_service
    recipes_created: Mapped[int] = mapped_column(default=0, server_default="0")
    recipes_liked: Mapped[int] = mapped_column(default=0, server_default="0")
    followers: Mapped[int] = mapped_column(default=0, server_default="0")
    following: Mapped[int] = mapped_column(default=0, server_default="0")

    # Preferences
    is_public: Mapped[bool] = mapped_column(default=True)
    allow_followers: Mapped[bool] = mapped_column(default=True)
    email_notifications: Mapped[bool] = mapped_column(default=True)
    push_notifications: Mapped[bool] = mapped_column(default=True)

    is_active: Mapped[bool] = mapped_column(default=True)
    last_login_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, index=True)

    recipes: Mapped[list["Recipe"]] = relationship(back_populates="owner")

    @property
    def profile(self) -> dict[str, Any]:
        return {
            "bio": self.bio,
            "location": self.location,
            "website": self.website,
            "dietary_restrictions": self.dietary_restrictions,
            "cuisine_preferences": self.cuisine_preferences,
            "skill_level": self.skill_level,
        }

    @property
    def stats(self) -> dict[str, int]:
        return {
            "recipes_created": self.recipes_created,
            "recipes_liked": self.recipes_liked,
            "followers": self.followers,
            "following": self.following,
        }

    @property
    def preferences(self) -> dict[str, bool]:
        return {
            "is_public": self.is_public,
            "allow_followers": self.allow_followers,
            "email_notifications": self.email_notifications,
            "push_notifications": self.push_notifications,
        }
