"""Recipe model and its tag rows."""
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UTCDateTime
from models.enums import DietaryFlag, Difficulty, RecipeStatus

if TYPE_CHECKING:
    from models.user import User


class RecipeTag(Base):
    """A single tag on a recipe. Tags are lower-cased free-form strings."""

    __tablename__ = "recipe_tags"
    __table_args__ = (
        UniqueConstraint("recipe_id", "name", name="uq_recipe_tags_recipe_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    recipe_id: Mapped[int] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), index=True)


class Recipe(Base, TimestampMixin):
    """
    A user-authored recipe.

    owner_subject duplicates the owner's auth subject so ownership checks do
    not need a join. total_minutes is derived from prep + cook on every write.
    """

    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_owner_status", "owner_id", "status"),
        Index("ix_recipes_category_cuisine", "category", "cuisine"),
        Index("ix_recipes_status_public_published", "status", "is_public", "published_at"),
        CheckConstraint("servings >= 1 AND servings <= 50", name="ck_recipes_servings_range"),
        CheckConstraint("prep_minutes >= 0 AND cook_minutes >= 0", name="ck_recipes_time_nonneg"),
        CheckConstraint("views >= 0", name="ck_recipes_views_nonneg"),
        CheckConstraint("likes >= 0", name="ck_recipes_likes_nonneg"),
        CheckConstraint("saves >= 0", name="ck_recipes_saves_nonneg"),
        CheckConstraint("comments >= 0", name="ck_recipes_comments_nonneg"),
        CheckConstraint(
            "rating_average >= 0 AND rating_average <= 5",
            name="ck_recipes_rating_average_range",
        ),
        CheckConstraint("rating_count >= 0", name="ck_recipes_rating_count_nonneg"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    owner_subject: Mapped[str] = mapped_column(String(255), index=True)

    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(String(1000))
    ingredients: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    instructions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    images: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    category: Mapped[str] = mapped_column(String(20), index=True)
    cuisine: Mapped[str] = mapped_column(String(20), index=True)
    difficulty: Mapped[str] = mapped_column(String(10), default=Difficulty.MEDIUM, index=True)

    prep_minutes: Mapped[int] = mapped_column(default=0)
    cook_minutes: Mapped[int] = mapped_column(default=0)
    total_minutes: Mapped[int] = mapped_column(default=0, index=True)
    servings: Mapped[int]

    # Independent flags; combinations are stored as given
    is_vegetarian: Mapped[bool] = mapped_column(default=False)
    is_vegan: Mapped[bool] = mapped_column(default=False)
    is_gluten_free: Mapped[bool] = mapped_column(default=False)
    is_dairy_free: Mapped[bool] = mapped_column(default=False)
    is_nut_free: Mapped[bool] = mapped_column(default=False)
    is_keto: Mapped[bool] = mapped_column(default=False)
    is_paleo: Mapped[bool] = mapped_column(default=False)

    nutrition: Mapped[dict[str, float] | None] = mapped_column(JSON, nullable=True)

    # Stats - maintained incrementally by services.stats_service
    views: Mapped[int] = mapped_column(default=0, server_default="0")
    likes: Mapped[int] = mapped_column(default=0, server_default="0", index=True)
    saves: Mapped[int] = mapped_column(default=0, server_default="0")
    comments: Mapped[int] = mapped_column(default=0, server_default="0")
    rating_average: Mapped[float] = mapped_column(
        Float, default=0.0, server_default="0", index=True,
    )
    rating_count: Mapped[int] = mapped_column(default=0, server_default="0")

    status: Mapped[str] = mapped_column(String(20), default=RecipeStatus.DRAFT, index=True)
    is_public: Mapped[bool] = mapped_column(default=True, index=True)
    # Set once on the first publish, never cleared
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)

    owner: Mapped["User"] = relationship(back_populates="recipes", lazy="joined", innerjoin=True)
    tag_rows: Mapped[list[RecipeTag]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=RecipeTag.id,
    )

    @property
    def tags(self) -> list[str]:
        return [row.name for row in self.tag_rows]

    def set_tags(self, names: list[str]) -> None:
        """Replace tags, keeping rows whose name survives so unique keys never collide."""
        wanted = list(dict.fromkeys(names))
        kept = [row for row in self.tag_rows if row.name in wanted]
        existing = {row.name for row in kept}
        self.tag_rows = kept + [RecipeTag(name=name) for name in wanted if name not in existing]

    def recompute_total(self) -> None:
        self.total_minutes = self.prep_minutes + self.cook_minutes

    @property
    def cooking_time(self) -> dict[str, int]:
        return {"prep": self.prep_minutes, "cook": self.cook_minutes, "total": self.total_minutes}

    @property
    def dietary_info(self) -> dict[str, bool]:
        return {flag.column_name: getattr(self, flag.column_name) for flag in DietaryFlag}

    @property
    def stats(self) -> dict[str, int | float]:
        return {
            "views": self.views,
            "likes": self.likes,
            "saves": self.saves,
            "comments": self.comments,
            "rating_average": self.rating_average,
            "rating_count": self.rating_count,
        }
