"""
Atomic counter mutations for recipes, users and saved links.

Every change is a single UPDATE ... RETURNING evaluated by the database, so
concurrent callers on the same row serialize there and no increment is lost.
Decrements clamp at zero. Counters never bump updated_at.
"""
import logging
from typing import Any

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import Base
from models.recipe import Recipe
from models.saved_link import SavedLink
from models.user import User

logger = logging.getLogger(__name__)


async def adjust_counter(
    db: AsyncSession,
    model: type[Base],
    field: str,
    delta: int,
    *filters: Any,
) -> int | None:
    """
    Add delta to one integer column of the row matching filters.

    Args:
        db: Database session.
        model: Mapped class owning the counter.
        field: Counter column name.
        delta: Amount to add; negative values are floored at zero.
        *filters: WHERE clauses selecting exactly one row.

    Returns:
        The new counter value, or None if no row matched.
    """
    column = getattr(model, field)
    if delta >= 0:
        new_value = column + delta
    else:
        new_value = case((column + delta < 0, 0), else_=column + delta)

    values: dict[str, Any] = {field: new_value}
    if hasattr(model, "updated_at"):
        # Keep the row's edit timestamp; a counter bump is not an edit
        values["updated_at"] = model.updated_at

    stmt = (
        update(model)
        .where(*filters)
        .values(values)
        .returning(column)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    value = result.scalar_one_or_none()
    if value is None:
        logger.debug(
            "counter_target_missing",
            extra={"table": model.__tablename__, "field": field, "delta": delta},
        )
    return value


async def record_recipe_view(db: AsyncSession, recipe_id: int) -> int | None:
    """Count one view. No per-viewer dedup."""
    return await adjust_counter(db, Recipe, "views", 1, Recipe.id == recipe_id)


async def adjust_recipe_likes(db: AsyncSession, recipe_id: int, delta: int) -> int | None:
    return await adjust_counter(db, Recipe, "likes", delta, Recipe.id == recipe_id)


async def adjust_recipe_saves(db: AsyncSession, recipe_id: int, delta: int) -> int | None:
    return await adjust_counter(db, Recipe, "saves", delta, Recipe.id == recipe_id)


async def add_recipe_rating(
    db: AsyncSession, recipe_id: int, score: int,
) -> tuple[float, int] | None:
    """
    Fold one score into the running average.

    Both new values are computed from the pre-update row in the same
    statement, so concurrent ratings cannot interleave.

    Returns:
        (rating_average, rating_count) after the update, or None if no recipe.
    """
    stmt = (
        update(Recipe)
        .where(Recipe.id == recipe_id)
        .values(
            rating_average=(Recipe.rating_average * Recipe.rating_count + score)
            / (Recipe.rating_count + 1),
            rating_count=Recipe.rating_count + 1,
            updated_at=Recipe.updated_at,
        )
        .returning(Recipe.rating_average, Recipe.rating_count)
        .execution_options(synchronize_session=False)
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        return None
    return float(row[0]), int(row[1])


async def adjust_recipes_created(db: AsyncSession, user_id: int, delta: int) -> int | None:
    return await adjust_counter(db, User, "recipes_created", delta, User.id == user_id)


async def increment_link_visits(
    db: AsyncSession, link_id: int, owner_subject: str,
) -> int | None:
    """Owner-scoped +1; a foreign link matches no row."""
    return await adjust_counter(
        db,
        SavedLink,
        "visit_count",
        1,
        SavedLink.id == link_id,
        SavedLink.owner_subject == owner_subject,
    )
