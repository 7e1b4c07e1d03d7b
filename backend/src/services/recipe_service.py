"""Service layer for recipe authoring, lifecycle and social counters."""
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utc_now
from models.enums import DietaryFlag, RecipeStatus
from models.recipe import Recipe
from schemas.recipe import RecipeCreate, RecipeUpdate
from services import stats_service, user_service
from services.exceptions import ForbiddenError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

_SIMPLE_FIELDS = (
    "title",
    "description",
    "ingredients",
    "instructions",
    "images",
    "servings",
    "category",
    "cuisine",
    "difficulty",
    "is_public",
)


def _apply_fields(recipe: Recipe, data: dict[str, Any]) -> None:
    """
    Copy validated payload fields onto the recipe.

    None means "not provided" for every field. The total cooking time is
    always recomputed from prep + cook, whatever the payload said.
    """
    for field in _SIMPLE_FIELDS:
        if data.get(field) is not None:
            setattr(recipe, field, data[field])

    cooking_time = data.get("cooking_time") or {}
    if cooking_time.get("prep") is not None:
        recipe.prep_minutes = cooking_time["prep"]
    if cooking_time.get("cook") is not None:
        recipe.cook_minutes = cooking_time["cook"]
    recipe.recompute_total()

    dietary_info = data.get("dietary_info")
    if dietary_info is not None:
        for flag in DietaryFlag:
            setattr(recipe, flag.column_name, bool(dietary_info.get(flag.column_name, False)))

    nutrition = data.get("nutrition")
    if nutrition is not None:
        recipe.nutrition = {key: value for key, value in nutrition.items() if value is not None}

    if data.get("tags") is not None:
        recipe.set_tags(data["tags"])


async def _load_recipe(
    db: AsyncSession, recipe_id: int, for_update: bool = False,
) -> Recipe:
    """Load a recipe fresh from the database (never from the identity map)."""
    recipe = await db.get(
        Recipe,
        recipe_id,
        populate_existing=True,
        with_for_update={"of": Recipe} if for_update else None,
    )
    if recipe is None:
        raise NotFoundError("Recipe", recipe_id)
    return recipe


async def _get_owned_recipe(
    db: AsyncSession, recipe_id: int, caller_subject: str, action: str,
) -> Recipe:
    """
    Load and row-lock a recipe, then check the caller owns it.

    The check runs on every call against the freshly loaded row.

    Raises:
        NotFoundError: If the recipe does not exist.
        ForbiddenError: If caller_subject is not the owner subject.
    """
    recipe = await _load_recipe(db, recipe_id, for_update=True)
    if recipe.owner_subject != caller_subject:
        logger.info(
            "recipe_ownership_denied",
            extra={"recipe_id": recipe_id, "action": action},
        )
        raise ForbiddenError(action)
    return recipe


async def create_recipe(db: AsyncSession, owner_subject: str, data: RecipeCreate) -> Recipe:
    """
    Create a draft recipe owned by owner_subject.

    The owner's recipes_created counter is bumped in the same transaction.

    Raises:
        NotFoundError: If the owner does not exist or is deactivated.
    """
    owner = await user_service.get_active_user(db, owner_subject)
    recipe = Recipe(
        owner=owner,
        owner_subject=owner.subject,
        status=RecipeStatus.DRAFT,
        nutrition={},
    )
    _apply_fields(recipe, data.model_dump(mode="json"))
    db.add(recipe)
    await db.flush()
    await stats_service.adjust_recipes_created(db, owner.id, 1)
    logger.info("recipe_created", extra={"recipe_id": recipe.id, "owner_id": owner.id})
    return recipe


async def get_recipe(db: AsyncSession, recipe_id: int) -> Recipe:
    """
    Fetch a recipe and count the view.

    Every successful fetch adds one view; there is no per-viewer dedup.
    """
    views = await stats_service.record_recipe_view(db, recipe_id)
    if views is None:
        raise NotFoundError("Recipe", recipe_id)
    return await _load_recipe(db, recipe_id)


async def update_recipe(
    db: AsyncSession, recipe_id: int, caller_subject: str, data: RecipeUpdate,
) -> Recipe:
    """Apply a partial content update. Owner, stats and status are not updatable here."""
    recipe = await _get_owned_recipe(db, recipe_id, caller_subject, "update")
    _apply_fields(recipe, data.model_dump(exclude_unset=True, mode="json"))
    await db.flush()
    return recipe


def _check_not_archived(recipe: Recipe, action: str) -> None:
    if recipe.status == RecipeStatus.ARCHIVED:
        raise InvalidRequestError(f"Cannot {action} an archived recipe")


async def publish_recipe(db: AsyncSession, recipe_id: int, caller_subject: str) -> Recipe:
    """
    Publish a recipe. Idempotent.

    published_at is set only the first time; later publishes keep it.
    """
    recipe = await _get_owned_recipe(db, recipe_id, caller_subject, "publish")
    _check_not_archived(recipe, "publish")
    if recipe.status != RecipeStatus.PUBLISHED:
        recipe.status = RecipeStatus.PUBLISHED
    if recipe.published_at is None:
        recipe.published_at = utc_now()
    await db.flush()
    return recipe


async def unpublish_recipe(db: AsyncSession, recipe_id: int, caller_subject: str) -> Recipe:
    """Move a recipe back to draft. published_at is kept."""
    recipe = await _get_owned_recipe(db, recipe_id, caller_subject, "unpublish")
    _check_not_archived(recipe, "unpublish")
    if recipe.status != RecipeStatus.DRAFT:
        recipe.status = RecipeStatus.DRAFT
    await db.flush()
    return recipe


async def delete_recipe(db: AsyncSession, recipe_id: int, caller_subject: str) -> None:
    """Delete a recipe and decrement the owner's recipes_created (floored at 0)."""
    recipe = await _get_owned_recipe(db, recipe_id, caller_subject, "delete")
    owner_id = recipe.owner_id
    await db.delete(recipe)
    await db.flush()
    await stats_service.adjust_recipes_created(db, owner_id, -1)
    logger.info("recipe_deleted", extra={"recipe_id": recipe_id, "owner_id": owner_id})


async def like_recipe(db: AsyncSession, recipe_id: int, action: str) -> int:
    """
    Apply "like" (+1) or "unlike" (-1, floored at 0).

    Returns:
        The like count after the change.
    """
    if action == "like":
        delta = 1
    elif action == "unlike":
        delta = -1
    else:
        raise InvalidRequestError('Invalid action. Use "like" or "unlike"')
    likes = await stats_service.adjust_recipe_likes(db, recipe_id, delta)
    if likes is None:
        raise NotFoundError("Recipe", recipe_id)
    return likes


async def save_recipe(db: AsyncSession, recipe_id: int, action: str) -> int:
    """Apply "save" (+1) or "unsave" (-1, floored at 0). Returns the save count."""
    if action == "save":
        delta = 1
    elif action == "unsave":
        delta = -1
    else:
        raise InvalidRequestError('Invalid action. Use "save" or "unsave"')
    saves = await stats_service.adjust_recipe_saves(db, recipe_id, delta)
    if saves is None:
        raise NotFoundError("Recipe", recipe_id)
    return saves


async def rate_recipe(db: AsyncSession, recipe_id: int, score: int) -> tuple[float, int]:
    """Fold a 1-5 score into the recipe rating. Returns (average, count)."""
    if not 1 <= score <= 5:
        raise InvalidRequestError("score must be between 1 and 5")
    rating = await stats_service.add_recipe_rating(db, recipe_id, score)
    if rating is None:
        raise NotFoundError("Recipe", recipe_id)
    return rating
