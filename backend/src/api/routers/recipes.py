"""Recipe CRUD, lifecycle, discovery and social endpoints."""
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.enums import Cuisine, DietaryFlag, Difficulty, RecipeCategory, RecipeStatus
from models.recipe import Recipe
from schemas.cached_user import CachedUser
from schemas.recipe import (
    LikeRequest,
    LikeResponse,
    RateRequest,
    RatingResponse,
    RecipeCreate,
    RecipeListItem,
    RecipeListResponse,
    RecipeResponse,
    RecipeUpdate,
    SaveRequest,
    SaveResponse,
)
from services import query_service, recipe_service, user_service
from services.query_service import RecipeSortBy
from services.utils import PageResult

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _to_list_response(result: PageResult[Recipe]) -> RecipeListResponse:
    return RecipeListResponse(
        items=[RecipeListItem.model_validate(r) for r in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


class RecipeListParams:
    """Query parameters shared by every recipe listing."""

    def __init__(
        self,
        q: str | None = Query(
            default=None, description="Keywords matched against title, description and tags",
        ),
        category: RecipeCategory | None = Query(default=None),
        cuisine: Cuisine | None = Query(default=None),
        difficulty: Difficulty | None = Query(default=None),
        dietary: list[DietaryFlag] | None = Query(
            default=None, description="Dietary flags that must all be set",
        ),
        max_total_minutes: int | None = Query(default=None, ge=0),
        sort_by: RecipeSortBy = Query(default="recent", description="Field to sort by"),
        sort_order: Literal["asc", "desc"] = Query(default="desc", description="Sort direction"),
        page: int = Query(default=1, description="1-indexed page number"),
        page_size: int = Query(default=20, description="Items per page (1-100)"),
    ) -> None:
        self.q = q
        self.category = category
        self.cuisine = cuisine
        self.difficulty = difficulty
        self.dietary = dietary
        self.max_total_minutes = max_total_minutes
        self.sort_by = sort_by
        self.sort_order = sort_order
        self.page = page
        self.page_size = page_size

    def as_kwargs(self) -> dict:
        return {
            "query": self.q,
            "category": self.category,
            "cuisine": self.cuisine,
            "difficulty": self.difficulty,
            "dietary": self.dietary,
            "max_total_minutes": self.max_total_minutes,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
            "page": self.page,
            "page_size": self.page_size,
        }


@router.get("/", response_model=RecipeListResponse)
async def list_public_recipes(
    params: RecipeListParams = Depends(),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeListResponse:
    """
    Browse the public catalogue.

    Only published, public recipes are listed. With `q`, results are ordered
    by relevance before the sort key.
    """
    result = await query_service.search_public_recipes(db, **params.as_kwargs())
    return _to_list_response(result)


@router.get("/mine", response_model=RecipeListResponse)
async def list_my_recipes(
    status: RecipeStatus | None = Query(default=None, description="Optional status filter"),
    params: RecipeListParams = Depends(),
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeListResponse:
    """List the caller's recipes in every state unless `status` is given."""
    result = await query_service.search_owner_recipes(
        db, current_user.subject, status=status, **params.as_kwargs(),
    )
    return _to_list_response(result)


@router.get("/user/{subject}", response_model=RecipeListResponse)
async def list_user_recipes(
    subject: str,
    params: RecipeListParams = Depends(),
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeListResponse:
    """
    List one author's recipes.

    Other callers see the author's published, public recipes; the author
    sees all of their own.
    """
    await user_service.get_active_user(db, subject)
    if subject == current_user.subject:
        result = await query_service.search_owner_recipes(db, subject, **params.as_kwargs())
    else:
        result = await query_service.search_public_recipes(
            db, owner_subject=subject, **params.as_kwargs(),
        )
    return _to_list_response(result)


@router.post("/", response_model=RecipeResponse, status_code=201)
async def create_recipe(
    data: RecipeCreate,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeResponse:
    """Create a draft recipe owned by the caller."""
    recipe = await recipe_service.create_recipe(db, current_user.subject, data)
    return RecipeResponse.model_validate(recipe)


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> RecipeResponse:
    """Get a single recipe. Every fetch counts one view."""
    recipe = await recipe_service.get_recipe(db, recipe_id)
    return RecipeResponse.model_validate(recipe)


@router.patch("/{recipe_id}", response_model=RecipeResponse)
async def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeResponse:
    recipe = await recipe_service.update_recipe(db, recipe_id, current_user.subject, data)
    return RecipeResponse.model_validate(recipe)


@router.post("/{recipe_id}/publish", response_model=RecipeResponse)
async def publish_recipe(
    recipe_id: int,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeResponse:
    recipe = await recipe_service.publish_recipe(db, recipe_id, current_user.subject)
    return RecipeResponse.model_validate(recipe)


@router.post("/{recipe_id}/unpublish", response_model=RecipeResponse)
async def unpublish_recipe(
    recipe_id: int,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RecipeResponse:
    recipe = await recipe_service.unpublish_recipe(db, recipe_id, current_user.subject)
    return RecipeResponse.model_validate(recipe)


@router.delete("/{recipe_id}", status_code=204)
async def delete_recipe(
    recipe_id: int,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    await recipe_service.delete_recipe(db, recipe_id, current_user.subject)


@router.post("/{recipe_id}/like", response_model=LikeResponse)
async def like_recipe(
    recipe_id: int,
    data: LikeRequest,
    _: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> LikeResponse:
    likes = await recipe_service.like_recipe(db, recipe_id, data.action)
    return LikeResponse(likes=likes)


@router.post("/{recipe_id}/save", response_model=SaveResponse)
async def save_recipe(
    recipe_id: int,
    data: SaveRequest,
    _: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SaveResponse:
    saves = await recipe_service.save_recipe(db, recipe_id, data.action)
    return SaveResponse(saves=saves)


@router.post("/{recipe_id}/rate", response_model=RatingResponse)
async def rate_recipe(
    recipe_id: int,
    data: RateRequest,
    _: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RatingResponse:
    """Add one 1-5 score to the recipe's running average."""
    average, count = await recipe_service.rate_recipe(db, recipe_id, data.score)
    return RatingResponse(rating_average=average, rating_count=count)
