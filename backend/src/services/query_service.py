"""
Query engine for recipe and saved-link listings.

Builds filter predicates, relevance/recency ordering and 1-indexed pages.
The public listing and the owner listing deliberately use different status
defaults: public means published + public, the owner sees everything.
"""
from typing import Any, Literal

from sqlalchemy import ColumnElement, case, exists, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.enums import Cuisine, DietaryFlag, Difficulty, Platform, RecipeCategory, RecipeStatus
from models.recipe import Recipe, RecipeTag
from models.saved_link import SavedLink, SavedLinkTag
from services.utils import PageResult, escape_ilike, split_search_terms, validate_pagination

RecipeSortBy = Literal["recent", "likes", "views", "rating", "total_time"]
SavedLinkSortBy = Literal["created_at", "updated_at", "title", "visit_count"]
SortOrder = Literal["asc", "desc"]

# Relevance weight per keyword hit
TITLE_WEIGHT = 3
TAG_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


def _ilike_pattern(term: str) -> str:
    return f"%{escape_ilike(term)}%"


def _build_recipe_content_filters(
    category: RecipeCategory | None,
    cuisine: Cuisine | None,
    difficulty: Difficulty | None,
    dietary: list[DietaryFlag] | None,
    max_total_minutes: int | None,
) -> list:
    """Build the classification filters shared by public and owner listings."""
    filters: list = []
    if category:
        filters.append(Recipe.category == category)
    if cuisine:
        filters.append(Recipe.cuisine == cuisine)
    if difficulty:
        filters.append(Recipe.difficulty == difficulty)
    # Every requested flag must be set
    for flag in dietary or []:
        filters.append(getattr(Recipe, flag.column_name))
    if max_total_minutes is not None:
        filters.append(Recipe.total_minutes <= max_total_minutes)
    return filters


def _build_recipe_text_search(
    terms: list[str],
) -> tuple[ColumnElement[bool], ColumnElement[Any]]:
    """
    Build the keyword match filter and its relevance score.

    A recipe matches if any keyword is a substring of its title,
    description or one of its tags. The score sums weighted hits over all
    keywords.
    """
    matches = []
    score: ColumnElement[Any] = literal(0)
    for term in terms:
        pattern = _ilike_pattern(term)
        title_hit = Recipe.title.ilike(pattern, escape="\\")
        description_hit = Recipe.description.ilike(pattern, escape="\\")
        tag_hit = exists(
            select(RecipeTag.id).where(
                RecipeTag.recipe_id == Recipe.id,
                RecipeTag.name.ilike(pattern, escape="\\"),
            ),
        )
        matches.append(or_(title_hit, description_hit, tag_hit))
        score = (
            score
            + case((title_hit, TITLE_WEIGHT), else_=0)
            + case((tag_hit, TAG_WEIGHT), else_=0)
            + case((description_hit, DESCRIPTION_WEIGHT), else_=0)
        )
    return or_(*matches), score


def _recipe_order_by(
    sort_by: RecipeSortBy,
    sort_order: SortOrder,
    recency_column: Any,
    relevance: ColumnElement[Any] | None,
) -> list:
    """Relevance first (when searching), then the sort key, then created_at DESC."""
    sort_columns = {
        "recent": recency_column,
        "likes": Recipe.likes,
        "views": Recipe.views,
        "rating": Recipe.rating_average,
        "total_time": Recipe.total_minutes,
    }
    column = sort_columns[sort_by]
    order_by: list = []
    if relevance is not None:
        order_by.append(relevance.desc())
    order_by.append(column.desc() if sort_order == "desc" else column.asc())
    order_by.append(Recipe.created_at.desc())
    return order_by


async def _run_recipe_query(
    db: AsyncSession,
    filters: list,
    query: str | None,
    sort_by: RecipeSortBy,
    sort_order: SortOrder,
    recency_column: Any,
    page: int,
    page_size: int,
) -> PageResult[Recipe]:
    offset = validate_pagination(page, page_size)

    relevance = None
    terms = split_search_terms(query)
    if terms:
        text_filter, relevance = _build_recipe_text_search(terms)
        filters = [*filters, text_filter]

    count_result = await db.execute(
        select(func.count()).select_from(Recipe).where(*filters),
    )
    total = count_result.scalar() or 0

    items: list[Recipe] = []
    if offset < total:
        result = await db.execute(
            select(Recipe)
            .where(*filters)
            .order_by(*_recipe_order_by(sort_by, sort_order, recency_column, relevance))
            .offset(offset)
            .limit(page_size),
        )
        items = list(result.scalars().all())

    return PageResult(items=items, total=total, page=page, page_size=page_size)


async def search_public_recipes(
    db: AsyncSession,
    owner_subject: str | None = None,
    category: RecipeCategory | None = None,
    cuisine: Cuisine | None = None,
    difficulty: Difficulty | None = None,
    dietary: list[DietaryFlag] | None = None,
    max_total_minutes: int | None = None,
    query: str | None = None,
    sort_by: RecipeSortBy = "recent",
    sort_order: SortOrder = "desc",
    page: int = 1,
    page_size: int = 20,
) -> PageResult[Recipe]:
    """
    Search the public catalogue: published and public recipes only.

    Args:
        db: Database session.
        owner_subject: Restrict to one author's public recipes.
        category: Filter by category.
        cuisine: Filter by cuisine.
        difficulty: Filter by difficulty.
        dietary: Dietary flags that must all be set.
        max_total_minutes: Upper bound on prep + cook.
        query: Free-text keywords over title, description and tags.
        sort_by: "recent" sorts by published_at.
        sort_order: Sort direction for sort_by.
        page: 1-indexed page number.
        page_size: Items per page (1..100).

    Returns:
        PageResult; a page past the end has no items.
    """
    filters = [Recipe.status == RecipeStatus.PUBLISHED, Recipe.is_public]
    if owner_subject:
        filters.append(Recipe.owner_subject == owner_subject)
    filters.extend(
        _build_recipe_content_filters(category, cuisine, difficulty, dietary, max_total_minutes),
    )
    return await _run_recipe_query(
        db, filters, query, sort_by, sort_order, Recipe.published_at, page, page_size,
    )


async def search_owner_recipes(
    db: AsyncSession,
    owner_subject: str,
    status: RecipeStatus | None = None,
    category: RecipeCategory | None = None,
    cuisine: Cuisine | None = None,
    difficulty: Difficulty | None = None,
    dietary: list[DietaryFlag] | None = None,
    max_total_minutes: int | None = None,
    query: str | None = None,
    sort_by: RecipeSortBy = "recent",
    sort_order: SortOrder = "desc",
    page: int = 1,
    page_size: int = 20,
) -> PageResult[Recipe]:
    """
    List an owner's own recipes.

    No status filter unless one is given: drafts, published and archived
    recipes (public or private) are all visible to their owner. "recent"
    sorts by created_at.
    """
    filters = [Recipe.owner_subject == owner_subject]
    if status:
        filters.append(Recipe.status == status)
    filters.extend(
        _build_recipe_content_filters(category, cuisine, difficulty, dietary, max_total_minutes),
    )
    return await _run_recipe_query(
        db, filters, query, sort_by, sort_order, Recipe.created_at, page, page_size,
    )


def _build_link_tag_filter(
    tags: list[str],
    tag_match: Literal["all", "any"],
) -> list:
    """Build tag filter clauses for saved links."""
    if not tags:
        return []

    if tag_match == "all":
        # Must have ALL specified tags
        return [
            exists(
                select(SavedLinkTag.id).where(
                    SavedLinkTag.saved_link_id == SavedLink.id,
                    SavedLinkTag.name == tag_name,
                ),
            )
            for tag_name in tags
        ]
    # Must have ANY of the specified tags
    return [
        exists(
            select(SavedLinkTag.id).where(
                SavedLinkTag.saved_link_id == SavedLink.id,
                SavedLinkTag.name.in_(tags),
            ),
        ),
    ]


def _build_link_text_filter(terms: list[str]) -> ColumnElement[bool]:
    """Any keyword in title, description, user notes or a tag."""
    clauses = []
    for term in terms:
        pattern = _ilike_pattern(term)
        clauses.extend([
            SavedLink.title.ilike(pattern, escape="\\"),
            SavedLink.description.ilike(pattern, escape="\\"),
            SavedLink.user_notes.ilike(pattern, escape="\\"),
            exists(
                select(SavedLinkTag.id).where(
                    SavedLinkTag.saved_link_id == SavedLink.id,
                    SavedLinkTag.name.ilike(pattern, escape="\\"),
                ),
            ),
        ])
    return or_(*clauses)


async def search_saved_links(
    db: AsyncSession,
    owner_subject: str,
    query: str | None = None,
    platform: Platform | Literal["all"] | None = None,
    tags: list[str] | None = None,
    tag_match: Literal["all", "any"] = "any",
    sort_by: SavedLinkSortBy = "created_at",
    sort_order: SortOrder = "desc",
    page: int = 1,
    page_size: int = 50,
) -> PageResult[SavedLink]:
    """
    Search one owner's saved links.

    Args:
        db: Database session.
        owner_subject: Owner scope; other owners' links are never visible.
        query: Free-text keywords over title, description, notes and tags.
        platform: Platform filter; "all" or None means no filter.
        tags: Filter by tags (exact match).
        tag_match: "any" (default, OR) or "all" (AND).
        sort_by: Field to sort by.
        sort_order: Sort direction.
        page: 1-indexed page number.
        page_size: Items per page (1..100).
    """
    offset = validate_pagination(page, page_size)

    filters = [SavedLink.owner_subject == owner_subject]
    if platform and platform != "all":
        filters.append(SavedLink.platform == platform)
    filters.extend(_build_link_tag_filter([t.strip() for t in tags or [] if t.strip()], tag_match))
    terms = split_search_terms(query)
    if terms:
        filters.append(_build_link_text_filter(terms))

    count_result = await db.execute(
        select(func.count()).select_from(SavedLink).where(*filters),
    )
    total = count_result.scalar() or 0

    sort_column = getattr(SavedLink, sort_by)
    sort_column = sort_column.desc() if sort_order == "desc" else sort_column.asc()

    items: list[SavedLink] = []
    if offset < total:
        result = await db.execute(
            select(SavedLink)
            .where(*filters)
            .order_by(sort_column, SavedLink.created_at.desc())
            .offset(offset)
            .limit(page_size),
        )
        items = list(result.scalars().all())

    return PageResult(items=items, total=total, page=page, page_size=page_size)
