"""Pydantic schemas for recipe endpoints."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.enums import Cuisine, Difficulty, RecipeCategory, RecipeStatus

MAX_TAG_LENGTH = 50


def normalize_recipe_tags(tags: list[str]) -> list[str]:
    """
    Normalize recipe tags: trim, lowercase, drop empties and duplicates.

    Recipe tags are free-form, so unlike saved-link tags there is no format
    rule beyond a length cap.
    """
    normalized: list[str] = []
    for tag in tags:
        normalized_tag = tag.strip().lower()
        if not normalized_tag or normalized_tag in normalized:
            continue
        if len(normalized_tag) > MAX_TAG_LENGTH:
            raise ValueError(
                f"Tag '{normalized_tag[:20]}...' exceeds {MAX_TAG_LENGTH} characters",
            )
        normalized.append(normalized_tag)
    return normalized


def check_single_primary_image(images: list["RecipeImage"]) -> list["RecipeImage"]:
    """At most one image may be flagged as primary."""
    if sum(1 for image in images if image.is_primary) > 1:
        raise ValueError("Only one image can be marked as primary")
    return images


class Ingredient(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    quantity: str = Field(min_length=1, max_length=50)
    unit: str = Field(default="", max_length=50)
    notes: str = Field(default="", max_length=1000)


class Instruction(BaseModel):
    """One numbered step. Numbers are reassigned from list order on write."""

    model_config = ConfigDict(str_strip_whitespace=True)

    step_number: int = Field(default=0, ge=0)
    text: str = Field(min_length=1, max_length=2000)
    duration_minutes: int | None = Field(default=None, ge=0)
    image_url: str | None = None


class RecipeImage(BaseModel):
    url: str = Field(min_length=1, max_length=2048)
    alt: str = ""
    is_primary: bool = False


class CookingTime(BaseModel):
    """Prep and cook minutes. A supplied total is ignored; it is always prep + cook."""

    prep: int = Field(ge=0)
    cook: int = Field(ge=0)
    total: int | None = None


class CookingTimeUpdate(BaseModel):
    prep: int | None = Field(default=None, ge=0)
    cook: int | None = Field(default=None, ge=0)


class DietaryInfo(BaseModel):
    """Seven independent flags; combinations are not cross-checked."""

    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    is_nut_free: bool = False
    is_keto: bool = False
    is_paleo: bool = False


class Nutrition(BaseModel):
    calories: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    carbs: float | None = Field(default=None, ge=0)
    fat: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    sugar: float | None = Field(default=None, ge=0)


def number_steps(instructions: list[Instruction]) -> list[Instruction]:
    for index, step in enumerate(instructions, start=1):
        step.step_number = index
    return instructions


class RecipeCreate(BaseModel):
    """
    Schema for creating a recipe.

    Ownership comes from the caller identity; owner, stats and status fields
    in the payload are ignored.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    ingredients: list[Ingredient] = Field(min_length=1)
    instructions: list[Instruction] = Field(min_length=1)
    cooking_time: CookingTime
    servings: int = Field(ge=1, le=50)
    category: RecipeCategory
    cuisine: Cuisine
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = []
    dietary_info: DietaryInfo = Field(default_factory=DietaryInfo)
    nutrition: Nutrition | None = None
    images: list[RecipeImage] = []
    is_public: bool = True

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize tags."""
        if v is None:
            return []
        return normalize_recipe_tags(v)

    @field_validator("images")
    @classmethod
    def single_primary(cls, v: list[RecipeImage]) -> list[RecipeImage]:
        """Reject more than one primary image."""
        return check_single_primary_image(v)

    @model_validator(mode="after")
    def renumber_steps(self) -> "RecipeCreate":
        number_steps(self.instructions)
        return self


class RecipeUpdate(BaseModel):
    """Partial update. Unset fields are left untouched."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    ingredients: list[Ingredient] | None = Field(default=None, min_length=1)
    instructions: list[Instruction] | None = Field(default=None, min_length=1)
    cooking_time: CookingTimeUpdate | None = None
    servings: int | None = Field(default=None, ge=1, le=50)
    category: RecipeCategory | None = None
    cuisine: Cuisine | None = None
    difficulty: Difficulty | None = None
    tags: list[str] | None = None
    dietary_info: DietaryInfo | None = None
    nutrition: Nutrition | None = None
    images: list[RecipeImage] | None = None
    is_public: bool | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        """Normalize tags if provided."""
        if v is None:
            return None
        return normalize_recipe_tags(v)

    @field_validator("images")
    @classmethod
    def single_primary(cls, v: list[RecipeImage] | None) -> list[RecipeImage] | None:
        """Reject more than one primary image."""
        if v is None:
            return None
        return check_single_primary_image(v)

    @model_validator(mode="after")
    def renumber_steps(self) -> "RecipeUpdate":
        if self.instructions is not None:
            number_steps(self.instructions)
        return self


class OwnerSummary(BaseModel):
    """The owner fields attached to every recipe response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    subject: str
    display_name: str
    photo_url: str | None
    bio: str = ""


class RecipeStats(BaseModel):
    views: int
    likes: int
    saves: int
    comments: int
    rating_average: float
    rating_count: int


class RecipeListItem(BaseModel):
    """Schema for recipe list items (excludes ingredients and instructions)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_subject: str
    owner: OwnerSummary
    title: str
    description: str
    images: list[RecipeImage]
    tags: list[str]
    category: RecipeCategory
    cuisine: Cuisine
    difficulty: Difficulty
    cooking_time: CookingTime
    servings: int
    dietary_info: DietaryInfo
    stats: RecipeStats
    status: RecipeStatus
    is_public: bool
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime


class RecipeResponse(RecipeListItem):
    """Schema for full recipe responses."""

    ingredients: list[Ingredient]
    instructions: list[Instruction]
    nutrition: Nutrition | None


class RecipeListResponse(BaseModel):
    """Schema for paginated recipe list responses."""

    items: list[RecipeListItem]
    total: int  # Total count matching the query (before pagination)
    page: int  # 1-indexed
    page_size: int
    total_pages: int  # ceil(total / page_size); 0 when total is 0
    has_next: bool
    has_prev: bool


class LikeRequest(BaseModel):
    action: Literal["like", "unlike"]


class LikeResponse(BaseModel):
    likes: int


class SaveRequest(BaseModel):
    action: Literal["save", "unsave"]


class SaveResponse(BaseModel):
    saves: int


class RateRequest(BaseModel):
    score: int = Field(ge=1, le=5)


class RatingResponse(BaseModel):
    rating_average: float
    rating_count: int
