"""Closed value sets shared by models, schemas and services."""
from enum import StrEnum


class RecipeStatus(StrEnum):
    """Recipe lifecycle state. ARCHIVED is defined but never entered by the core."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RecipeCategory(StrEnum):
    APPETIZER = "appetizer"
    MAIN_COURSE = "main-course"
    DESSERT = "dessert"
    BEVERAGE = "beverage"
    SNACK = "snack"
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SIDE_DISH = "side-dish"


class Cuisine(StrEnum):
    ITALIAN = "italian"
    CHINESE = "chinese"
    MEXICAN = "mexican"
    INDIAN = "indian"
    JAPANESE = "japanese"
    FRENCH = "french"
    THAI = "thai"
    MEDITERRANEAN = "mediterranean"
    AMERICAN = "american"
    KOREAN = "korean"
    OTHER = "other"


class DietaryFlag(StrEnum):
    """Recipe dietary flags; value maps to the is_<flag> column."""

    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    GLUTEN_FREE = "gluten-free"
    DAIRY_FREE = "dairy-free"
    NUT_FREE = "nut-free"
    KETO = "keto"
    PALEO = "paleo"

    @property
    def column_name(self) -> str:
        return "is_" + self.value.replace("-", "_")


class DietaryRestriction(StrEnum):
    """User profile restrictions: the recipe flags plus halal and kosher."""

    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    GLUTEN_FREE = "gluten-free"
    DAIRY_FREE = "dairy-free"
    NUT_FREE = "nut-free"
    KETO = "keto"
    PALEO = "paleo"
    HALAL = "halal"
    KOSHER = "kosher"


class SkillLevel(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class AuthProvider(StrEnum):
    PASSWORD = "password"
    GOOGLE = "google.com"
    FACEBOOK = "facebook.com"
    TWITTER = "twitter.com"


class Platform(StrEnum):
    """Where a saved link points to."""

    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    PINTEREST = "pinterest"
    WEBSITE = "website"
    OTHER = "other"
