"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.recipe import Recipe, RecipeTag
from models.saved_link import SavedLink, SavedLinkTag
from models.user import User

__all__ = ["Base", "Recipe", "RecipeTag", "SavedLink", "SavedLinkTag", "TimestampMixin", "User"]
