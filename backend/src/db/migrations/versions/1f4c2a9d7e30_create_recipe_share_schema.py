"""
Create users, recipes, saved links and their tag tables.

Revision ID: 1f4c2a9d7e30
Revises:
Create Date: 2026-10-18 09:12:41.503218
"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1f4c2a9d7e30"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create the initial schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "subject",
            sa.String(length=255),
            nullable=False,
            comment="Stable external auth subject - unique identifier from the identity provider",
        ),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("photo_url", sa.String(length=2048), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("providers", sa.JSON(), nullable=False),
        sa.Column("bio", sa.String(length=500), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("website", sa.String(length=200), nullable=False),
        sa.Column("dietary_restrictions", sa.JSON(), nullable=False),
        sa.Column("cuisine_preferences", sa.JSON(), nullable=False),
        sa.Column("skill_level", sa.String(length=20), nullable=False),
        sa.Column("recipes_created", sa.Integer(), server_default="0", nullable=False),
        sa.Column("recipes_liked", sa.Integer(), server_default="0", nullable=False),
        sa.Column("followers", sa.Integer(), server_default="0", nullable=False),
        sa.Column("following", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("allow_followers", sa.Boolean(), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False),
        sa.Column("push_notifications", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("recipes_created >= 0", name="ck_users_recipes_created_nonneg"),
        sa.CheckConstraint("recipes_liked >= 0", name="ck_users_recipes_liked_nonneg"),
        sa.CheckConstraint("followers >= 0", name="ck_users_followers_nonneg"),
        sa.CheckConstraint("following >= 0", name="ck_users_following_nonneg"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_subject", "users", ["subject"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_skill_level", "users", ["skill_level"])
    op.create_index("ix_users_last_login_at", "users", ["last_login_at"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "recipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("owner_subject", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("ingredients", sa.JSON(), nullable=False),
        sa.Column("instructions", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("cuisine", sa.String(length=20), nullable=False),
        sa.Column("difficulty", sa.String(length=10), nullable=False),
        sa.Column("prep_minutes", sa.Integer(), nullable=False),
        sa.Column("cook_minutes", sa.Integer(), nullable=False),
        sa.Column("total_minutes", sa.Integer(), nullable=False),
        sa.Column("servings", sa.Integer(), nullable=False),
        sa.Column("is_vegetarian", sa.Boolean(), nullable=False),
        sa.Column("is_vegan", sa.Boolean(), nullable=False),
        sa.Column("is_gluten_free", sa.Boolean(), nullable=False),
        sa.Column("is_dairy_free", sa.Boolean(), nullable=False),
        sa.Column("is_nut_free", sa.Boolean(), nullable=False),
        sa.Column("is_keto", sa.Boolean(), nullable=False),
        sa.Column("is_paleo", sa.Boolean(), nullable=False),
        sa.Column("nutrition", sa.JSON(), nullable=True),
        sa.Column("views", sa.Integer(), server_default="0", nullable=False),
        sa.Column("likes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("saves", sa.Integer(), server_default="0", nullable=False),
        sa.Column("comments", sa.Integer(), server_default="0", nullable=False),
        sa.Column("rating_average", sa.Float(), server_default="0", nullable=False),
        sa.Column("rating_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("servings >= 1 AND servings <= 50", name="ck_recipes_servings_range"),
        sa.CheckConstraint(
            "prep_minutes >= 0 AND cook_minutes >= 0", name="ck_recipes_time_nonneg",
        ),
        sa.CheckConstraint("views >= 0", name="ck_recipes_views_nonneg"),
        sa.CheckConstraint("likes >= 0", name="ck_recipes_likes_nonneg"),
        sa.CheckConstraint("saves >= 0", name="ck_recipes_saves_nonneg"),
        sa.CheckConstraint("comments >= 0", name="ck_recipes_comments_nonneg"),
        sa.CheckConstraint(
            "rating_average >= 0 AND rating_average <= 5",
            name="ck_recipes_rating_average_range",
        ),
        sa.CheckConstraint("rating_count >= 0", name="ck_recipes_rating_count_nonneg"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in (
        "owner_id", "owner_subject", "title", "category", "cuisine", "difficulty",
        "total_minutes", "likes", "rating_average", "status", "is_public",
        "published_at", "created_at",
    ):
        op.create_index(f"ix_recipes_{column}", "recipes", [column])
    op.create_index("ix_recipes_owner_status", "recipes", ["owner_id", "status"])
    op.create_index("ix_recipes_category_cuisine", "recipes", ["category", "cuisine"])
    op.create_index(
        "ix_recipes_status_public_published",
        "recipes",
        ["status", "is_public", "published_at"],
    )

    op.create_table(
        "recipe_tags",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipe_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipe_id", "name", name="uq_recipe_tags_recipe_name"),
    )
    op.create_index("ix_recipe_tags_recipe_id", "recipe_tags", ["recipe_id"])
    op.create_index("ix_recipe_tags_name", "recipe_tags", ["name"])

    op.create_table(
        "saved_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_subject", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("thumbnail", sa.String(length=2048), nullable=True),
        sa.Column("platform", sa.String(length=20), nullable=False),
        sa.Column("user_notes", sa.String(length=500), nullable=False),
        sa.Column("visit_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("visit_count >= 0", name="ck_saved_links_visit_count_nonneg"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_saved_links_owner_subject", "saved_links", ["owner_subject"])
    op.create_index("ix_saved_links_created_at", "saved_links", ["created_at"])
    op.create_index(
        "ix_saved_links_owner_created", "saved_links", ["owner_subject", "created_at"],
    )
    op.create_index(
        "ix_saved_links_owner_platform", "saved_links", ["owner_subject", "platform"],
    )

    op.create_table(
        "saved_link_tags",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("saved_link_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.ForeignKeyConstraint(["saved_link_id"], ["saved_links.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("saved_link_id", "name", name="uq_saved_link_tags_link_name"),
    )
    op.create_index("ix_saved_link_tags_saved_link_id", "saved_link_tags", ["saved_link_id"])
    op.create_index("ix_saved_link_tags_name", "saved_link_tags", ["name"])


def downgrade() -> None:
    """Drop every table created above."""
    op.drop_table("saved_link_tags")
    op.drop_table("saved_links")
    op.drop_table("recipe_tags")
    op.drop_table("recipes")
    op.drop_table("users")
