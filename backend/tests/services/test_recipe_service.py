"""Tests for recipe authoring, lifecycle and social counters."""
import asyncio
from collections.abc import Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import Database
from models.enums import RecipeStatus
from models.recipe import Recipe
from models.user import User
from schemas.recipe import RecipeCreate, RecipeUpdate
from services import recipe_service, user_service
from services.exceptions import ForbiddenError, InvalidRequestError, NotFoundError

MakeUser = Callable[..., Awaitable[User]]
RecipeData = Callable[..., RecipeCreate]


class TestCreateRecipe:
    """Tests for create_recipe."""

    async def test__create_recipe__total_is_prep_plus_cook(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Total cooking time is prep + cook when no total is supplied."""
        await make_user("chef-a")
        recipe = await recipe_service.create_recipe(
            db_session, "chef-a", recipe_data(cooking_time={"prep": 10, "cook": 20}),
        )
        assert recipe.total_minutes == 30
        assert recipe.cooking_time == {"prep": 10, "cook": 20, "total": 30}

    async def test__create_recipe__supplied_total_is_ignored(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """A caller-supplied total never overrides prep + cook."""
        await make_user("chef-a")
        recipe = await recipe_service.create_recipe(
            db_session,
            "chef-a",
            recipe_data(cooking_time={"prep": 5, "cook": 5, "total": 99}),
        )
        assert recipe.total_minutes == 10

    async def test__create_recipe__applies_defaults(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """New recipes are public drafts with medium difficulty and zeroed stats."""
        await make_user("chef-a")
        recipe = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        assert recipe.status == RecipeStatus.DRAFT
        assert recipe.is_public is True
        assert recipe.difficulty == "medium"
        assert recipe.published_at is None
        assert recipe.tags == []
        assert recipe.nutrition == {}
        assert recipe.stats == {
            "views": 0,
            "likes": 0,
            "saves": 0,
            "comments": 0,
            "rating_average": 0.0,
            "rating_count": 0,
        }
        assert all(value is False for value in recipe.dietary_info.values())

    async def test__create_recipe__attaches_owner(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """The owner summary and subject are attached to the created recipe."""
        user = await make_user("chef-a", display_name="Chef A")
        recipe = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        assert recipe.owner_subject == "chef-a"
        assert recipe.owner.id == user.id
        assert recipe.owner.display_name == "Chef A"

    async def test__create_recipe__increments_recipes_created(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Each create bumps the owner's recipes_created counter."""
        user = await make_user("chef-a")
        await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        await recipe_service.create_recipe(db_session, "chef-a", recipe_data(title="Second"))

        await db_session.refresh(user)
        assert user.recipes_created == 2

    async def test__create_recipe__normalizes_tags_and_numbers_steps(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Tags are lower-cased and de-duplicated; steps are numbered in order."""
        await make_user("chef-a")
        recipe = await recipe_service.create_recipe(
            db_session,
            "chef-a",
            recipe_data(
                tags=["Quick", "quick", " Pasta "],
                instructions=[
                    {"step_number": 7, "text": "First"},
                    {"step_number": 3, "text": "Second"},
                ],
            ),
        )
        assert recipe.tags == ["quick", "pasta"]
        assert [step["step_number"] for step in recipe.instructions] == [1, 2]

    async def test__create_recipe__unknown_owner_raises_not_found(
        self, db_session: AsyncSession, recipe_data: RecipeData,
    ) -> None:
        """Creating a recipe for a subject with no user fails with NotFoundError."""
        with pytest.raises(NotFoundError):
            await recipe_service.create_recipe(db_session, "nobody", recipe_data())

    async def test__create_recipe__deactivated_owner_raises_not_found(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Deactivated users cannot author recipes."""
        await make_user("chef-a")
        await user_service.deactivate_user(db_session, "chef-a")
        with pytest.raises(NotFoundError):
            await recipe_service.create_recipe(db_session, "chef-a", recipe_data())


class TestGetAndUpdateRecipe:
    """Tests for get_recipe and update_recipe."""

    async def test__get_recipe__counts_every_view(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Every fetch adds one view."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        await recipe_service.get_recipe(db_session, created.id)
        recipe = await recipe_service.get_recipe(db_session, created.id)
        assert recipe.views == 2

    async def test__get_recipe__missing_raises_not_found(
        self, db_session: AsyncSession,
    ) -> None:
        """Fetching a nonexistent recipe raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await recipe_service.get_recipe(db_session, 9999)

    async def test__update_recipe__recomputes_total(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Changing only cook time keeps prep and recomputes total."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(
            db_session, "chef-a", recipe_data(cooking_time={"prep": 10, "cook": 20}),
        )
        recipe = await recipe_service.update_recipe(
            db_session,
            created.id,
            "chef-a",
            RecipeUpdate(cooking_time={"cook": 45}),
        )
        assert recipe.prep_minutes == 10
        assert recipe.total_minutes == 55

    async def test__update_recipe__unset_fields_untouched(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """A partial update only changes the fields it names."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(
            db_session, "chef-a", recipe_data(tags=["pasta"]),
        )
        recipe = await recipe_service.update_recipe(
            db_session, created.id, "chef-a", RecipeUpdate(title="New Title"),
        )
        assert recipe.title == "New Title"
        assert recipe.description == "Weeknight pasta with fresh basil."
        assert recipe.tags == ["pasta"]

    async def test__update_recipe__replaces_tags(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Tags are replaced as a whole, keeping surviving tags."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(
            db_session, "chef-a", recipe_data(tags=["pasta", "quick"]),
        )
        recipe = await recipe_service.update_recipe(
            db_session, created.id, "chef-a", RecipeUpdate(tags=["quick", "vegan"]),
        )
        assert recipe.tags == ["quick", "vegan"]

    async def test__update_recipe__non_owner_forbidden(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Only the owner may update a recipe."""
        await make_user("chef-a")
        await make_user("chef-b")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        with pytest.raises(ForbiddenError):
            await recipe_service.update_recipe(
                db_session, created.id, "chef-b", RecipeUpdate(title="Hijacked"),
            )


class TestLifecycle:
    """Tests for publish, unpublish and delete."""

    async def test__publish_recipe__is_idempotent(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """A second publish keeps the first published_at."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        first = await recipe_service.publish_recipe(db_session, created.id, "chef-a")
        first_published_at = first.published_at
        assert first_published_at is not None

        await asyncio.sleep(0.01)
        second = await recipe_service.publish_recipe(db_session, created.id, "chef-a")
        assert second.status == RecipeStatus.PUBLISHED
        assert second.published_at == first_published_at

    async def test__unpublish_recipe__keeps_published_at(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Unpublish returns to draft without clearing published_at."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        published = await recipe_service.publish_recipe(db_session, created.id, "chef-a")
        published_at = published.published_at

        recipe = await recipe_service.unpublish_recipe(db_session, created.id, "chef-a")
        assert recipe.status == RecipeStatus.DRAFT
        assert recipe.published_at == published_at

    async def test__republish__keeps_original_published_at(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """published_at is set once, across publish/unpublish/publish."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        first = await recipe_service.publish_recipe(db_session, created.id, "chef-a")
        published_at = first.published_at

        await recipe_service.unpublish_recipe(db_session, created.id, "chef-a")
        recipe = await recipe_service.publish_recipe(db_session, created.id, "chef-a")
        assert recipe.published_at == published_at

    @pytest.mark.parametrize("action", ["publish", "unpublish"])
    async def test__lifecycle__archived_recipe_rejected(
        self,
        db_session: AsyncSession,
        make_user: MakeUser,
        recipe_data: RecipeData,
        action: str,
    ) -> None:
        """Archived is terminal for publish and unpublish."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        created.status = RecipeStatus.ARCHIVED
        await db_session.flush()

        operation = getattr(recipe_service, f"{action}_recipe")
        with pytest.raises(InvalidRequestError):
            await operation(db_session, created.id, "chef-a")

    @pytest.mark.parametrize("action", ["publish", "unpublish", "delete"])
    async def test__lifecycle__non_owner_forbidden_and_unchanged(
        self,
        db_session: AsyncSession,
        make_user: MakeUser,
        recipe_data: RecipeData,
        action: str,
    ) -> None:
        """Non-owners get ForbiddenError and the recipe is left as it was."""
        await make_user("chef-a")
        await make_user("chef-b")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        recipe_id = created.id

        operation = getattr(recipe_service, f"{action}_recipe")
        with pytest.raises(ForbiddenError) as exc_info:
            await operation(db_session, recipe_id, "chef-b")
        assert exc_info.value.message == f"Not authorized to {action} this recipe"

        recipe = await db_session.get(Recipe, recipe_id, populate_existing=True)
        assert recipe is not None
        assert recipe.status == RecipeStatus.DRAFT
        assert recipe.published_at is None
        assert recipe.title == "Tomato Basil Pasta"

    async def test__delete_recipe__removes_and_decrements(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Delete removes the recipe and decrements recipes_created."""
        user = await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        recipe_id = created.id

        await recipe_service.delete_recipe(db_session, recipe_id, "chef-a")

        assert await db_session.get(Recipe, recipe_id) is None
        await db_session.refresh(user)
        assert user.recipes_created == 0

    async def test__delete_recipe__missing_raises_not_found(
        self, db_session: AsyncSession,
    ) -> None:
        """Deleting a nonexistent recipe raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await recipe_service.delete_recipe(db_session, 9999, "chef-a")


class TestSocialCounters:
    """Tests for likes, saves and ratings."""

    async def test__like_recipe__like_and_unlike(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Likes go up on like and down on unlike."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        assert await recipe_service.like_recipe(db_session, created.id, "like") == 1
        assert await recipe_service.like_recipe(db_session, created.id, "like") == 2
        assert await recipe_service.like_recipe(db_session, created.id, "unlike") == 1

    async def test__like_recipe__unlike_floors_at_zero(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Unliking at zero clamps silently instead of failing."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        assert await recipe_service.like_recipe(db_session, created.id, "unlike") == 0
        assert await recipe_service.like_recipe(db_session, created.id, "like") == 1

    async def test__like_recipe__missing_raises_not_found(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Liking a nonexistent recipe fails and changes nothing."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        with pytest.raises(NotFoundError):
            await recipe_service.like_recipe(db_session, created.id + 1000, "like")

        recipe = await db_session.get(Recipe, created.id, populate_existing=True)
        assert recipe.likes == 0

    async def test__like_recipe__invalid_action(
        self, db_session: AsyncSession,
    ) -> None:
        """Only like and unlike are accepted."""
        with pytest.raises(InvalidRequestError):
            await recipe_service.like_recipe(db_session, 1, "love")

    async def test__like_recipe__does_not_bump_updated_at(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Counter changes are not edits."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        updated_at = created.updated_at

        await asyncio.sleep(0.01)
        await recipe_service.like_recipe(db_session, created.id, "like")

        recipe = await db_session.get(Recipe, created.id, populate_existing=True)
        assert recipe.updated_at == updated_at

    async def test__save_recipe__save_and_unsave(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Saves follow the same floor-at-zero rule as likes."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        assert await recipe_service.save_recipe(db_session, created.id, "save") == 1
        assert await recipe_service.save_recipe(db_session, created.id, "unsave") == 0
        assert await recipe_service.save_recipe(db_session, created.id, "unsave") == 0

    async def test__rate_recipe__running_average(
        self, db_session: AsyncSession, make_user: MakeUser, recipe_data: RecipeData,
    ) -> None:
        """Ratings fold into a running average."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())

        assert await recipe_service.rate_recipe(db_session, created.id, 5) == (5.0, 1)
        average, count = await recipe_service.rate_recipe(db_session, created.id, 4)
        assert count == 2
        assert average == pytest.approx(4.5)

    @pytest.mark.parametrize("score", [0, 6])
    async def test__rate_recipe__score_out_of_range(
        self, db_session: AsyncSession, score: int,
    ) -> None:
        """Scores outside 1..5 are rejected."""
        with pytest.raises(InvalidRequestError):
            await recipe_service.rate_recipe(db_session, 1, score)

    async def test__like_recipe__concurrent_likes_are_not_lost(
        self, database: Database, make_user: MakeUser, recipe_data: RecipeData,
        db_session: AsyncSession,
    ) -> None:
        """Two concurrent likes on separate sessions both land."""
        await make_user("chef-a")
        created = await recipe_service.create_recipe(db_session, "chef-a", recipe_data())
        await db_session.commit()

        async def like_once() -> int:
            async with database.session() as session:
                return await recipe_service.like_recipe(session, created.id, "like")

        results = await asyncio.gather(like_once(), like_once())
        assert sorted(results) == [1, 2]

        async with database.session() as session:
            recipe = await session.get(Recipe, created.id)
            assert recipe.likes == 2
