"""
Shared pytest fixtures.

Every test gets its own SQLite file database (aiosqlite) with the schema
created from the models. Redis is disabled, so identity lookups always hit
the database. The API client runs in dev mode: requests without an
X-User-Subject header act as DEV_SUBJECT.
"""
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["REDIS_ENABLED"] = "false"
os.environ["DEV_MODE"] = "true"
os.environ["DEV_SUBJECT"] = "dev-user"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from api.main import app  # noqa: E402
from core.config import Settings  # noqa: E402
from core.redis import RedisClient, set_redis_client  # noqa: E402
from db.session import Database  # noqa: E402
from models import Base, User  # noqa: E402
from schemas.recipe import RecipeCreate  # noqa: E402
from schemas.user import IdentityHints  # noqa: E402
from services.identity_service import resolve_identity  # noqa: E402

DEV_SUBJECT = "dev-user"


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database]:
    """A fresh file-backed database with all tables created."""
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        storage_timeout_seconds=30.0,
    )
    database = await Database.open(settings, retries=1, retry_delay=0)
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield database
    await database.close()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    """A session for service-level tests; tests flush, nothing needs committing."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def redis_client() -> AsyncGenerator[RedisClient]:
    """A disabled Redis client installed as the global client."""
    client = RedisClient("redis://localhost:6379", enabled=False)
    await client.connect()
    set_redis_client(client)
    yield client
    set_redis_client(None)
    await client.close()


@pytest.fixture
async def client(
    database: Database,
    redis_client: RedisClient,  # noqa: ARG001
) -> AsyncGenerator[AsyncClient]:
    """API client with the dev user already registered."""
    app.state.database = database
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post(
            "/users/",
            json={"email": "dev@example.com", "display_name": "Dev User"},
        )
        assert response.status_code == 201
        yield ac


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory creating users through the identity resolver."""

    async def _make_user(subject: str, email: str | None = None, **hints: Any) -> User:
        user, _ = await resolve_identity(
            db_session,
            subject,
            IdentityHints(email=email or f"{subject}@example.com", **hints),
        )
        return user

    return _make_user


def recipe_payload(**overrides: Any) -> dict[str, Any]:
    """A valid recipe create payload; keyword arguments replace fields."""
    payload: dict[str, Any] = {
        "title": "Tomato Basil Pasta",
        "description": "Weeknight pasta with fresh basil.",
        "ingredients": [
            {"name": "spaghetti", "quantity": "200", "unit": "g"},
            {"name": "tomatoes", "quantity": "4"},
        ],
        "instructions": [
            {"text": "Boil the pasta."},
            {"text": "Toss with the sauce."},
        ],
        "cooking_time": {"prep": 10, "cook": 15},
        "servings": 2,
        "category": "main-course",
        "cuisine": "italian",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def recipe_data() -> Callable[..., RecipeCreate]:
    """Factory building validated RecipeCreate objects."""

    def _recipe_data(**overrides: Any) -> RecipeCreate:
        return RecipeCreate.model_validate(recipe_payload(**overrides))

    return _recipe_data


@pytest.fixture
def recipe_json() -> Callable[..., dict[str, Any]]:
    """Factory building raw JSON bodies for POST /recipes/."""
    return recipe_payload
