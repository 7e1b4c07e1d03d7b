"""FastAPI application entry point."""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import health, recipes, saved_links, users
from core.config import get_settings
from core.logging import configure_logging
from core.redis import RedisClient, set_redis_client
from db.session import Database
from services.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    RecipeShareError,
    StorageTimeoutError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

# Most specific class first; the first isinstance match wins
ERROR_STATUS_CODES: tuple[tuple[type[RecipeShareError], int], ...] = (
    (InvalidRequestError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageUnavailableError, 503),
    (StorageTimeoutError, 504),
)


def status_code_for(exc: RecipeShareError) -> int:
    """Map a domain error to its HTTP status; unknown subclasses are 500."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open storage and the identity cache on startup, close both on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)

    database = await Database.open(settings)
    app.state.database = database

    redis_client = RedisClient(settings.redis_url, enabled=settings.redis_enabled)
    await redis_client.connect()
    set_redis_client(redis_client)

    yield

    await redis_client.close()
    set_redis_client(None)
    await database.close()


app = FastAPI(
    title="Recipe Share API",
    description="Recipe authoring, discovery and saved external recipe links.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecipeShareError)
async def recipe_share_error_handler(request: Request, exc: RecipeShareError) -> JSONResponse:
    """Translate service-layer errors into JSON error responses."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.warning(
            "request_failed",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


app.include_router(health.router)
app.include_router(users.router)
app.include_router(recipes.router)
app.include_router(saved_links.router)
