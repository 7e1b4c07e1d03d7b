"""
Redis access for the identity cache.

Redis is an optional accelerator here: every read falls through to the
database and every write is best-effort. When Redis is disabled or
unreachable the client answers like an empty cache instead of raising.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_CONNECTIONS = 10
SOCKET_TIMEOUT_SECONDS = 2.0


class RedisClient:
    """Pooled async Redis client whose operations never raise RedisError."""

    def __init__(self, url: str, enabled: bool = True) -> None:
        self._url = url
        self._enabled = enabled
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        if not self._enabled:
            logger.info("redis_disabled")
            return
        pool = ConnectionPool.from_url(
            self._url,
            max_connections=MAX_CONNECTIONS,
            socket_timeout=SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
        )
        client = Redis(connection_pool=pool)
        try:
            await client.ping()
        except RedisError as e:
            logger.warning("redis_unavailable", extra={"error": str(e)})
            await client.aclose()
            await pool.aclose()
            return
        self._pool = pool
        self._client = client
        logger.info("redis_connected")

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        if self._pool is not None:
            await self._pool.aclose()
        self._client = None
        self._pool = None
        logger.info("redis_closed")

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def _call(
        self,
        op: str,
        fn: Callable[[Redis], Awaitable[T]],
        fallback: T,
    ) -> T:
        """Run one command, or return fallback when Redis is absent or failing."""
        if self._client is None:
            return fallback
        try:
            return await fn(self._client)
        except RedisError as e:
            logger.warning("redis_command_failed", extra={"op": op, "error": str(e)})
            return fallback

    async def ping(self) -> bool:
        return bool(await self._call("ping", lambda r: r.ping(), False))

    async def get(self, key: str) -> bytes | None:
        """Cached value for key, or None on a miss or when Redis is unavailable."""
        return await self._call("get", lambda r: r.get(key), None)

    async def setex(self, key: str, seconds: int, value: str | bytes) -> bool:
        """Store value for `seconds`; False means nothing was cached."""

        async def _set(r: Redis) -> Any:
            await r.setex(key, seconds, value)
            return True

        return await self._call("setex", _set, False)

    async def delete(self, *keys: str) -> bool:
        async def _delete(r: Redis) -> Any:
            await r.delete(*keys)
            return True

        return await self._call("delete", _delete, False)


class _RedisState:
    client: RedisClient | None = None


_state = _RedisState()


def get_redis_client() -> RedisClient | None:
    """The client installed by the app lifespan, if any."""
    return _state.client


def set_redis_client(client: RedisClient | None) -> None:
    _state.client = client
