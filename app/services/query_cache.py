"""Short-lived response cache for listing queries.

Two interchangeable backends share the same async interface:
``get(key)``, ``set(key, value, ttl)`` and ``invalidate_all()``. Values must
be JSON-serializable; callers pass them through ``jsonable_encoder`` first.
"""
import json
import time
from typing import Any, Dict, Optional, Protocol

from redis.asyncio import Redis
from structlog import get_logger

from app.config import Settings

logger = get_logger(__name__)


def make_cache_key(endpoint: str, params: Dict[str, Any]) -> str:
    """Stable, order-independent key for a parameter set."""
    parts = [
        f"{name}={json.dumps(params[name], sort_keys=True, default=str)}"
        for name in sorted(params)
    ]
    return f"{endpoint}:{'&'.join(parts)}"


class QueryCache(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl: int) -> None: ...

    async def invalidate_all(self) -> None: ...

    async def close(self) -> None: ...


class InMemoryQueryCache:
    """Process-local TTL cache. Expired entries are dropped lazily on read
    and swept whenever the store grows past ``max_entries``."""

    def __init__(self, max_entries: int = 1000, clock=time.monotonic):
        self._entries: Dict[str, tuple[float, Any]] = {}
        self._max_entries = max_entries
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        if len(self._entries) >= self._max_entries:
            self._sweep()
        self._entries[key] = (self._clock() + ttl, value)

    async def invalidate_all(self) -> None:
        self._entries.clear()

    async def close(self) -> None:
        self._entries.clear()

    def _sweep(self) -> None:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Query cache swept expired entries", cleaned=len(expired))
        # Still full of live entries: drop the oldest insertions.
        while len(self._entries) >= self._max_entries:
            self._entries.pop(next(iter(self._entries)))

    def __len__(self) -> int:
        return len(self._entries)


class RedisQueryCache:
    """Redis-backed cache shared across worker processes.

    Every key is namespaced with ``prefix`` so ``invalidate_all`` only removes
    our own entries.
    """

    def __init__(self, redis: Redis, prefix: str = "listings-cache:"):
        self._redis = redis
        self._prefix = prefix

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._redis.get(self._prefix + key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        await self._redis.set(self._prefix + key, json.dumps(value), ex=ttl)

    async def invalidate_all(self) -> None:
        keys = [k async for k in self._redis.scan_iter(match=f"{self._prefix}*")]
        if keys:
            await self._redis.delete(*keys)
        logger.info("Query cache invalidated", backend="redis", removed=len(keys))

    async def close(self) -> None:
        await self._redis.aclose()


def build_query_cache(settings: Settings) -> QueryCache:
    if settings.CACHE_BACKEND == "redis":
        return RedisQueryCache(Redis.from_url(settings.REDIS_URL))
    return InMemoryQueryCache()
