"""Redis-based read-through cache for building projections."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

import redis
from redis.exceptions import ConnectionError, RedisError

from hostel.core.config import settings

logger = logging.getLogger(__name__)

BUILDINGS_CACHE_KEY = "buildings:all"

# Redis connection pool
_redis_pool: Optional[redis.ConnectionPool] = None
_redis_client: Optional[redis.Redis] = None


def _get_redis_client() -> redis.Redis | _InMemoryCache:
    """Get or create Redis client."""
    global _redis_client, _redis_pool

    if _redis_client is None:
        try:
            _redis_pool = redis.ConnectionPool.from_url(
                settings.REDIS_CACHE_URL,
                max_connections=50,
                decode_responses=True,
                socket_connect_timeout=1,
            )
            client = redis.Redis(connection_pool=_redis_pool)
            client.ping()
            _redis_client = client
            logger.info(f"Redis cache connected: {settings.REDIS_CACHE_URL}")
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Failed to connect to Redis cache: {e}. Using fallback in-memory cache.")
            return _InMemoryCache()

    return _redis_client


class _InMemoryCache:
    """Fallback in-memory cache when Redis is unavailable.

    Entries expire like Redis keys so the staleness bound is the same.
    """

    def __init__(self):
        self._cache: dict[str, tuple[Any, Optional[float]]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            self._cache.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ex if ex else None
        self._cache[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()


class RedisCache:
    """Redis-based cache with TTL support."""

    def __init__(self, default_ttl: int = 300, enabled: bool = True):
        """
        Initialize cache.

        Args:
            default_ttl: Default time-to-live in seconds
            enabled: When False every lookup misses and writes are dropped
        """
        self.default_ttl = default_ttl
        self.enabled = enabled
        # Bumped on every delete; a load that straddles a delete is not stored.
        self._generations: dict[str, int] = {}
        self._client = _get_redis_client() if enabled else _InMemoryCache()

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.enabled:
            return None
        try:
            if isinstance(self._client, _InMemoryCache):
                return self._client.get(key)

            value = self._client.get(key)
            if value is None:
                return None

            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache get error for key {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set value in cache with TTL."""
        if not self.enabled:
            return
        try:
            ttl = ttl or self.default_ttl

            if isinstance(self._client, _InMemoryCache):
                self._client.set(key, value, ex=ttl)
                return

            if isinstance(value, (dict, list)):
                serialized = json.dumps(value)
            else:
                serialized = str(value)

            self._client.setex(key, ttl, serialized)
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache set error for key {key}: {e}")

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value for ``key``, loading and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached
        generation = self._generations.get(key, 0)
        value = loader()
        if self._generations.get(key, 0) != generation:
            logger.debug(f"{key} invalidated while loading; not caching")
            return value
        self.set(key, value, ttl=ttl)
        if self._generations.get(key, 0) != generation:
            self._drop(key)
        return value

    def _drop(self, key: str) -> None:
        try:
            self._client.delete(key)
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache delete error for key {key}: {e}")

    def delete(self, key: str) -> None:
        """Delete key from cache."""
        self._generations[key] = self._generations.get(key, 0) + 1
        self._drop(key)

    def clear(self) -> None:
        """Clear all cache entries."""
        try:
            if isinstance(self._client, _InMemoryCache):
                self._client.clear()
                return

            self._client.flushdb()
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Redis cache clear error: {e}")


# Global cache instance
_cache = RedisCache(
    default_ttl=settings.BUILDINGS_CACHE_TTL_SECONDS,
    enabled=settings.CACHE_ENABLED,
)


def get_cache() -> RedisCache:
    """Get global cache instance."""
    return _cache


def invalidate_buildings_cache() -> None:
    """Drop the cached building projection after an occupancy change."""
    _cache.delete(BUILDINGS_CACHE_KEY)
    logger.debug("Invalidated buildings cache")
