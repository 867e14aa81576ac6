"""Redis client configuration and utilities."""

import json
from typing import Any, cast

import redis
import redis.asyncio as aioredis

from healthmate.config import settings
from healthmate.core.exceptions import ConflictException

# Global Redis client instance
_redis_client: redis.Redis | None = None


def _connection_kwargs() -> dict[str, Any]:
    return {
        "host": settings.redis_host,
        "port": settings.redis_port,
        "username": settings.redis_username,
        "password": settings.redis_password,
        "decode_responses": settings.redis_decode_responses,
        "socket_connect_timeout": 5,
        "socket_keepalive": True,
        "health_check_interval": 30,
    }


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(**_connection_kwargs())

    return _redis_client


def create_async_redis_client() -> aioredis.Redis:
    """Create a dedicated asyncio client; pub/sub listeners hold one connection each."""
    return aioredis.Redis(**_connection_kwargs())


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        client.ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class RateLimiter:
    """Fixed-window attempt counter."""

    def __init__(self, redis_client: redis.Redis):
        """Initialize rate limiter with Redis client."""
        self.redis = redis_client

    def is_limited(self, key: str, limit: int) -> bool:
        """Return True once ``key`` has reached ``limit`` attempts in the current window."""
        try:
            current = cast(str | None, self.redis.get(key))
            return current is not None and int(current) >= limit
        except Exception:
            # fail open
            return False

    def record(self, key: str, window: int = 60) -> int:
        """
        Count one attempt against ``key``.

        Args:
            key: Rate limit key (e.g. ``login:<email>``)
            window: Window length in seconds, started by the first attempt

        Returns:
            Attempts counted so far in the window
        """
        try:
            count = cast(int, self.redis.incr(key))
            if count == 1:
                self.redis.expire(key, window)
            return count
        except Exception:
            return 0

    def reset(self, key: str) -> None:
        """Forget all attempts for ``key``."""
        try:
            self.redis.delete(key)
        except Exception:
            pass


class CacheManager:
    """Redis-based cache manager."""

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def get(self, key: str) -> str | None:
        """Get value from cache."""
        try:
            return cast(str | None, self.redis.get(key))
        except Exception:
            return None

    def set(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        try:
            if ttl:
                self.redis.setex(key, ttl, value)
            else:
                self.redis.set(key, value)
            return True
        except Exception:
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        try:
            self.redis.delete(key)
            return True
        except Exception:
            return False

    def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        try:
            return bool(self.redis.exists(key))
        except Exception:
            return False

    def get_json(self, key: str) -> Any | None:
        """Get JSON value from cache and deserialize."""
        try:
            value = cast(str | None, self.redis.get(key))
            if value:
                return json.loads(value)
            return None
        except Exception:
            return None

    def set_json(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """Serialize and set JSON value in cache."""
        try:
            json_value = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, json_value)
            else:
                self.redis.set(key, json_value)
            return True
        except Exception:
            return False


class IdempotencyStore:
    """
    Remembers the response of a write so a repeated request key replays it.

    A key is reserved before the write runs, so a concurrent duplicate is
    turned away instead of performing the write a second time.
    """

    PREFIX = "idempotency"
    PENDING = "__pending__"

    def __init__(self, cache: CacheManager, ttl: int | None = None):
        self.cache = cache
        self.ttl = ttl or settings.idempotency_ttl_seconds

    def _key(self, scope: str, owner: str, key: str) -> str:
        return f"{self.PREFIX}:{scope}:{owner}:{key}"

    def lookup(self, scope: str, owner: str, key: str | None) -> Any | None:
        """Return the stored response for ``key`` or None."""
        if not key:
            return None
        stored = self.cache.get_json(self._key(scope, owner, key))
        return None if stored == self.PENDING else stored

    def reserve(self, scope: str, owner: str, key: str | None) -> Any | None:
        """
        Claim ``key`` for a new write, or return the response to replay.

        Returns None when the caller should perform the write. Without Redis
        the request proceeds unguarded.

        Raises:
            ConflictException: If a request with the same key is still running
        """
        if not key:
            return None

        cache_key = self._key(scope, owner, key)
        try:
            claimed = self.cache.redis.set(
                cache_key, json.dumps(self.PENDING), nx=True, ex=self.ttl
            )
        except Exception:
            return None
        if claimed:
            return None

        stored = self.cache.get_json(cache_key)
        if stored == self.PENDING:
            raise ConflictException("A request with this Idempotency-Key is already in progress")
        return stored

    def remember(self, scope: str, owner: str, key: str | None, response: Any) -> None:
        """Store ``response`` under ``key`` for the configured TTL."""
        if not key:
            return
        self.cache.set_json(self._key(scope, owner, key), response, ttl=self.ttl)

    def release(self, scope: str, owner: str, key: str | None) -> None:
        """Drop a reservation whose write failed so the key can be retried."""
        if key:
            self.cache.delete(self._key(scope, owner, key))
