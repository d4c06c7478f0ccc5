"""Redis store for caching, locks and real-time channels.

Handles:
- Caching with TTL policies
- Distributed locks (one search reindex at a time)
- Pub/sub channels for direct-message threads

TTL policies:
- Verified auth tokens: ~1 minute (AUTH_CACHE_TTL)
- Platform stats for the assistant: 5 minutes
- Reindex lock: 15 minutes
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from quantum5ocial.settings import get_settings

# TTL constants (in seconds)
TTL_PLATFORM_STATS = 300  # 5 minutes
TTL_REINDEX_LOCK = 900  # 15 minutes

# Key prefixes
PREFIX_AUTH = "auth:user:"
PREFIX_STATS = "stats:"
PREFIX_LOCK = "lock:"
PREFIX_DM_CHANNEL = "dm:thread:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


class RedisUnavailableError(RuntimeError):
    """Redis is not initialized (startup failed or it was never configured)."""


# Everything a caller treats as "Redis is down" where Redis is optional
REDIS_ERRORS = (RedisUnavailableError, RedisError)


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    # A client that failed its ping is never kept.
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise
    _redis = client
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RedisUnavailableError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_delete(key: str) -> None:
    """Delete value from cache."""
    await _get_redis().delete(key)


async def cache_get_json(key: str) -> dict[str, Any] | None:
    """Get JSON value from cache."""
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: dict[str, Any], ttl: int) -> None:
    """Set JSON value in cache."""
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Specialized cache operations
# ============================================================


async def get_auth_user_cache(token_hash: str) -> str | None:
    """Get the user id previously verified for a token hash."""
    return await cache_get(f"{PREFIX_AUTH}{token_hash}")


async def set_auth_user_cache(token_hash: str, user_id: str, ttl: int) -> None:
    """Remember a verified token hash -> user id mapping."""
    await cache_set(f"{PREFIX_AUTH}{token_hash}", user_id, ttl)


async def get_platform_stats_cache() -> dict[str, Any] | None:
    """Get cached platform stats used in the assistant prompt."""
    return await cache_get_json(f"{PREFIX_STATS}platform")


async def set_platform_stats_cache(stats: dict[str, Any]) -> None:
    """Cache platform stats (TTL 5 minutes)."""
    await cache_set_json(f"{PREFIX_STATS}platform", stats, TTL_PLATFORM_STATS)


# ============================================================
# Distributed locks
# ============================================================


async def acquire_lock(key: str, ttl: int = TTL_REINDEX_LOCK) -> bool:
    """Acquire a distributed lock.

    Args:
        key: Lock key.
        ttl: Lock timeout in seconds.

    Returns:
        True if lock acquired, False if already locked.
    """
    lock_key = f"{PREFIX_LOCK}{key}"
    # SET NX (only if not exists) with TTL
    result = await _get_redis().set(lock_key, "1", nx=True, ex=ttl)
    return result is not None


async def release_lock(key: str) -> None:
    """Release a distributed lock."""
    await cache_delete(f"{PREFIX_LOCK}{key}")


# ============================================================
# Direct-message channels
# ============================================================


def dm_channel(thread_id: str) -> str:
    """Pub/sub channel name for a DM thread."""
    return f"{PREFIX_DM_CHANNEL}{thread_id}"


async def publish_dm_message(thread_id: str, payload: dict[str, Any]) -> int:
    """Publish a new message on the thread channel.

    Returns:
        Number of subscribers that received it.
    """
    return await _get_redis().publish(dm_channel(thread_id), json.dumps(payload, default=str))


async def subscribe_dm_thread(thread_id: str) -> AsyncIterator[dict[str, Any]]:
    """Yield messages published on a thread channel until the consumer stops."""
    pubsub = _get_redis().pubsub()
    await pubsub.subscribe(dm_channel(thread_id))
    try:
        async for item in pubsub.listen():
            if item.get("type") != "message":
                continue
            try:
                yield json.loads(item["data"])
            except (json.JSONDecodeError, TypeError):
                logger.warning(f"Dropping malformed DM event on {dm_channel(thread_id)}")
    finally:
        await pubsub.unsubscribe(dm_channel(thread_id))
        await pubsub.aclose()
