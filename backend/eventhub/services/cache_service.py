"""
Redis caching service for public event listings.

CACHING STRATEGY
================

What we cache:
  - Anonymous event listing pages (JSON-serialized Page responses)
  - Cache key: "events:list:" + the sorted query filters, e.g.
    "events:list:category_id=3&limit=10&page=1"

Why only anonymous pages:
  - Everyone without a token sees exactly the same result for the same
    filters; organizer/admin listings depend on the caller
  - participant_count changes with every registration, so TTL is short
    and every event write invalidates

Invalidation strategy:
  - Any event create/update/delete, transition, registration or the
    finished-events sweep deletes all "events:list:*" keys (SCAN)
  - TTL-based expiry as safety net
  - Redis being down means no cache, never a failed request
"""

import json
from typing import Any, Optional

import redis.asyncio as redis

from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def make_event_list_key(filters: dict[str, Any]) -> str:
    parts = [f"{k}={v}" for k, v in sorted(filters.items()) if v is not None]
    return EVENT_LIST_PREFIX + "&".join(parts)


async def get_cached_events(filters: dict[str, Any]) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = make_event_list_key(filters)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_events(filters: dict[str, Any], data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = make_event_list_key(filters)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_event_cache() -> None:
    """Delete every cached listing page."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=EVENT_LIST_PREFIX + "*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
