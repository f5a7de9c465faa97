"""Event list cache.

Pages of the event list are cached in Redis for 15 minutes. A caller can
bypass the cache with ``refresh=true``; any event or registration change
drops every cached page. When Redis is down the cache is simply skipped.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

EVENT_LIST_CACHE_PREFIX = "events:list:"


def event_list_cache_key(params: dict[str, Any]) -> str:
    """Stable key for one combination of list filters."""
    digest = hashlib.sha1(json.dumps(params, sort_keys=True, default=str).encode()).hexdigest()  # noqa: S324
    return f"{EVENT_LIST_CACHE_PREFIX}{digest}"


async def get_cached_event_page(redis: aioredis.Redis | None, params: dict[str, Any]) -> dict[str, Any] | None:
    if redis is None:
        return None
    try:
        cached = await redis.get(event_list_cache_key(params))
    except RedisError:
        logger.warning("event_cache_read_failed", exc_info=True)
        return None
    return json.loads(cached) if cached else None


async def cache_event_page(
    redis: aioredis.Redis | None,
    params: dict[str, Any],
    payload: dict[str, Any],
    ttl_seconds: int,
) -> None:
    if redis is None:
        return
    try:
        await redis.set(event_list_cache_key(params), json.dumps(payload), ex=ttl_seconds)
    except RedisError:
        logger.warning("event_cache_write_failed", exc_info=True)


async def invalidate_event_pages(redis: aioredis.Redis | None) -> int:
    """Delete every cached event page. Returns the number of keys removed."""
    if redis is None:
        return 0
    try:
        keys = [key async for key in redis.scan_iter(match=f"{EVENT_LIST_CACHE_PREFIX}*")]
        if keys:
            await redis.delete(*keys)
    except RedisError:
        logger.warning("event_cache_invalidate_failed", exc_info=True)
        return 0
    return len(keys)
