"""Shared Redis cache in front of a PermissionSource.

Caches the raw records only; decisions are always recomputed from them. A
Redis failure falls through to the wrapped source, never to a default grant.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fleet_rbac.monitoring.metrics import permission_cache_total
from fleet_rbac.session.models import PermissionRecords

if TYPE_CHECKING:
    from fleet_rbac.session.source import PermissionSource

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "fleet_rbac:permissions"


def cache_key(user_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}:{user_id}"


class CachedPermissionSource:
    """PermissionSource decorator backed by a Redis string per user."""

    def __init__(self, inner: PermissionSource, redis: Any, ttl: int = 300) -> None:
        self._inner = inner
        self._redis = redis
        self._ttl = ttl

    @classmethod
    def from_url(cls, inner: PermissionSource, url: str, ttl: int = 300) -> CachedPermissionSource:
        from redis.asyncio import Redis

        return cls(inner, Redis.from_url(url, decode_responses=True), ttl=ttl)

    async def fetch(self, user_id: str) -> PermissionRecords:
        cached = await self._read(user_id)
        if cached is not None:
            return cached

        records = await self._inner.fetch(user_id)
        await self._write(user_id, records)
        return records

    async def invalidate(self, user_id: str) -> None:
        """Drop a user's cached records (call after role or grant changes)."""
        try:
            await self._redis.delete(cache_key(user_id))
        except Exception:
            logger.warning("Failed to invalidate permission cache for %s", user_id, exc_info=True)

    async def _read(self, user_id: str) -> PermissionRecords | None:
        try:
            raw = await self._redis.get(cache_key(user_id))
        except Exception:
            permission_cache_total.labels(result="error").inc()
            logger.debug("Permission cache read failed for %s", user_id, exc_info=True)
            return None

        if raw is None:
            permission_cache_total.labels(result="miss").inc()
            return None

        try:
            records = PermissionRecords.model_validate_json(raw)
        except ValueError:
            permission_cache_total.labels(result="error").inc()
            logger.warning("Discarding malformed cached permissions for %s", user_id)
            return None

        permission_cache_total.labels(result="hit").inc()
        return records

    async def _write(self, user_id: str, records: PermissionRecords) -> None:
        try:
            await self._redis.setex(cache_key(user_id), self._ttl, records.model_dump_json())
        except Exception:
            logger.debug("Permission cache write failed for %s", user_id, exc_info=True)

    async def close(self) -> None:
        await self._redis.aclose()
        close = getattr(self._inner, "close", None)
        if close is not None:
            await close()
