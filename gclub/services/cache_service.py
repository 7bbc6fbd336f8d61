"""Redis cache service for read-mostly reference data (role snapshots)."""

import json
import logging
from typing import Optional, Any
import redis

from gclub.core.config import settings

logger = logging.getLogger("gclub")

_REDIS_ERRORS = (redis.ConnectionError, redis.TimeoutError)


class CacheService:
    """Redis-backed caching service. Failures degrade to cache misses."""

    def __init__(self):
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=1,
                socket_timeout=1,
            )
        return self._client

    @staticmethod
    def role_key(role_id: int) -> str:
        return f"role:{role_id}"

    def get(self, key: str) -> Optional[str]:
        """Get a cached value by key."""
        try:
            return self.client.get(key)
        except _REDIS_ERRORS:
            logger.debug("Cache unavailable, miss on %s", key)
            return None

    def set(self, key: str, value: str, ttl_seconds: int = 300) -> None:
        """Set a cached value with TTL."""
        try:
            self.client.setex(key, ttl_seconds, value)
        except _REDIS_ERRORS:
            logger.debug("Cache unavailable, skipped write of %s", key)

    def get_json(self, key: str) -> Optional[Any]:
        """Get and parse a JSON cached value."""
        raw = self.get(key)
        if raw:
            return json.loads(raw)
        return None

    def set_json(self, key: str, value: Any, ttl_seconds: int = 300) -> None:
        """Serialize and cache a JSON value."""
        self.set(key, json.dumps(value, default=str), ttl_seconds)

    def delete(self, *keys: str) -> None:
        """Delete cached keys."""
        if not keys:
            return
        try:
            self.client.delete(*keys)
        except _REDIS_ERRORS:
            logger.warning("Cache unavailable, could not invalidate %s", ", ".join(keys))

    def health_check(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(self.client.ping())
        except _REDIS_ERRORS:
            return False


cache_service = CacheService()
