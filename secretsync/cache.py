"""Redis cache for secretsync search results."""

import json
import logging
from typing import Any, Optional

import redis

from secretsync.constants import CACHE_TTL

logger = logging.getLogger(__name__)


class Cache:
    """
    Thin JSON cache over Redis.

    Cache errors are logged and swallowed.
    A cache built without a client is disabled and always misses.
    """

    def __init__(self, client: Optional["redis.Redis"] = None, prefix: str = "secretsync"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: Optional[str]) -> "Cache":
        """Create a cache from a Redis URL (None disables caching)."""
        if not url:
            return cls(None)
        return cls(redis.Redis.from_url(url, decode_responses=True))

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.enabled:
            return None
        try:
            value = self.client.get(self._key(key))
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, ValueError) as e:
            logger.warning("Cache get error: %s", e)
            return None

    def set(self, key: str, value: Any, ttl: int = CACHE_TTL["search"]) -> bool:
        """Set value in cache with TTL."""
        if not self.enabled:
            return False
        try:
            self.client.setex(self._key(key), ttl, json.dumps(value))
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning("Cache set error: %s", e)
            return False

    def delete(self, pattern: str) -> bool:
        """Delete cache keys matching pattern."""
        if not self.enabled:
            return False
        try:
            keys = list(self.client.scan_iter(match=self._key(pattern)))
            if keys:
                self.client.delete(*keys)
            return True
        except redis.RedisError as e:
            logger.warning("Cache delete error: %s", e)
            return False

    def clear_search(self) -> bool:
        """Invalidate all cached search results."""
        return self.delete("search:*")


NULL_CACHE = Cache(None)
