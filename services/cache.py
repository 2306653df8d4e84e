# services/cache.py
"""
Cache service with Redis backend (when REDIS_URL is set) or no-op fallback.
Redis failures are logged and treated as cache misses.
"""
import os
import json
import logging
from typing import Any, Optional

import redis as redis_lib

logger = logging.getLogger(__name__)


class _NoopCache:
    """No-operation cache for when Redis is not configured or unreachable."""
    backend = "noop"

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ex: int = None) -> bool:
        return True

    def delete(self, key: str) -> int:
        return 0

    def delete_prefix(self, prefix: str) -> int:
        return 0


class _RedisCache:
    """Redis-backed cache."""
    backend = "redis"

    def __init__(self, client):
        self._r = client

    def get(self, key: str) -> Optional[str]:
        try:
            return self._r.get(key)
        except redis_lib.RedisError as e:
            logger.warning(f"Redis get failed: {e}")
            return None

    def set(self, key: str, value: str, ex: int = None) -> bool:
        try:
            return bool(self._r.set(key, value, ex=ex))
        except redis_lib.RedisError as e:
            logger.warning(f"Redis set failed: {e}")
            return False

    def delete(self, key: str) -> int:
        try:
            return self._r.delete(key)
        except redis_lib.RedisError as e:
            logger.warning(f"Redis delete failed: {e}")
            return 0

    def delete_prefix(self, prefix: str) -> int:
        """Delete all keys with the given prefix using SCAN to avoid blocking."""
        count = 0
        cursor = 0
        try:
            while True:
                cursor, keys = self._r.scan(cursor=cursor, match=f"{prefix}*", count=500)
                if keys:
                    count += self._r.delete(*keys)
                if cursor == 0:
                    break
        except redis_lib.RedisError as e:
            logger.warning(f"Redis delete_prefix failed: {e}")
        return count


def get_json(key: str) -> Optional[Any]:
    raw = cache.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Discarding unreadable cache entry {key}")
        cache.delete(key)
        return None


def set_json(key: str, value: Any, ex: int = None) -> bool:
    return cache.set(key, json.dumps(value, default=str), ex=ex)


def _make_cache():
    """Create cache instance - Redis if configured and reachable, otherwise no-op."""
    url = os.getenv("REDIS_URL")
    if not url:
        return _NoopCache()

    if not url.startswith(('redis://', 'rediss://', 'unix://')):
        logger.warning("Invalid REDIS_URL scheme - must start with redis://, rediss://, or unix://")
        return _NoopCache()

    try:
        client = redis_lib.from_url(url, decode_responses=True, socket_connect_timeout=5)
        client.ping()
        logger.info("✅ Cache service connected to Redis")
        return _RedisCache(client)
    except redis_lib.RedisError as e:
        logger.warning(f"Redis connection failed, using no-op cache: {e}")
        return _NoopCache()


cache = _make_cache()
