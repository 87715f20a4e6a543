"""
Redis TTL Cache
Shared cache with the same contract as MemoryCache

Entries are JSON strings stored with SET ... EX; a Redis set indexes the keys
so clear/cleanup/size never need KEYS. Hit/miss counters are per process.
Redis failures are logged and degrade to a miss (reads) or a no-op (writes).
"""

import json
import threading
from datetime import datetime
from typing import Any, Dict, Optional

import redis
from loguru import logger

from ..schemas import CacheStats
from .redis_client import check_redis_health


class RedisCache:
    """
    Redis-backed result cache

    Usage:
        cache = RedisCache(get_redis_client(), default_ttl=1800)
        cache.set("abc123", {"scores": []})
        cache.get("abc123")
    """

    def __init__(self, client: redis.Redis, default_ttl: int = 3600, key_prefix: str = "itinerary:"):
        self.redis = client
        self.default_ttl = default_ttl
        self.key_prefix = key_prefix
        self.index_key = f"{key_prefix}index"

        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._last_clear_time = datetime.utcnow()

        logger.info(f"Redis cache initialized: prefix={key_prefix}, ttl={default_ttl}s")

    @property
    def backend(self) -> str:
        return "redis"

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        lifetime = ttl if ttl is not None else self.default_ttl
        try:
            payload = json.dumps(value, default=str)
            self.redis.set(self._key(key), payload, ex=lifetime)
            self.redis.sadd(self.index_key, key)
            logger.debug(f"Cached {key} in Redis for {lifetime}s")
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Redis cache set error for {key}: {e}")

    def get(self, key: str) -> Optional[Any]:
        try:
            payload = self.redis.get(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Redis cache get error for {key}: {e}")
            payload = None

        value = None
        if payload is not None:
            try:
                value = json.loads(payload)
            except ValueError as e:
                logger.error(f"Redis cache decode error for {key}: {e}")
                payload = None

        with self._lock:
            if payload is None:
                self._misses += 1
                return None
            self._hits += 1

        return value

    def has(self, key: str) -> bool:
        try:
            return bool(self.redis.exists(self._key(key)))
        except redis.RedisError as e:
            logger.error(f"Redis cache exists error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            self.redis.srem(self.index_key, key)
            return bool(self.redis.delete(self._key(key)))
        except redis.RedisError as e:
            logger.error(f"Redis cache delete error for {key}: {e}")
            return False

    def cleanup(self) -> int:
        """Drop index members whose entries Redis already expired"""
        try:
            stale = [k for k in self.redis.smembers(self.index_key) if not self.redis.exists(self._key(k))]
            if stale:
                self.redis.srem(self.index_key, *stale)
                logger.debug(f"Pruned {len(stale)} expired keys from Redis index")
            return len(stale)
        except redis.RedisError as e:
            logger.error(f"Redis cache cleanup error: {e}")
            return 0

    def clear(self) -> None:
        try:
            keys = list(self.redis.smembers(self.index_key))
            if keys:
                self.redis.delete(*[self._key(k) for k in keys])
            self.redis.delete(self.index_key)
            logger.info(f"Redis cache cleared ({len(keys)} entries)")
        except redis.RedisError as e:
            logger.error(f"Error clearing Redis cache: {e}")

        with self._lock:
            self._hits = 0
            self._misses = 0
            self._last_clear_time = datetime.utcnow()

    def size(self) -> int:
        self.cleanup()
        try:
            return int(self.redis.scard(self.index_key))
        except redis.RedisError as e:
            logger.error(f"Redis cache size error: {e}")
            return 0

    def get_stats(self) -> CacheStats:
        size = self.size()
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hit_rate=self._hits / total if total else 0.0,
                total_hits=self._hits,
                total_misses=self._misses,
                cache_size=size,
                last_clear_time=self._last_clear_time
            )

    def get_cache_info(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "key_prefix": self.key_prefix,
            "default_ttl": self.default_ttl,
            "healthy": check_redis_health(self.redis),
            "stats": self.get_stats().model_dump(mode="json"),
        }

    def start_sweeper(self) -> None:
        """Redis expires keys itself; size() prunes the index before counting"""

    def shutdown(self) -> None:
        pass
