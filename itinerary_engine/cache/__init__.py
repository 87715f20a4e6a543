"""
Cache Module
In-memory and Redis result caches behind one interface
"""

from typing import Union

from loguru import logger

from .keys import generate_cache_key, normalize_preferences, fingerprint
from .memory_cache import MemoryCache
from .redis_cache import RedisCache
from .redis_client import get_redis_client, check_redis_health

CacheService = Union[MemoryCache, RedisCache]


def create_cache_service(backend: str = "memory", **options) -> CacheService:
    """
    Build a cache service

    Args:
        backend: "memory" or "redis"
        **options: memory - max_size, default_ttl, sweep_interval, clock
                   redis - client or host/port/db/password, default_ttl, key_prefix

    Raises:
        ValueError: For an unknown backend
    """
    if backend == "memory":
        return MemoryCache(**options)

    if backend == "redis":
        client = options.pop("client", None)
        if client is None:
            client = get_redis_client(
                host=options.pop("host", "localhost"),
                port=options.pop("port", 6379),
                db=options.pop("db", 0),
                password=options.pop("password", "")
            )
        return RedisCache(client, **options)

    logger.error(f"Unknown cache backend: {backend}")
    raise ValueError(f"Unknown cache backend: {backend}")


__all__ = [
    "CacheService",
    "create_cache_service",
    "generate_cache_key",
    "normalize_preferences",
    "fingerprint",
    "MemoryCache",
    "RedisCache",
    "get_redis_client",
    "check_redis_health"
]
