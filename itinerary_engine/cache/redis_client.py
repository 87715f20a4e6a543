"""
Redis Client Management
Handles Redis connections for the shared result cache
"""

import redis
from functools import lru_cache
from loguru import logger


@lru_cache(maxsize=4)
def get_redis_client(
    host: str = "localhost",
    port: int = 6379,
    db: int = 0,
    password: str = ""
) -> redis.Redis:
    """
    Get a Redis client singleton per connection target

    Returns:
        redis.Redis: Connected Redis client

    Raises:
        redis.ConnectionError: If cannot connect to Redis
    """
    try:
        client = redis.Redis(
            host=host,
            port=port,
            password=password or None,
            db=db,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5
        )

        # Test connection
        client.ping()

        logger.info(f"Redis connected: {host}:{port} (DB: {db})")

        return client

    except redis.ConnectionError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        logger.warning(
            "Redis is not available. Set CACHE_BACKEND=memory or start Redis: redis-server"
        )
        raise


def check_redis_health(client: redis.Redis) -> bool:
    """
    Check if Redis is healthy

    Returns:
        bool: True if Redis is accessible
    """
    try:
        client.ping()
        return True
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False
