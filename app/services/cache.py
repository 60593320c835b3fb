"""
Cache Service Singleton - Procurement Rating Service
app/services/cache.py

Provides a singleton Redis cache instance with TTL constants.
Gracefully handles Redis unavailability.
"""
import redis
from typing import Optional
from app.services.redis_cache import RedisCache
from app.config import settings

TTL_RANKINGS = settings.CACHE_TTL_RANKINGS

# Singleton instance
_cache: Optional[RedisCache] = None


def rankings_key(procurement_id: str) -> str:
    return f"rankings:{procurement_id}"


def get_cache() -> Optional[RedisCache]:
    """
    Get or create Redis cache instance.

    Returns:
        RedisCache instance if Redis is available, None otherwise.

    Note:
        Returns None if Redis is unavailable, allowing the application
        to continue functioning without caching (graceful degradation).
    """
    global _cache
    if _cache is None:
        try:
            _cache = RedisCache()
            _cache.client.ping()  # Test connection
        except (redis.RedisError, ConnectionError):
            _cache = None
    return _cache


def reset_cache() -> None:
    """
    Reset the cache singleton.

    Useful for testing or when Redis connection needs to be re-established.
    """
    global _cache
    _cache = None
