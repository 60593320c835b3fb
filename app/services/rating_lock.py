"""
Single-Flight Rating Lock - Procurement Rating Service
app/services/rating_lock.py

At most one rating run per submission id. Uses a Redis SET NX EX key when
Redis is reachable (covers several API workers) and always keeps an
in-process registry (covers one worker without Redis).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional, Set
from uuid import uuid4

import redis

from app.config import settings
from app.core.exceptions import RatingInProgressException
from app.services.cache import get_cache
from app.services.redis_cache import RedisCache

logger = logging.getLogger(__name__)


def lock_key(submission_id: str) -> str:
    return f"rating-lock:{submission_id}"


class RatingLock:
    """Rejects a second concurrent run for the same submission."""

    def __init__(
        self,
        cache_getter: Callable[[], Optional[RedisCache]] = get_cache,
        ttl_seconds: Optional[int] = None,
    ):
        self._cache_getter = cache_getter
        self.ttl_seconds = ttl_seconds or settings.RATING_LOCK_TTL_SECONDS
        self._held: Set[str] = set()

    def is_held(self, submission_id: str) -> bool:
        return submission_id in self._held

    @asynccontextmanager
    async def hold(self, submission_id: str) -> AsyncIterator[None]:
        """Hold the lock for the duration of the block or raise RatingInProgressException."""
        if self.is_held(submission_id):
            raise RatingInProgressException(submission_id)
        # claimed before any await so a concurrent run in this process sees it
        self._held.add(submission_id)

        token = uuid4().hex
        key = lock_key(submission_id)
        cache = None
        redis_held = False
        try:
            cache = await asyncio.to_thread(self._cache_getter)
            if cache is not None:
                try:
                    redis_held = await asyncio.to_thread(cache.acquire_lock, key, token, self.ttl_seconds)
                except redis.RedisError as e:
                    logger.warning(f"Redis lock unavailable for {submission_id}, using in-process lock: {e}")
                else:
                    if not redis_held:
                        raise RatingInProgressException(submission_id)
        except BaseException:
            self._held.discard(submission_id)
            raise

        try:
            yield
        finally:
            self._held.discard(submission_id)
            if redis_held:
                try:
                    await asyncio.to_thread(cache.release_lock, key, token)
                except redis.RedisError as e:
                    logger.warning(f"Failed to release rating lock for {submission_id}: {e}")
