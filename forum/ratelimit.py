"""Fixed-window rate limit on booking attempts, kept in Redis.

Best effort: with Redis missing or failing every attempt is allowed.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from forum.config import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "forum:ratelimit:booking:"


def _key(student_id: int) -> str:
    return f"{KEY_PREFIX}{student_id}"


async def allow_booking_attempt(redis_client: redis.Redis | None, student_id: int) -> bool:
    settings = get_settings()
    if redis_client is None or not settings.features.rate_limit:
        return True
    key = _key(student_id)
    try:
        # The window key is created with its TTL before counting; INCR keeps the TTL.
        await redis_client.set(key, 0, ex=settings.rate_limit.window_sec, nx=True)
        attempts = await redis_client.incr(key)
    except RedisError as e:
        logger.warning("Rate limit check skipped for student %s: %s", student_id, e)
        return True
    if attempts > settings.rate_limit.max_attempts:
        logger.info("Student %s exceeded %d booking attempts", student_id, settings.rate_limit.max_attempts)
        return False
    return True
