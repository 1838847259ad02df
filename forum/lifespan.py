"""Application startup and shutdown.

Opens the Redis client, the event bus and the PostgreSQL pool, and mirrors
them into ``forum.state`` for the dependency functions.
"""

import logging
from dataclasses import dataclass

import redis.asyncio as redis
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from forum import db, state
from forum.bus import EventBus
from forum.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    redis_client: redis.Redis | None = None
    event_bus: EventBus | None = None
    db_enabled: bool = False


async def init_redis() -> redis.Redis:
    """Create the Redis client on a blocking connection pool."""
    settings = get_settings()

    redis_pool = RedisConnectionPool(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password if settings.redis.password else None,
        max_connections=settings.redis.max_connections,
        timeout=settings.redis.pool_timeout_sec,
        health_check_interval=settings.redis.health_check_interval,
        socket_timeout=settings.redis.socket_timeout,
        socket_connect_timeout=settings.redis.socket_connect_timeout,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=redis_pool)


async def init_database() -> bool:
    """Open the connection pool and run migrations.

    Returns:
        True if the database is usable, False if it is disabled or failed.
    """
    if not get_settings().features.db:
        logger.info("Database disabled (ENABLE_DB=0)")
        return False
    try:
        await db.init_pool()
        return True
    except Exception as e:
        logger.warning("Failed to initialize database: %s", e)
        return False


async def setup_resources(enable_db: bool = True) -> LifespanResources:
    resources = LifespanResources()

    resources.redis_client = await init_redis()
    resources.event_bus = EventBus(resources.redis_client)

    if enable_db:
        resources.db_enabled = await init_database()

    state.redis_client = resources.redis_client
    state.event_bus = resources.event_bus

    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    if resources.db_enabled:
        try:
            await db.close_pool()
        except Exception as e:
            logger.warning("Error closing database pool: %s", e)

    if resources.redis_client:
        await resources.redis_client.aclose()

    state.redis_client = None
    state.event_bus = None
