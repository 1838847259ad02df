"""Dependency injection for FastAPI endpoints.

Usage in controllers:
    from forum.dependencies import AdminGuard, OptionalBus

    @router.post("/admin/example")
    async def example(_admin: AdminGuard, bus: OptionalBus):
        ...

Redis and the event bus are optional: rate limiting and notifications are
best effort, so routes keep working while Redis is down.
"""

import secrets
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, Header

from forum import state
from forum.bus import EventBus
from forum.config import get_settings
from forum.errors import UnauthorizedError


def get_optional_redis() -> redis.Redis | None:
    return state.redis_client


def get_optional_event_bus() -> EventBus | None:
    return state.event_bus


def require_admin(x_admin_token: Annotated[str | None, Header()] = None) -> None:
    """Guard for admin routes: ``X-Admin-Token`` must match ``ADMIN_TOKEN``.

    An unset ``ADMIN_TOKEN`` locks the admin routes entirely.
    """
    expected = get_settings().admin.token
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise UnauthorizedError(detail="Invalid or missing admin token")


OptionalRedis = Annotated[redis.Redis | None, Depends(get_optional_redis)]
OptionalBus = Annotated[EventBus | None, Depends(get_optional_event_bus)]
AdminGuard = Annotated[None, Depends(require_admin)]
