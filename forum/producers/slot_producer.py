"""Publishes slot availability changes after successful writes.

Publishing never fails the request that triggered it: the database write has
already committed, so a Redis error is logged and dropped.
"""

import logging
from typing import Any

from redis.exceptions import RedisError

from forum.bus import EventBus
from forum.config import get_settings
from forum.engine.rules import Outcome

logger = logging.getLogger(__name__)


def _enabled(event_bus: EventBus | None) -> bool:
    return event_bus is not None and get_settings().features.notifications


async def booking_created(event_bus: EventBus | None, outcome: Outcome, student_id: int) -> None:
    if not _enabled(event_bus) or not outcome.success:
        return
    try:
        await event_bus.publish_booking_created(outcome.booking_id, outcome.slot_id, student_id)
    except RedisError as e:
        logger.warning("Could not publish booking %s: %s", outcome.booking_id, e)


async def booking_cancelled(event_bus: EventBus | None, outcome: Outcome, student_id: int) -> None:
    if not _enabled(event_bus) or not outcome.success:
        return
    try:
        await event_bus.publish_booking_cancelled(outcome.booking_id, outcome.slot_id, student_id)
    except RedisError as e:
        logger.warning("Could not publish cancellation of booking %s: %s", outcome.booking_id, e)


async def slots_regenerated(event_bus: EventBus | None, result: dict[str, Any] | None) -> None:
    if not _enabled(event_bus) or not result:
        return
    try:
        await event_bus.publish_regenerated(result)
    except RedisError as e:
        logger.warning("Could not publish regeneration of event %s: %s", result.get("event_id"), e)
