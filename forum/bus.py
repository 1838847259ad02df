"""
Event bus for slot availability changes, backed by Redis pub/sub.
"""
import json
from datetime import UTC, datetime
from typing import Any, Final

import redis.asyncio as redis

from forum.events import (
    BookingCancelledEvent,
    BookingCreatedEvent,
    SlotsRegeneratedEvent,
    SlotUpdateEvent,
)

CHANNEL_SLOT_UPDATES: Final[str] = "slot_updates"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class EventBus:
    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    async def publish(self, event: SlotUpdateEvent) -> None:
        await self.redis_client.publish(CHANNEL_SLOT_UPDATES, json.dumps(event))

    async def publish_booking_created(self, booking_id: int, slot_id: int, student_id: int) -> None:
        event: BookingCreatedEvent = {
            "type": "booking_created",
            "booking_id": booking_id,
            "slot_id": slot_id,
            "student_id": student_id,
            "timestamp": _now_iso(),
        }
        await self.publish(event)

    async def publish_booking_cancelled(self, booking_id: int, slot_id: int, student_id: int) -> None:
        event: BookingCancelledEvent = {
            "type": "booking_cancelled",
            "booking_id": booking_id,
            "slot_id": slot_id,
            "student_id": student_id,
            "timestamp": _now_iso(),
        }
        await self.publish(event)

    async def publish_regenerated(self, result: dict[str, Any]) -> None:
        event: SlotsRegeneratedEvent = {
            "type": "slots_regenerated",
            "event_id": result["event_id"],
            "slots_created": result["slots_created"],
            "slots_removed": result["slots_removed"],
            "slots_deactivated": result["slots_deactivated"],
            "timestamp": _now_iso(),
        }
        await self.publish(event)
