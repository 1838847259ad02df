import logging

from fastapi import APIRouter, Query

from forum import db
from forum.dependencies import AdminGuard, OptionalBus
from forum.errors import NotFoundError
from forum.models.bookings import AvailableSlot, EventSlot, RegenerationResult
from forum.producers import slot_producer

logger = logging.getLogger("forum.slots")
router = APIRouter(tags=["slots"])


@router.get("/offers/{offer_id}/slots", response_model=list[AvailableSlot])
async def list_available_slots(offer_id: int) -> list[AvailableSlot]:
    if await db.get_offer(offer_id) is None:
        raise NotFoundError("Offer not found", resource_type="offer", resource_id=str(offer_id))
    slots = await db.list_available_slots(offer_id)
    return [AvailableSlot(**s) for s in slots]


@router.get("/admin/events/{event_id}/slots", response_model=list[EventSlot])
async def list_event_slots(
    event_id: int,
    _admin: AdminGuard,
    include_inactive: bool = Query(True, description="Include deactivated slots"),
) -> list[EventSlot]:
    slots = await db.list_event_slots(event_id, include_inactive=include_inactive)
    return [EventSlot(**s) for s in slots]


@router.post("/admin/events/{event_id}/slots/regenerate", response_model=RegenerationResult)
async def regenerate_slots(event_id: int, _admin: AdminGuard, bus: OptionalBus) -> RegenerationResult:
    logger.info("POST /admin/events/%s/slots/regenerate", event_id)
    result = await db.regenerate_event_slots(event_id)
    await slot_producer.slots_regenerated(bus, result)
    return RegenerationResult(**result)
