import logging

from fastapi import APIRouter, Query, Response

from forum import db
from forum.dependencies import AdminGuard, OptionalBus
from forum.engine.phases import BookingLimits, PhaseWindows
from forum.errors import NotFoundError
from forum.models.bookings import RegenerationResult
from forum.models.catalog import (
    Event,
    EventCreate,
    EventUpdate,
    EventUpdated,
    PhaseConfigRequest,
    PhaseStatus,
    TimeRange,
    TimeRangeCreate,
    TimeRangeCreated,
)
from forum.producers import slot_producer

logger = logging.getLogger("forum.events")
router = APIRouter(tags=["events"])


def _not_found(event_id: int) -> NotFoundError:
    return NotFoundError("Event not found", resource_type="event", resource_id=str(event_id))


@router.get("/events", response_model=list[Event])
async def list_events(active_only: bool = Query(False, description="Only active events")) -> list[Event]:
    return [Event(**e) for e in await db.list_events(active_only=active_only)]


@router.get("/events/{event_id}", response_model=Event)
async def get_event(event_id: int) -> Event:
    event = await db.get_event(event_id)
    if event is None:
        raise _not_found(event_id)
    return Event(**event)


@router.get("/events/{event_id}/phase", response_model=PhaseStatus)
async def get_phase_status(event_id: int) -> PhaseStatus:
    status = await db.get_phase_status(event_id)
    if status is None:
        raise _not_found(event_id)
    return PhaseStatus(**status)


@router.get("/events/{event_id}/time-ranges", response_model=list[TimeRange])
async def list_time_ranges(event_id: int) -> list[TimeRange]:
    return [TimeRange(**r) for r in await db.list_time_ranges(event_id)]


@router.post("/admin/events", response_model=Event, status_code=201)
async def create_event(req: EventCreate, _admin: AdminGuard) -> Event:
    logger.info("POST /admin/events name=%s date=%s", req.name, req.event_date)
    event = await db.create_event(**req.model_dump())
    return Event(**event)


@router.patch("/admin/events/{event_id}", response_model=EventUpdated)
async def update_event(event_id: int, req: EventUpdate, _admin: AdminGuard, bus: OptionalBus) -> EventUpdated:
    event, regeneration = await db.update_event(event_id, req.model_dump(exclude_unset=True))
    await slot_producer.slots_regenerated(bus, regeneration)
    return EventUpdated(event=Event(**event), regeneration=regeneration)


@router.put("/admin/events/{event_id}/phase", response_model=Event)
async def update_phase_config(event_id: int, req: PhaseConfigRequest, _admin: AdminGuard) -> Event:
    logger.info("PUT /admin/events/%s/phase mode=%s phase=%s", event_id, req.phase_mode, req.current_phase)
    event = await db.update_phase_config(
        event_id,
        phase_mode=req.phase_mode,
        current_phase=req.current_phase,
        windows=PhaseWindows(
            phase1_start=req.phase1_start,
            phase1_end=req.phase1_end,
            phase2_start=req.phase2_start,
            phase2_end=req.phase2_end,
        ),
        limits=BookingLimits(phase1=req.phase1_booking_limit, phase2=req.phase2_booking_limit),
    )
    if event is None:
        raise _not_found(event_id)
    return Event(**event)


@router.post("/admin/events/{event_id}/deactivate", response_model=Event)
async def deactivate_event(event_id: int, _admin: AdminGuard) -> Event:
    event = await db.set_event_active(event_id, False)
    if event is None:
        raise _not_found(event_id)
    return Event(**event)


@router.post("/admin/events/{event_id}/activate", response_model=Event)
async def activate_event(event_id: int, _admin: AdminGuard) -> Event:
    event = await db.set_event_active(event_id, True)
    if event is None:
        raise _not_found(event_id)
    return Event(**event)


@router.delete("/admin/events/{event_id}", status_code=204)
async def delete_event(event_id: int, _admin: AdminGuard) -> Response:
    if not await db.delete_event(event_id):
        raise _not_found(event_id)
    return Response(status_code=204)


@router.post("/admin/events/{event_id}/time-ranges", response_model=TimeRangeCreated, status_code=201)
async def add_time_range(
    event_id: int,
    req: TimeRangeCreate,
    _admin: AdminGuard,
    bus: OptionalBus,
) -> TimeRangeCreated:
    logger.info(
        "POST /admin/events/%s/time-ranges %s %s-%s", event_id, req.day_date, req.start_time, req.end_time
    )
    time_range, regeneration = await db.add_time_range(event_id, req.day_date, req.start_time, req.end_time)
    await slot_producer.slots_regenerated(bus, regeneration)
    return TimeRangeCreated(time_range=TimeRange(**time_range), regeneration=regeneration)


@router.delete("/admin/time-ranges/{range_id}", response_model=RegenerationResult)
async def delete_time_range(range_id: int, _admin: AdminGuard, bus: OptionalBus) -> RegenerationResult:
    regeneration = await db.delete_time_range(range_id)
    if regeneration is None:
        raise NotFoundError("Time range not found", resource_type="time_range", resource_id=str(range_id))
    await slot_producer.slots_regenerated(bus, regeneration)
    return RegenerationResult(**regeneration)
