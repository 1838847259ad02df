import logging

from fastapi import APIRouter, Query

from forum import db
from forum.dependencies import AdminGuard, OptionalBus
from forum.models.catalog import Registration, RegistrationCreate, RegistrationDecided, RegistrationDecision
from forum.producers import slot_producer

logger = logging.getLogger("forum.registrations")
router = APIRouter(tags=["registrations"])


@router.post("/events/{event_id}/registrations", response_model=Registration, status_code=201)
async def register_company(event_id: int, req: RegistrationCreate) -> Registration:
    logger.info("POST /events/%s/registrations company=%s", event_id, req.company_id)
    registration = await db.register_company(event_id, req.company_id)
    return Registration(**registration)


@router.get("/admin/events/{event_id}/registrations", response_model=list[Registration])
async def list_event_registrations(
    event_id: int,
    _admin: AdminGuard,
    status: str | None = Query(None, pattern="^(pending|approved|rejected)$"),
) -> list[Registration]:
    return [Registration(**r) for r in await db.list_registrations(event_id=event_id, status=status)]


@router.put("/admin/registrations/{registration_id}", response_model=RegistrationDecided)
async def decide_registration(
    registration_id: int,
    req: RegistrationDecision,
    _admin: AdminGuard,
    bus: OptionalBus,
) -> RegistrationDecided:
    logger.info("PUT /admin/registrations/%s status=%s", registration_id, req.status)
    registration, regeneration = await db.decide_registration(registration_id, req.status, req.notes)
    await slot_producer.slots_regenerated(bus, regeneration)
    return RegistrationDecided(registration=Registration(**registration), regeneration=regeneration)
