import logging

from fastapi import APIRouter, Query

from forum import db
from forum.dependencies import OptionalBus
from forum.errors import NotFoundError
from forum.models.catalog import Offer, OfferCreate, OfferFields
from forum.producers import slot_producer

logger = logging.getLogger("forum.offers")
router = APIRouter(tags=["offers"])


def _not_found(offer_id: int) -> NotFoundError:
    return NotFoundError("Offer not found", resource_type="offer", resource_id=str(offer_id))


async def _regenerate_for(company_id: int, bus) -> None:
    # Active offers decide which companies get slots.
    for result in await db.regenerate_company_events(company_id):
        await slot_producer.slots_regenerated(bus, result)


@router.post("/offers", response_model=Offer, status_code=201)
async def create_offer(req: OfferCreate, bus: OptionalBus) -> Offer:
    logger.info("POST /offers company=%s event=%s", req.company_id, req.event_id)
    fields = req.model_dump(exclude={"company_id"}, exclude_none=True)
    offer = await db.create_offer(req.company_id, fields)
    await _regenerate_for(offer["company_id"], bus)
    return Offer(**offer)


@router.get("/offers", response_model=list[Offer])
async def list_offers(
    company_id: int | None = Query(None),
    event_id: int | None = Query(None),
    active_only: bool = Query(True),
) -> list[Offer]:
    offers = await db.list_offers(company_id=company_id, event_id=event_id, active_only=active_only)
    return [Offer(**o) for o in offers]


@router.get("/offers/{offer_id}", response_model=Offer)
async def get_offer(offer_id: int) -> Offer:
    offer = await db.get_offer(offer_id)
    if offer is None:
        raise _not_found(offer_id)
    return Offer(**offer)


@router.patch("/offers/{offer_id}", response_model=Offer)
async def update_offer(offer_id: int, req: OfferFields, bus: OptionalBus) -> Offer:
    changes = req.model_dump(exclude_unset=True)
    offer = await db.update_offer(offer_id, changes)
    if offer is None:
        raise _not_found(offer_id)
    if "event_id" in changes:
        await _regenerate_for(offer["company_id"], bus)
    return Offer(**offer)


@router.post("/offers/{offer_id}/deactivate", response_model=Offer)
async def deactivate_offer(offer_id: int, bus: OptionalBus) -> Offer:
    offer = await db.set_offer_active(offer_id, False)
    if offer is None:
        raise _not_found(offer_id)
    logger.info("Offer %s deactivated", offer_id)
    await _regenerate_for(offer["company_id"], bus)
    return Offer(**offer)


@router.post("/offers/{offer_id}/activate", response_model=Offer)
async def activate_offer(offer_id: int, bus: OptionalBus) -> Offer:
    offer = await db.set_offer_active(offer_id, True)
    if offer is None:
        raise _not_found(offer_id)
    await _regenerate_for(offer["company_id"], bus)
    return Offer(**offer)
