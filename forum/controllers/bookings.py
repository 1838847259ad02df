import logging

from fastapi import APIRouter

from forum import db
from forum.dependencies import OptionalBus, OptionalRedis
from forum.errors import NotFoundError, TooManyRequestsError
from forum.models.bookings import BookingOutcome, BookRequest, CancelRequest
from forum.producers import slot_producer
from forum.ratelimit import allow_booking_attempt

logger = logging.getLogger("forum.bookings")
router = APIRouter(tags=["bookings"])


@router.post("/bookings", response_model=BookingOutcome)
async def book_interview(req: BookRequest, redis: OptionalRedis, bus: OptionalBus) -> BookingOutcome:
    logger.info("POST /bookings student=%s slot=%s offer=%s", req.student_id, req.slot_id, req.offer_id)
    if not await allow_booking_attempt(redis, req.student_id):
        raise TooManyRequestsError(detail="Too many booking attempts, please wait a minute")
    if await db.get_student(req.student_id) is None:
        raise NotFoundError("Student not found", resource_type="student", resource_id=str(req.student_id))

    outcome = await db.book_interview(req.student_id, req.slot_id, req.offer_id)
    await slot_producer.booking_created(bus, outcome, req.student_id)
    return BookingOutcome(**outcome.to_dict())


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOutcome)
async def cancel_booking(booking_id: int, req: CancelRequest, bus: OptionalBus) -> BookingOutcome:
    logger.info("POST /bookings/%s/cancel student=%s", booking_id, req.student_id)
    outcome = await db.cancel_booking(booking_id, req.student_id)
    await slot_producer.booking_cancelled(bus, outcome, req.student_id)
    return BookingOutcome(**outcome.to_dict())
