"""Booking and cancellation rules.

The checks here run against a snapshot loaded inside the booking
transaction, after the slot row is locked. They never raise for a broken
business rule: every refusal is an ``Outcome`` with a readable message.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from forum.engine.phases import BookingLimitCheck

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True)
class Outcome:
    success: bool
    message: str
    reason: str | None = None
    booking_id: int | None = None
    slot_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.booking_id is not None:
            data["booking_id"] = self.booking_id
        if self.slot_id is not None:
            data["slot_id"] = self.slot_id
        return data


def refuse(reason: str, message: str) -> Outcome:
    return Outcome(success=False, message=message, reason=reason)


@dataclass(frozen=True)
class SlotInfo:
    id: int
    event_id: int
    company_id: int
    start_time: datetime
    end_time: datetime
    capacity: int
    is_active: bool
    confirmed_count: int


@dataclass(frozen=True)
class OfferInfo:
    id: int
    company_id: int
    event_id: int | None
    is_active: bool


@dataclass(frozen=True)
class HeldBooking:
    """One of the student's confirmed bookings in the same event."""

    booking_id: int
    slot_id: int
    company_id: int
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class BookingContext:
    slot: SlotInfo | None
    event_active: bool
    offer: OfferInfo | None
    company_verified: bool
    limit: BookingLimitCheck | None
    held: list[HeldBooking] = field(default_factory=list)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and b_start < a_end


def check_booking(ctx: BookingContext, now: datetime) -> Outcome:
    """Apply the booking preconditions in order; the first failure wins."""
    slot = ctx.slot
    if slot is None:
        return refuse("slot_not_found", "Slot not found")
    if not slot.is_active:
        return refuse("slot_inactive", "This slot is no longer available")
    if not ctx.event_active:
        return refuse("event_inactive", "This event is not active")
    if slot.start_time <= now:
        return refuse("slot_started", "This slot has already started")
    offer = ctx.offer
    if (
        offer is None
        or not offer.is_active
        or offer.company_id != slot.company_id
        or (offer.event_id is not None and offer.event_id != slot.event_id)
    ):
        return refuse("offer_invalid", "Offer not found, inactive, or does not belong to this company")
    if not ctx.company_verified:
        return refuse("company_unverified", "This company is not verified")

    limit = ctx.limit
    if limit is None or not limit.can_book:
        if limit is None:
            return refuse("booking_closed", "Bookings are currently closed for this event")
        return refuse(limit.reason or "limit_reached", limit.message)

    if slot.confirmed_count >= slot.capacity:
        return refuse("slot_full", "This slot is fully booked")

    for held in ctx.held:
        if held.company_id == slot.company_id:
            return refuse("duplicate_company", "You already have an interview with this company")

    for held in ctx.held:
        if intervals_overlap(held.start_time, held.end_time, slot.start_time, slot.end_time):
            return refuse("time_conflict", "This time slot conflicts with another booking")

    return Outcome(success=True, message="ok")


def confirmation_message(remaining: int) -> str:
    return f"Booking confirmed! ({remaining} spots remaining in this slot)"


def can_cancel(slot_time: datetime, now: datetime, cutoff_hours: int) -> bool:
    return slot_time - now >= timedelta(hours=cutoff_hours)


@dataclass(frozen=True)
class BookingInfo:
    id: int
    student_id: int
    status: str
    slot_time: datetime
    slot_id: int | None = None


def check_cancellation(
    booking: BookingInfo | None,
    student_id: int,
    now: datetime,
    cutoff_hours: int,
) -> Outcome:
    if booking is None or booking.student_id != student_id:
        return refuse("booking_not_found", "Booking not found or you are not authorized")
    if booking.status == STATUS_CANCELLED:
        return refuse("already_cancelled", "Booking is already cancelled")
    if booking.status != STATUS_CONFIRMED:
        return refuse("not_confirmed", "Only confirmed bookings can be cancelled")
    if not can_cancel(booking.slot_time, now, cutoff_hours):
        return refuse(
            "cutoff_passed",
            f"Cannot cancel bookings less than {cutoff_hours} hours before the interview",
        )
    return Outcome(
        success=True,
        message="Booking cancelled successfully",
        booking_id=booking.id,
        slot_id=booking.slot_id,
    )
