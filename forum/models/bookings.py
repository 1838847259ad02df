from datetime import date, datetime

from pydantic import BaseModel, Field


class BookRequest(BaseModel):
    student_id: int = Field(gt=0)
    slot_id: int = Field(gt=0)
    offer_id: int = Field(gt=0)


class CancelRequest(BaseModel):
    student_id: int = Field(gt=0)


class BookingOutcome(BaseModel):
    """Result of a booking or cancellation attempt.

    Refusals are normal answers (``success=False``) carrying a readable
    ``message`` and a machine ``reason``.
    """

    success: bool
    message: str
    reason: str | None = None
    booking_id: int | None = None
    slot_id: int | None = None


class BookingLimit(BaseModel):
    can_book: bool
    current_bookings: int
    max_allowed: int
    current_phase: int
    message: str


class AvailableSlot(BaseModel):
    slot_id: int
    slot_time: datetime
    end_time: datetime
    capacity: int
    booked_count: int
    available_count: int
    event_name: str
    event_date: date


class StudentBooking(BaseModel):
    booking_id: int
    slot_id: int
    slot_time: datetime
    end_time: datetime
    offer_title: str | None = None
    company_name: str
    event_id: int
    event_name: str
    status: str
    notes: str | None = None
    booking_phase: int
    created_at: datetime
    cancelled_at: datetime | None = None
    can_cancel: bool


class EventSlot(BaseModel):
    slot_id: int
    company_id: int
    company_name: str
    slot_time: datetime
    end_time: datetime
    capacity: int
    is_active: bool
    booked_count: int
    available_count: int


class RegenerationResult(BaseModel):
    success: bool
    message: str
    event_id: int
    slots_created: int
    slots_removed: int
    slots_deactivated: int
    companies_processed: int
    time_ranges_processed: int
