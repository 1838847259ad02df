from typing import Literal, TypedDict, Union


class BookingCreatedEvent(TypedDict):
    type: Literal["booking_created"]
    booking_id: int
    slot_id: int
    student_id: int
    timestamp: str


class BookingCancelledEvent(TypedDict):
    type: Literal["booking_cancelled"]
    booking_id: int
    slot_id: int
    student_id: int
    timestamp: str


class SlotsRegeneratedEvent(TypedDict):
    type: Literal["slots_regenerated"]
    event_id: int
    slots_created: int
    slots_removed: int
    slots_deactivated: int
    timestamp: str


# Discriminated union of everything published on the slot updates channel
SlotUpdateEvent = Union[BookingCreatedEvent, BookingCancelledEvent, SlotsRegeneratedEvent]
