"""Interview slot allocation engine.

Pure functions only: slot generation, phase resolution and booking rules.
Persistence and locking live in ``forum.db``.
"""

from forum.engine.phases import (
    PHASE_CLOSED,
    PHASE_OPEN,
    PHASE_PRIORITY,
    AutomaticPhase,
    BookingLimitCheck,
    BookingLimits,
    ManualPhase,
    PhaseMode,
    PhaseState,
    PhaseWindows,
    evaluate_booking_limit,
    phase_mode_from_event,
    resolve_phase,
    validate_phase_config,
)
from forum.engine.rules import (
    BookingContext,
    BookingInfo,
    HeldBooking,
    OfferInfo,
    Outcome,
    SlotInfo,
    can_cancel,
    check_booking,
    check_cancellation,
)
from forum.engine.slots import (
    InterviewParams,
    RegenerationPlan,
    StoredSlot,
    TimeRange,
    generate_slot_times,
    plan_regeneration,
)

__all__ = [
    "PHASE_CLOSED",
    "PHASE_OPEN",
    "PHASE_PRIORITY",
    "AutomaticPhase",
    "BookingContext",
    "BookingInfo",
    "BookingLimitCheck",
    "BookingLimits",
    "HeldBooking",
    "InterviewParams",
    "ManualPhase",
    "OfferInfo",
    "Outcome",
    "PhaseMode",
    "PhaseState",
    "PhaseWindows",
    "RegenerationPlan",
    "SlotInfo",
    "StoredSlot",
    "TimeRange",
    "can_cancel",
    "check_booking",
    "check_cancellation",
    "evaluate_booking_limit",
    "generate_slot_times",
    "phase_mode_from_event",
    "plan_regeneration",
    "resolve_phase",
    "validate_phase_config",
]
