"""Booking phase resolution.

An event is in one of three booking phases: 0 (closed), 1 (priority) or
2 (open). The phase comes either from the admin's manual override or from
the configured phase windows, never a mix of both.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

PHASE_CLOSED = 0
PHASE_PRIORITY = 1
PHASE_OPEN = 2

MODE_MANUAL = "manual"
MODE_AUTOMATIC = "automatic"


@dataclass(frozen=True)
class PhaseWindows:
    phase1_start: datetime | None = None
    phase1_end: datetime | None = None
    phase2_start: datetime | None = None
    phase2_end: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return None not in (self.phase1_start, self.phase1_end, self.phase2_start, self.phase2_end)


@dataclass(frozen=True)
class ManualPhase:
    phase: int


@dataclass(frozen=True)
class AutomaticPhase:
    windows: PhaseWindows


PhaseMode = ManualPhase | AutomaticPhase


@dataclass(frozen=True)
class PhaseState:
    phase: int
    # upcoming | phase1 | between | phase2 | ended | closed
    status: str

    @property
    def is_open(self) -> bool:
        return self.phase in (PHASE_PRIORITY, PHASE_OPEN)


def phase_mode_from_event(
    phase_mode: str,
    current_phase: int,
    windows: PhaseWindows,
) -> PhaseMode:
    if phase_mode == MODE_AUTOMATIC:
        return AutomaticPhase(windows)
    return ManualPhase(current_phase)


def resolve_phase(mode: PhaseMode, now: datetime) -> PhaseState:
    """Resolve the active phase of ``mode`` at ``now``.

    Windows are half-open: ``[start, end)``.
    """
    if isinstance(mode, ManualPhase):
        if mode.phase == PHASE_PRIORITY:
            return PhaseState(PHASE_PRIORITY, "phase1")
        if mode.phase == PHASE_OPEN:
            return PhaseState(PHASE_OPEN, "phase2")
        return PhaseState(PHASE_CLOSED, "closed")

    w = mode.windows
    if not w.is_complete:
        return PhaseState(PHASE_CLOSED, "closed")
    if now < w.phase1_start:
        return PhaseState(PHASE_CLOSED, "upcoming")
    if now < w.phase1_end:
        return PhaseState(PHASE_PRIORITY, "phase1")
    if now < w.phase2_start:
        return PhaseState(PHASE_CLOSED, "between")
    if now < w.phase2_end:
        return PhaseState(PHASE_OPEN, "phase2")
    return PhaseState(PHASE_CLOSED, "ended")


@dataclass(frozen=True)
class BookingLimits:
    phase1: int
    phase2: int

    def for_phase(self, phase: int) -> int:
        if phase == PHASE_PRIORITY:
            return self.phase1
        if phase == PHASE_OPEN:
            return self.phase2
        return 0


def validate_phase_config(windows: PhaseWindows, limits: BookingLimits) -> None:
    """Reject inconsistent phase windows or limits before anything is written."""
    bounds = (windows.phase1_start, windows.phase1_end, windows.phase2_start, windows.phase2_end)
    if any(b is not None and b.tzinfo is None for b in bounds):
        raise ValueError("Phase window times must include a timezone offset")
    if windows.phase1_start and windows.phase1_end and windows.phase1_start >= windows.phase1_end:
        raise ValueError("Phase 1 start must be before Phase 1 end")
    if windows.phase1_end and windows.phase2_start and windows.phase1_end > windows.phase2_start:
        raise ValueError("Phase 1 must end before or when Phase 2 starts")
    if windows.phase2_start and windows.phase2_end and windows.phase2_start >= windows.phase2_end:
        raise ValueError("Phase 2 start must be before Phase 2 end")
    if limits.phase1 <= 0:
        raise ValueError("Phase 1 booking limit must be greater than 0")
    if limits.phase2 < limits.phase1:
        raise ValueError("Phase 2 booking limit must be greater than or equal to Phase 1 limit")


@dataclass(frozen=True)
class BookingLimitCheck:
    can_book: bool
    current_bookings: int
    max_allowed: int
    current_phase: int
    message: str
    # None when can_book is True
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "can_book": self.can_book,
            "current_bookings": self.current_bookings,
            "max_allowed": self.max_allowed,
            "current_phase": self.current_phase,
            "message": self.message,
        }


def evaluate_booking_limit(
    state: PhaseState,
    limits: BookingLimits,
    current_bookings: int,
    is_deprioritized: bool = False,
) -> BookingLimitCheck:
    """Decide whether a student may take one more booking in the event.

    ``current_bookings`` is the student's total of confirmed bookings in the
    event, whichever phase they were made in.
    """
    if not state.is_open:
        return BookingLimitCheck(
            can_book=False,
            current_bookings=current_bookings,
            max_allowed=0,
            current_phase=PHASE_CLOSED,
            message="Bookings are currently closed for this event",
            reason="booking_closed",
        )

    if state.phase == PHASE_PRIORITY and is_deprioritized:
        return BookingLimitCheck(
            can_book=False,
            current_bookings=current_bookings,
            max_allowed=0,
            current_phase=state.phase,
            message=(
                "You cannot book during Phase 1 because you are in the Head Start group. "
                "You can book during Phase 2."
            ),
            reason="deprioritized",
        )

    max_allowed = limits.for_phase(state.phase)
    if current_bookings >= max_allowed:
        return BookingLimitCheck(
            can_book=False,
            current_bookings=current_bookings,
            max_allowed=max_allowed,
            current_phase=state.phase,
            message=(
                f"You have reached your booking limit "
                f"({current_bookings}/{max_allowed} bookings in Phase {state.phase})"
            ),
            reason="limit_reached",
        )

    return BookingLimitCheck(
        can_book=True,
        current_bookings=current_bookings,
        max_allowed=max_allowed,
        current_phase=state.phase,
        message=(
            f"You can book {max_allowed - current_bookings} more interview(s). "
            f"Phase {state.phase}: {current_bookings}/{max_allowed} booked"
        ),
    )
