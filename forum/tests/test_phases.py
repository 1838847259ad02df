"""Phase resolution, phase configuration and the per-student booking limit."""

from datetime import UTC, datetime, timedelta

import pytest

from forum.engine.phases import (
    PHASE_CLOSED,
    PHASE_OPEN,
    PHASE_PRIORITY,
    AutomaticPhase,
    BookingLimits,
    ManualPhase,
    PhaseState,
    PhaseWindows,
    evaluate_booking_limit,
    phase_mode_from_event,
    resolve_phase,
    validate_phase_config,
)

T0 = datetime(2025, 11, 1, 9, 0, tzinfo=UTC)
WINDOWS = PhaseWindows(
    phase1_start=T0,
    phase1_end=T0 + timedelta(days=2),
    phase2_start=T0 + timedelta(days=3),
    phase2_end=T0 + timedelta(days=5),
)
LIMITS = BookingLimits(phase1=3, phase2=6)


class TestResolvePhase:

    @pytest.mark.parametrize(
        "phase,expected",
        [(0, (PHASE_CLOSED, "closed")), (1, (PHASE_PRIORITY, "phase1")), (2, (PHASE_OPEN, "phase2"))],
    )
    def test_manual_phase_is_authoritative(self, phase, expected):
        state = resolve_phase(ManualPhase(phase), T0 + timedelta(days=100))
        assert (state.phase, state.status) == expected

    @pytest.mark.parametrize(
        "offset,expected",
        [
            (timedelta(seconds=-1), (PHASE_CLOSED, "upcoming")),
            (timedelta(0), (PHASE_PRIORITY, "phase1")),
            (timedelta(days=2, seconds=-1), (PHASE_PRIORITY, "phase1")),
            (timedelta(days=2), (PHASE_CLOSED, "between")),
            (timedelta(days=3), (PHASE_OPEN, "phase2")),
            (timedelta(days=5, seconds=-1), (PHASE_OPEN, "phase2")),
            (timedelta(days=5), (PHASE_CLOSED, "ended")),
        ],
    )
    def test_automatic_windows_are_half_open(self, offset, expected):
        state = resolve_phase(AutomaticPhase(WINDOWS), T0 + offset)
        assert (state.phase, state.status) == expected

    def test_automatic_with_missing_windows_is_closed(self):
        state = resolve_phase(AutomaticPhase(PhaseWindows(phase1_start=T0)), T0 + timedelta(hours=1))
        assert state == PhaseState(PHASE_CLOSED, "closed")

    def test_mode_from_event_columns(self):
        assert phase_mode_from_event("manual", 2, WINDOWS) == ManualPhase(2)
        assert phase_mode_from_event("automatic", 2, WINDOWS) == AutomaticPhase(WINDOWS)


class TestValidatePhaseConfig:

    def test_valid_config_passes(self):
        validate_phase_config(WINDOWS, LIMITS)

    def test_partial_windows_pass(self):
        validate_phase_config(PhaseWindows(), BookingLimits(1, 1))

    @pytest.mark.parametrize(
        "windows,limits,message",
        [
            (PhaseWindows(phase1_start=T0, phase1_end=T0), LIMITS, "Phase 1 start"),
            (
                PhaseWindows(phase1_end=T0 + timedelta(days=1), phase2_start=T0),
                LIMITS,
                "Phase 1 must end",
            ),
            (PhaseWindows(phase2_start=T0, phase2_end=T0 - timedelta(hours=1)), LIMITS, "Phase 2 start"),
            (WINDOWS, BookingLimits(0, 6), "greater than 0"),
            (WINDOWS, BookingLimits(4, 3), "greater than or equal"),
            (
                PhaseWindows(phase1_start=datetime(2025, 11, 10, 9, 0), phase1_end=T0),
                LIMITS,
                "timezone",
            ),
        ],
    )
    def test_invalid_config_rejected(self, windows, limits, message):
        with pytest.raises(ValueError, match=message):
            validate_phase_config(windows, limits)


class TestEvaluateBookingLimit:

    def test_closed_phase_cannot_book(self):
        check = evaluate_booking_limit(PhaseState(PHASE_CLOSED, "between"), LIMITS, 0)
        assert check.can_book is False
        assert check.max_allowed == 0
        assert check.current_phase == PHASE_CLOSED
        assert check.reason == "booking_closed"

    def test_phase1_under_limit(self):
        check = evaluate_booking_limit(PhaseState(PHASE_PRIORITY, "phase1"), LIMITS, 2)
        assert check.can_book is True
        assert check.max_allowed == 3
        assert check.reason is None

    def test_phase1_at_limit_refused(self):
        check = evaluate_booking_limit(PhaseState(PHASE_PRIORITY, "phase1"), LIMITS, 3)
        assert check.can_book is False
        assert check.reason == "limit_reached"
        assert "3/3" in check.message

    def test_phase2_counts_phase1_bookings(self):
        check = evaluate_booking_limit(PhaseState(PHASE_OPEN, "phase2"), LIMITS, 3)
        assert check.can_book is True
        assert check.max_allowed == 6

    def test_head_start_student_blocked_in_phase1_only(self):
        phase1 = evaluate_booking_limit(PhaseState(PHASE_PRIORITY, "phase1"), LIMITS, 0, is_deprioritized=True)
        phase2 = evaluate_booking_limit(PhaseState(PHASE_OPEN, "phase2"), LIMITS, 0, is_deprioritized=True)

        assert phase1.can_book is False
        assert phase1.max_allowed == 0
        assert phase1.reason == "deprioritized"
        assert phase2.can_book is True

    def test_to_dict_shape(self):
        data = evaluate_booking_limit(PhaseState(PHASE_PRIORITY, "phase1"), LIMITS, 1).to_dict()
        assert set(data) == {"can_book", "current_bookings", "max_allowed", "current_phase", "message"}
