"""Booking preconditions and the cancellation policy."""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from forum.engine.phases import BookingLimits, PhaseState, evaluate_booking_limit
from forum.engine.rules import (
    BookingContext,
    BookingInfo,
    HeldBooking,
    OfferInfo,
    SlotInfo,
    can_cancel,
    check_booking,
    check_cancellation,
    intervals_overlap,
)

NOW = datetime(2025, 11, 10, 8, 0, tzinfo=UTC)
SLOT_START = datetime(2025, 11, 12, 9, 0, tzinfo=UTC)
LIMITS = BookingLimits(phase1=3, phase2=6)


def _slot(**overrides) -> SlotInfo:
    values = dict(
        id=100,
        event_id=1,
        company_id=7,
        start_time=SLOT_START,
        end_time=SLOT_START + timedelta(minutes=20),
        capacity=2,
        is_active=True,
        confirmed_count=0,
    )
    values.update(overrides)
    return SlotInfo(**values)


def _ctx(held=(), phase=1, slot=None, **overrides) -> BookingContext:
    state = PhaseState(phase, "phase1" if phase == 1 else "phase2")
    values = dict(
        slot=slot or _slot(),
        event_active=True,
        offer=OfferInfo(id=50, company_id=7, event_id=1, is_active=True),
        company_verified=True,
        limit=evaluate_booking_limit(state, LIMITS, len(held)),
        held=list(held),
    )
    values.update(overrides)
    return BookingContext(**values)


def _held(booking_id, company_id, start, minutes=20) -> HeldBooking:
    return HeldBooking(
        booking_id=booking_id,
        slot_id=booking_id + 1000,
        company_id=company_id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
    )


class TestCheckBooking:

    def test_valid_booking_passes(self):
        outcome = check_booking(_ctx(), NOW)
        assert outcome.success is True

    def test_fourth_booking_in_phase1_refused(self):
        held = [_held(i, 20 + i, SLOT_START + timedelta(hours=i + 1)) for i in range(3)]

        outcome = check_booking(_ctx(held=held), NOW)

        assert outcome.success is False
        assert outcome.reason == "limit_reached"
        assert "limit" in outcome.message

    def test_same_student_can_book_more_in_phase2(self):
        held = [_held(i, 20 + i, SLOT_START + timedelta(hours=i + 1)) for i in range(3)]

        assert check_booking(_ctx(held=held, phase=2), NOW).success is True

    def test_full_slot_refused(self):
        outcome = check_booking(_ctx(slot=_slot(capacity=2, confirmed_count=2)), NOW)
        assert outcome.reason == "slot_full"

    def test_second_interview_with_same_company_refused(self):
        held = [_held(1, 7, SLOT_START + timedelta(hours=3))]

        outcome = check_booking(_ctx(held=held), NOW)

        assert outcome.reason == "duplicate_company"

    def test_overlapping_booking_refused(self):
        held = [_held(1, 8, SLOT_START + timedelta(minutes=10))]

        outcome = check_booking(_ctx(held=held), NOW)

        assert outcome.reason == "time_conflict"

    def test_back_to_back_bookings_allowed(self):
        held = [_held(1, 8, SLOT_START + timedelta(minutes=20))]

        assert check_booking(_ctx(held=held), NOW).success is True

    @pytest.mark.parametrize(
        "overrides,reason",
        [
            ({"slot": None}, "slot_not_found"),
            ({"slot": "inactive"}, "slot_inactive"),
            ({"event_active": False}, "event_inactive"),
            ({"slot": "started"}, "slot_started"),
            ({"offer": None}, "offer_invalid"),
            ({"company_verified": False}, "company_unverified"),
        ],
    )
    def test_availability_preconditions(self, overrides, reason):
        ctx = _ctx()
        if overrides.get("slot") == "inactive":
            ctx = replace(ctx, slot=_slot(is_active=False))
        elif overrides.get("slot") == "started":
            ctx = replace(ctx, slot=_slot(start_time=NOW - timedelta(minutes=1)))
        else:
            ctx = replace(ctx, **overrides)

        assert check_booking(ctx, NOW).reason == reason

    @pytest.mark.parametrize(
        "offer",
        [
            OfferInfo(id=50, company_id=7, event_id=1, is_active=False),
            OfferInfo(id=50, company_id=8, event_id=1, is_active=True),
            OfferInfo(id=50, company_id=7, event_id=2, is_active=True),
        ],
    )
    def test_offer_must_be_active_and_match_slot(self, offer):
        assert check_booking(_ctx(offer=offer), NOW).reason == "offer_invalid"

    def test_unlinked_offer_is_accepted(self):
        offer = OfferInfo(id=50, company_id=7, event_id=None, is_active=True)
        assert check_booking(_ctx(offer=offer), NOW).success is True

    def test_closed_phase_refused(self):
        closed = evaluate_booking_limit(PhaseState(0, "between"), LIMITS, 0)
        assert check_booking(_ctx(limit=closed), NOW).reason == "booking_closed"

    def test_first_failure_wins(self):
        # Inactive slot that is also full and overlapping: availability is reported.
        held = [_held(1, 7, SLOT_START)]
        ctx = _ctx(held=held, slot=_slot(is_active=False, confirmed_count=2))

        assert check_booking(ctx, NOW).reason == "slot_inactive"

    def test_limit_checked_before_capacity(self):
        held = [_held(i, 20 + i, SLOT_START + timedelta(hours=i + 1)) for i in range(3)]
        ctx = _ctx(held=held, slot=_slot(confirmed_count=2))

        assert check_booking(ctx, NOW).reason == "limit_reached"


class TestIntervals:

    def test_half_open_intervals(self):
        a = SLOT_START
        b = SLOT_START + timedelta(minutes=20)
        c = SLOT_START + timedelta(minutes=40)
        assert intervals_overlap(a, b, a, c)
        assert not intervals_overlap(a, b, b, c)


class TestCancellation:

    def _booking(self, hours_before: float, status: str = "confirmed") -> BookingInfo:
        return BookingInfo(
            id=9,
            student_id=42,
            status=status,
            slot_time=NOW + timedelta(hours=hours_before),
            slot_id=100,
        )

    def test_cancel_30_hours_before_succeeds(self):
        outcome = check_cancellation(self._booking(30), 42, NOW, 24)
        assert outcome.success is True
        assert outcome.booking_id == 9
        assert outcome.slot_id == 100

    def test_cancel_23_hours_before_refused(self):
        outcome = check_cancellation(self._booking(23), 42, NOW, 24)
        assert outcome.success is False
        assert outcome.reason == "cutoff_passed"
        assert "24 hours" in outcome.message

    def test_exactly_at_cutoff_is_allowed(self):
        assert check_cancellation(self._booking(24), 42, NOW, 24).success is True

    def test_other_students_booking_is_not_found(self):
        outcome = check_cancellation(self._booking(30), 43, NOW, 24)
        assert outcome.reason == "booking_not_found"

    def test_missing_booking_is_not_found(self):
        assert check_cancellation(None, 42, NOW, 24).reason == "booking_not_found"

    def test_already_cancelled(self):
        outcome = check_cancellation(self._booking(30, status="cancelled"), 42, NOW, 24)
        assert outcome.reason == "already_cancelled"

    def test_pending_booking_cannot_be_cancelled(self):
        outcome = check_cancellation(self._booking(30, status="pending"), 42, NOW, 24)
        assert outcome.reason == "not_confirmed"

    def test_can_cancel_uses_configured_cutoff(self):
        slot_time = NOW + timedelta(hours=30)
        assert can_cancel(slot_time, NOW, 24) is True
        assert can_cancel(slot_time, NOW, 48) is False
