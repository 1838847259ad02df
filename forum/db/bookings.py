"""Booking allocation and cancellation against PostgreSQL.

``book_interview`` runs every rule check and the insert in one transaction:

1. the slot row is locked ``FOR UPDATE``, so two students racing for the
   last seat are serialised on the slot;
2. a transaction-scoped advisory lock keyed on (student, event) serialises
   the same student's concurrent attempts on different slots, so the phase
   limit, one-interview-per-company and no-overlap rules hold as well;
3. the snapshot is read, checked by ``forum.engine.rules.check_booking`` and
   the booking inserted before either lock is released.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from forum.config import get_settings
from forum.db.core import _get_connection, _transaction
from forum.db.events import _fetch_event, event_limits, event_phase_mode
from forum.engine.phases import BookingLimitCheck, evaluate_booking_limit, resolve_phase
from forum.engine.rules import (
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    BookingContext,
    BookingInfo,
    HeldBooking,
    OfferInfo,
    Outcome,
    SlotInfo,
    can_cancel,
    check_booking,
    check_cancellation,
    confirmation_message,
    refuse,
)

_logger = logging.getLogger(__name__)


async def _count_confirmed(conn, student_id: int, event_id: int) -> int:
    row = await (await conn.execute(
        """
        SELECT COUNT(*)
        FROM bookings b
        JOIN event_slots s ON s.id = b.slot_id
        WHERE b.student_id = %s AND s.event_id = %s AND b.status = 'confirmed'
        """,
        (student_id, event_id),
    )).fetchone()
    return row[0]


async def _is_deprioritized(conn, student_id: int) -> bool | None:
    row = await (await conn.execute(
        "SELECT is_deprioritized FROM students WHERE id = %s",
        (student_id,),
    )).fetchone()
    return row[0] if row else None


async def check_booking_limit(
    student_id: int,
    event_id: int,
    now: datetime | None = None,
) -> BookingLimitCheck | None:
    """Phase gate answer for one student and event. None if either is unknown."""
    now = now or datetime.now(UTC)
    async with _get_connection() as conn:
        event = await _fetch_event(conn, event_id)
        if event is None:
            return None
        is_deprioritized = await _is_deprioritized(conn, student_id)
        if is_deprioritized is None:
            return None
        current = await _count_confirmed(conn, student_id, event_id)
    state = resolve_phase(event_phase_mode(event), now)
    return evaluate_booking_limit(state, event_limits(event), current, is_deprioritized)


async def _lock_slot(conn, slot_id: int) -> SlotInfo | None:
    row = await (await conn.execute(
        """
        SELECT id, event_id, company_id, start_time, end_time, capacity, is_active
        FROM event_slots
        WHERE id = %s
        FOR UPDATE
        """,
        (slot_id,),
    )).fetchone()
    if row is None:
        return None
    count = await (await conn.execute(
        "SELECT COUNT(*) FROM bookings WHERE slot_id = %s AND status = 'confirmed'",
        (slot_id,),
    )).fetchone()
    return SlotInfo(
        id=row[0],
        event_id=row[1],
        company_id=row[2],
        start_time=row[3],
        end_time=row[4],
        capacity=row[5],
        is_active=row[6],
        confirmed_count=count[0],
    )


async def _load_booking_context(
    conn,
    student_id: int,
    slot: SlotInfo,
    offer_id: int,
    now: datetime,
) -> BookingContext:
    await conn.execute(
        "SELECT pg_advisory_xact_lock(hashtextextended(%s, 0))",
        (f"booking:{student_id}:{slot.event_id}",),
    )

    event = await _fetch_event(conn, slot.event_id)
    offer_row = await (await conn.execute(
        "SELECT id, company_id, event_id, is_active FROM offers WHERE id = %s",
        (offer_id,),
    )).fetchone()
    company_row = await (await conn.execute(
        "SELECT is_verified FROM companies WHERE id = %s",
        (slot.company_id,),
    )).fetchone()
    held_rows = await conn.execute(
        """
        SELECT b.id, s.id, s.company_id, s.start_time, s.end_time
        FROM bookings b
        JOIN event_slots s ON s.id = b.slot_id
        WHERE b.student_id = %s AND s.event_id = %s AND b.status = 'confirmed'
        ORDER BY s.start_time
        """,
        (student_id, slot.event_id),
    )
    held = [
        HeldBooking(booking_id=r[0], slot_id=r[1], company_id=r[2], start_time=r[3], end_time=r[4])
        async for r in held_rows
    ]

    limit = None
    if event is not None:
        is_deprioritized = bool(await _is_deprioritized(conn, student_id))
        state = resolve_phase(event_phase_mode(event), now)
        limit = evaluate_booking_limit(state, event_limits(event), len(held), is_deprioritized)

    return BookingContext(
        slot=slot,
        event_active=bool(event and event["is_active"]),
        offer=OfferInfo(*offer_row) if offer_row else None,
        company_verified=bool(company_row and company_row[0]),
        limit=limit,
        held=held,
    )


async def _insert_booking(conn, student_id: int, slot_id: int, offer_id: int, phase: int) -> int:
    row = await (await conn.execute(
        """
        INSERT INTO bookings (student_id, slot_id, offer_id, status, booking_phase)
        VALUES (%s, %s, %s, 'confirmed', %s)
        RETURNING id
        """,
        (student_id, slot_id, offer_id, phase),
    )).fetchone()
    return row[0]


async def book_interview(
    student_id: int,
    slot_id: int,
    offer_id: int,
    now: datetime | None = None,
) -> Outcome:
    """Book one seat of ``slot_id`` for ``student_id`` under ``offer_id``.

    Rule violations come back as an unsuccessful ``Outcome``; only
    infrastructure failures raise.
    """
    now = now or datetime.now(UTC)
    async with _transaction() as conn:
        slot = await _lock_slot(conn, slot_id)
        if slot is None:
            return refuse("slot_not_found", "Slot not found")

        ctx = await _load_booking_context(conn, student_id, slot, offer_id, now)
        outcome = check_booking(ctx, now)
        if not outcome.success:
            _logger.info(
                f"Booking refused: student={student_id} slot={slot_id} reason={outcome.reason}"
            )
            return outcome

        booking_id = await _insert_booking(conn, student_id, slot_id, offer_id, ctx.limit.current_phase)

    remaining = slot.capacity - slot.confirmed_count - 1
    _logger.info(
        f"Booking {booking_id} confirmed: student={student_id} slot={slot_id} "
        f"phase={ctx.limit.current_phase} remaining={remaining}"
    )
    return Outcome(
        success=True,
        message=confirmation_message(remaining),
        booking_id=booking_id,
        slot_id=slot_id,
    )


async def cancel_booking(booking_id: int, student_id: int, now: datetime | None = None) -> Outcome:
    now = now or datetime.now(UTC)
    cutoff_hours = get_settings().booking.cancellation_cutoff_hours
    async with _transaction() as conn:
        row = await (await conn.execute(
            """
            SELECT b.id, b.student_id, b.status, s.start_time, s.id
            FROM bookings b
            JOIN event_slots s ON s.id = b.slot_id
            WHERE b.id = %s
            FOR UPDATE OF b
            """,
            (booking_id,),
        )).fetchone()
        booking = None
        if row is not None:
            booking = BookingInfo(id=row[0], student_id=row[1], status=row[2], slot_time=row[3], slot_id=row[4])

        outcome = check_cancellation(booking, student_id, now, cutoff_hours)
        if not outcome.success:
            return outcome

        await conn.execute(
            "UPDATE bookings SET status = %s, cancelled_at = %s WHERE id = %s",
            (STATUS_CANCELLED, now, booking_id),
        )
    _logger.info(f"Booking {booking_id} cancelled by student {student_id}")
    return outcome


async def list_student_bookings(student_id: int, now: datetime | None = None) -> list[dict[str, Any]]:
    """The student's bookings, newest first, with their cancellability."""
    now = now or datetime.now(UTC)
    cutoff_hours = get_settings().booking.cancellation_cutoff_hours
    async with _get_connection() as conn:
        rows = await conn.execute(
            """
            SELECT b.id, s.id, s.start_time, s.end_time, o.title, c.name,
                   e.id, e.name, b.status, b.notes, b.booking_phase, b.created_at, b.cancelled_at
            FROM bookings b
            JOIN event_slots s ON s.id = b.slot_id
            JOIN companies c ON c.id = s.company_id
            JOIN events e ON e.id = s.event_id
            LEFT JOIN offers o ON o.id = b.offer_id
            WHERE b.student_id = %s
            ORDER BY b.created_at DESC, b.id DESC
            """,
            (student_id,),
        )
        out: list[dict[str, Any]] = []
        async for row in rows:
            status = row[8]
            out.append(
                {
                    "booking_id": row[0],
                    "slot_id": row[1],
                    "slot_time": row[2],
                    "end_time": row[3],
                    "offer_title": row[4],
                    "company_name": row[5],
                    "event_id": row[6],
                    "event_name": row[7],
                    "status": status,
                    "notes": row[9],
                    "booking_phase": row[10],
                    "created_at": row[11],
                    "cancelled_at": row[12],
                    "can_cancel": status == STATUS_CONFIRMED and can_cancel(row[2], now, cutoff_hours),
                }
            )
        return out
