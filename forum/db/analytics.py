"""Reporting queries: per-event totals and per-student booking stats."""

from typing import Any

from forum.db.core import _get_connection


async def get_event_analytics(event_id: int) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        event = await (await conn.execute(
            "SELECT id, name, event_date, is_active FROM events WHERE id = %s",
            (event_id,),
        )).fetchone()
        if event is None:
            return None

        slots = await (await conn.execute(
            """
            SELECT COUNT(*) FILTER (WHERE is_active),
                   COUNT(*) FILTER (WHERE NOT is_active),
                   COALESCE(SUM(capacity) FILTER (WHERE is_active), 0),
                   COUNT(DISTINCT company_id)
            FROM event_slots
            WHERE event_id = %s
            """,
            (event_id,),
        )).fetchone()
        bookings = await (await conn.execute(
            """
            SELECT COUNT(*) FILTER (WHERE b.status = 'confirmed'),
                   COUNT(*) FILTER (WHERE b.status = 'cancelled'),
                   COUNT(DISTINCT b.student_id) FILTER (WHERE b.status = 'confirmed'),
                   COUNT(*) FILTER (WHERE b.status = 'confirmed' AND b.booking_phase = 1),
                   COUNT(*) FILTER (WHERE b.status = 'confirmed' AND b.booking_phase = 2)
            FROM bookings b
            JOIN event_slots s ON s.id = b.slot_id
            WHERE s.event_id = %s
            """,
            (event_id,),
        )).fetchone()
        offers = await (await conn.execute(
            """
            SELECT COUNT(*)
            FROM offers o
            JOIN event_registrations r ON r.company_id = o.company_id AND r.event_id = %s
            WHERE o.is_active AND r.status = 'approved' AND (o.event_id = %s OR o.event_id IS NULL)
            """,
            (event_id, event_id),
        )).fetchone()
        registrations = await conn.execute(
            "SELECT status, COUNT(*) FROM event_registrations WHERE event_id = %s GROUP BY status",
            (event_id,),
        )
        by_status = {row[0]: row[1] async for row in registrations}

    active_slots, inactive_slots, total_seats, companies = slots
    confirmed, cancelled, students, phase1, phase2 = bookings
    return {
        "event_id": event[0],
        "event_name": event[1],
        "event_date": event[2],
        "is_active": event[3],
        "total_slots": active_slots,
        "inactive_slots": inactive_slots,
        "total_seats": total_seats,
        "companies_with_slots": companies,
        "confirmed_bookings": confirmed,
        "cancelled_bookings": cancelled,
        "students_booked": students,
        "phase1_bookings": phase1,
        "phase2_bookings": phase2,
        "active_offers": offers[0],
        "registrations": {
            "pending": by_status.get("pending", 0),
            "approved": by_status.get("approved", 0),
            "rejected": by_status.get("rejected", 0),
        },
        "booking_rate": round(confirmed / total_seats * 100, 1) if total_seats else 0.0,
    }


async def get_student_booking_stats(student_id: int) -> list[dict[str, Any]]:
    """Per-event confirmed and cancelled counts for one student."""
    async with _get_connection() as conn:
        rows = await conn.execute(
            """
            SELECT e.id, e.name,
                   COUNT(*) FILTER (WHERE b.status = 'confirmed'),
                   COUNT(*) FILTER (WHERE b.status = 'cancelled'),
                   COUNT(*) FILTER (WHERE b.status = 'confirmed' AND b.booking_phase = 1),
                   COUNT(*) FILTER (WHERE b.status = 'confirmed' AND b.booking_phase = 2)
            FROM bookings b
            JOIN event_slots s ON s.id = b.slot_id
            JOIN events e ON e.id = s.event_id
            WHERE b.student_id = %s
            GROUP BY e.id, e.name
            ORDER BY e.id
            """,
            (student_id,),
        )
        return [
            {
                "event_id": row[0],
                "event_name": row[1],
                "confirmed": row[2],
                "cancelled": row[3],
                "phase1_bookings": row[4],
                "phase2_bookings": row[5],
            }
            async for row in rows
        ]
