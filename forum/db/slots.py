"""Slot persistence: transactional regeneration and availability queries."""

import logging
from datetime import UTC, datetime
from typing import Any

from forum.config import get_settings
from forum.db.core import _get_connection, _transaction
from forum.db.events import _fetch_event, event_params
from forum.engine.slots import (
    RegenerationPlan,
    StoredSlot,
    TimeRange,
    generate_slot_times,
    plan_regeneration,
)
from forum.errors import NotFoundError

_logger = logging.getLogger(__name__)

NO_SLOTS_MESSAGE = (
    "No slots produced: the event needs at least one time range and one approved, "
    "verified company with an active offer"
)


async def _load_time_ranges(conn, event_id: int) -> list[TimeRange]:
    rows = await conn.execute(
        """
        SELECT id, day_date, start_time, end_time
        FROM event_time_ranges
        WHERE event_id = %s
        ORDER BY day_date, start_time
        """,
        (event_id,),
    )
    return [TimeRange(id=row[0], day_date=row[1], start_time=row[2], end_time=row[3]) async for row in rows]


async def _load_participating_companies(conn, event_id: int) -> list[int]:
    """Approved, verified companies holding an active offer usable in the event."""
    rows = await conn.execute(
        """
        SELECT c.id
        FROM companies c
        JOIN event_registrations r ON r.company_id = c.id
        WHERE r.event_id = %s
          AND r.status = 'approved'
          AND c.is_verified
          AND EXISTS (
              SELECT 1 FROM offers o
              WHERE o.company_id = c.id
                AND o.is_active
                AND (o.event_id = %s OR o.event_id IS NULL)
          )
        ORDER BY c.id
        """,
        (event_id, event_id),
    )
    return [row[0] async for row in rows]


async def _lock_and_load_slots(conn, event_id: int) -> list[StoredSlot]:
    # Aggregates cannot carry FOR UPDATE, so lock first and count second.
    await conn.execute("SELECT id FROM event_slots WHERE event_id = %s FOR UPDATE", (event_id,))
    rows = await conn.execute(
        """
        SELECT s.id, s.company_id, s.start_time, s.end_time, s.capacity, s.is_active,
               COUNT(b.id) FILTER (WHERE b.status = 'confirmed'),
               COUNT(b.id)
        FROM event_slots s
        LEFT JOIN bookings b ON b.slot_id = s.id
        WHERE s.event_id = %s
        GROUP BY s.id
        """,
        (event_id,),
    )
    return [
        StoredSlot(
            id=row[0],
            company_id=row[1],
            start_time=row[2],
            end_time=row[3],
            capacity=row[4],
            is_active=row[5],
            confirmed_count=row[6],
            total_bookings=row[7],
        )
        async for row in rows
    ]


async def _apply_plan(conn, event_id: int, plan: RegenerationPlan) -> None:
    if plan.to_delete:
        await conn.execute("DELETE FROM event_slots WHERE id = ANY(%s)", (plan.to_delete,))
    if plan.to_deactivate:
        await conn.execute(
            "UPDATE event_slots SET is_active = FALSE WHERE id = ANY(%s)",
            (plan.to_deactivate,),
        )
    if plan.to_reactivate:
        await conn.execute(
            "UPDATE event_slots SET is_active = TRUE WHERE id = ANY(%s)",
            (plan.to_reactivate,),
        )
    async with conn.cursor() as cur:
        if plan.to_refresh:
            await cur.executemany(
                "UPDATE event_slots SET end_time = %s, capacity = %s, is_active = TRUE WHERE id = %s",
                [(slot.end_time, slot.capacity, slot.id) for slot in plan.to_refresh],
            )
        if plan.to_insert:
            await cur.executemany(
                """
                INSERT INTO event_slots (event_id, company_id, start_time, end_time, capacity)
                VALUES (%s, %s, %s, %s, %s)
                """,
                [
                    (event_id, slot.company_id, slot.start_time, slot.end_time, slot.capacity)
                    for slot in plan.to_insert
                ],
            )


async def _regenerate_in_transaction(conn, event_id: int) -> dict[str, Any]:
    """Bring the stored slots of ``event_id`` in line with its configuration.

    Must run inside an open transaction on ``conn``. The event row and every
    slot row of the event stay locked until that transaction ends, so a
    concurrent booking either finishes first or sees the new grid.
    """
    event = await _fetch_event(conn, event_id, for_update=True)
    if event is None:
        raise NotFoundError("Event not found", resource_type="event", resource_id=str(event_id))

    settings = get_settings().booking
    params = event_params(event)
    ranges = await _load_time_ranges(conn, event_id)
    company_ids = await _load_participating_companies(conn, event_id)
    existing = await _lock_and_load_slots(conn, event_id)

    slot_times = generate_slot_times(
        ranges,
        params,
        tz=settings.timezone,
        require_full_interview=settings.require_full_interview_in_range,
    )
    plan = plan_regeneration(existing, company_ids, slot_times, params)
    if not plan.is_noop:
        await _apply_plan(conn, event_id, plan)

    desired = len(company_ids) * len(slot_times)
    if desired == 0:
        message = NO_SLOTS_MESSAGE
    else:
        message = (
            f"{desired} slots for {len(company_ids)} companies across "
            f"{len(ranges)} time ranges ({len(plan.to_insert)} new)"
        )
    _logger.info(
        f"Regenerated slots for event {event_id}: created={len(plan.to_insert)} "
        f"removed={len(plan.to_delete)} deactivated={len(plan.to_deactivate)} "
        f"refreshed={len(plan.to_refresh)} preserved={len(plan.preserved)}"
    )
    if desired == 0:
        _logger.warning(f"Event {event_id}: {NO_SLOTS_MESSAGE}")

    return {
        "success": True,
        "message": message,
        "event_id": event_id,
        "slots_created": len(plan.to_insert),
        "slots_removed": len(plan.to_delete),
        "slots_deactivated": len(plan.to_deactivate),
        "companies_processed": len(company_ids),
        "time_ranges_processed": len(ranges),
    }


async def regenerate_event_slots(event_id: int) -> dict[str, Any]:
    async with _transaction() as conn:
        return await _regenerate_in_transaction(conn, event_id)


async def regenerate_company_events(company_id: int) -> list[dict[str, Any]]:
    """Regenerate every event the company is approved for.

    Used after changes to the company's verification or offers, which move
    it in or out of the participating set.
    """
    from forum.db.companies import list_company_event_ids

    results = []
    for event_id in await list_company_event_ids(company_id):
        results.append(await regenerate_event_slots(event_id))
    return results


async def list_available_slots(offer_id: int, now: datetime | None = None) -> list[dict[str, Any]]:
    """Bookable slots for an offer, earliest first.

    An offer linked to an event only sees that event's slots; an unlinked
    offer sees the company's slots in every active event.
    """
    now = now or datetime.now(UTC)
    async with _get_connection() as conn:
        rows = await conn.execute(
            """
            SELECT s.id, s.start_time, s.end_time, s.capacity,
                   COUNT(b.id) FILTER (WHERE b.status = 'confirmed') AS booked,
                   e.name, e.event_date
            FROM offers o
            JOIN event_slots s ON s.company_id = o.company_id
            JOIN events e ON e.id = s.event_id
            LEFT JOIN bookings b ON b.slot_id = s.id
            WHERE o.id = %s
              AND o.is_active
              AND (o.event_id IS NULL OR o.event_id = s.event_id)
              AND s.is_active
              AND e.is_active
              AND s.start_time > %s
            GROUP BY s.id, e.name, e.event_date
            HAVING COUNT(b.id) FILTER (WHERE b.status = 'confirmed') < s.capacity
            ORDER BY s.start_time, s.id
            """,
            (offer_id, now),
        )
        out: list[dict[str, Any]] = []
        async for row in rows:
            slot_id, start, end, capacity, booked, event_name, event_date = row
            out.append(
                {
                    "slot_id": slot_id,
                    "slot_time": start,
                    "end_time": end,
                    "capacity": capacity,
                    "booked_count": booked,
                    "available_count": capacity - booked,
                    "event_name": event_name,
                    "event_date": event_date,
                }
            )
        return out


async def list_event_slots(event_id: int, include_inactive: bool = True) -> list[dict[str, Any]]:
    """Admin view of an event's slots with their confirmed counts."""
    sql = """
        SELECT s.id, s.company_id, c.name, s.start_time, s.end_time, s.capacity, s.is_active,
               COUNT(b.id) FILTER (WHERE b.status = 'confirmed')
        FROM event_slots s
        JOIN companies c ON c.id = s.company_id
        LEFT JOIN bookings b ON b.slot_id = s.id
        WHERE s.event_id = %s
    """
    if not include_inactive:
        sql += " AND s.is_active"
    sql += " GROUP BY s.id, c.name ORDER BY s.start_time, c.name"
    async with _get_connection() as conn:
        rows = await conn.execute(sql, (event_id,))
        return [
            {
                "slot_id": row[0],
                "company_id": row[1],
                "company_name": row[2],
                "slot_time": row[3],
                "end_time": row[4],
                "capacity": row[5],
                "is_active": row[6],
                "booked_count": row[7],
                "available_count": max(row[5] - row[7], 0),
            }
            async for row in rows
        ]
