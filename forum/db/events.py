"""Events, their phase configuration and their time ranges.

Every change that affects the slot grid (time ranges, interview parameters)
regenerates the event's slots inside the same transaction.
"""

import logging
from datetime import UTC, date, datetime, time
from typing import Any

from forum.db.core import _get_connection, _transaction
from forum.engine.phases import (
    MODE_AUTOMATIC,
    MODE_MANUAL,
    BookingLimits,
    PhaseMode,
    PhaseWindows,
    phase_mode_from_event,
    resolve_phase,
    validate_phase_config,
)
from forum.engine.slots import InterviewParams, TimeRange, validate_params, validate_time_range
from forum.errors import BadRequestError, NotFoundError

_logger = logging.getLogger(__name__)

_EVENT_COLUMNS = (
    "id, name, event_date, location, is_active, phase_mode, current_phase, "
    "phase1_start, phase1_end, phase2_start, phase2_end, "
    "phase1_booking_limit, phase2_booking_limit, "
    "interview_duration_minutes, buffer_minutes, slots_per_time, created_at, updated_at"
)

_PARAM_FIELDS = ("interview_duration_minutes", "buffer_minutes", "slots_per_time")
_UPDATABLE_FIELDS = ("name", "event_date", "location", *_PARAM_FIELDS)


def _event_from_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "name": row[1],
        "event_date": row[2],
        "location": row[3],
        "is_active": row[4],
        "phase_mode": row[5],
        "current_phase": row[6],
        "phase1_start": row[7],
        "phase1_end": row[8],
        "phase2_start": row[9],
        "phase2_end": row[10],
        "phase1_booking_limit": row[11],
        "phase2_booking_limit": row[12],
        "interview_duration_minutes": row[13],
        "buffer_minutes": row[14],
        "slots_per_time": row[15],
        "created_at": row[16],
        "updated_at": row[17],
    }


def event_params(event: dict[str, Any]) -> InterviewParams:
    return InterviewParams(
        interview_duration_minutes=event["interview_duration_minutes"],
        buffer_minutes=event["buffer_minutes"],
        slots_per_time=event["slots_per_time"],
    )


def event_windows(event: dict[str, Any]) -> PhaseWindows:
    return PhaseWindows(
        phase1_start=event["phase1_start"],
        phase1_end=event["phase1_end"],
        phase2_start=event["phase2_start"],
        phase2_end=event["phase2_end"],
    )


def event_phase_mode(event: dict[str, Any]) -> PhaseMode:
    return phase_mode_from_event(event["phase_mode"], event["current_phase"], event_windows(event))


def event_limits(event: dict[str, Any]) -> BookingLimits:
    return BookingLimits(phase1=event["phase1_booking_limit"], phase2=event["phase2_booking_limit"])


async def _fetch_event(conn, event_id: int, for_update: bool = False) -> dict[str, Any] | None:
    sql = f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = %s"
    if for_update:
        sql += " FOR UPDATE"
    row = await (await conn.execute(sql, (event_id,))).fetchone()
    return _event_from_row(row) if row else None


async def create_event(
    name: str,
    event_date: date,
    location: str | None = None,
    interview_duration_minutes: int = 20,
    buffer_minutes: int = 5,
    slots_per_time: int = 2,
    phase1_booking_limit: int = 3,
    phase2_booking_limit: int = 6,
) -> dict[str, Any]:
    params = InterviewParams(interview_duration_minutes, buffer_minutes, slots_per_time)
    try:
        validate_params(params)
        validate_phase_config(PhaseWindows(), BookingLimits(phase1_booking_limit, phase2_booking_limit))
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc

    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"""
            INSERT INTO events (
                name, event_date, location,
                interview_duration_minutes, buffer_minutes, slots_per_time,
                phase1_booking_limit, phase2_booking_limit
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_EVENT_COLUMNS}
            """,
            (
                name,
                event_date,
                location,
                interview_duration_minutes,
                buffer_minutes,
                slots_per_time,
                phase1_booking_limit,
                phase2_booking_limit,
            ),
        )).fetchone()
        event = _event_from_row(row)
    _logger.info(f"Created event {event['id']} ({name})")
    return event


async def get_event(event_id: int) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        return await _fetch_event(conn, event_id)


async def list_events(active_only: bool = False) -> list[dict[str, Any]]:
    sql = f"SELECT {_EVENT_COLUMNS} FROM events"
    if active_only:
        sql += " WHERE is_active"
    sql += " ORDER BY event_date DESC, id DESC"
    async with _get_connection() as conn:
        rows = await conn.execute(sql)
        return [_event_from_row(row) async for row in rows]


async def update_event(event_id: int, changes: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Apply ``changes`` and regenerate slots if interview parameters moved.

    Returns the updated event and the regeneration result (None when the
    slot grid was not affected).
    """
    from forum.db.slots import _regenerate_in_transaction

    changes = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS and v is not None}
    async with _transaction() as conn:
        event = await _fetch_event(conn, event_id, for_update=True)
        if event is None:
            raise NotFoundError("Event not found", resource_type="event", resource_id=str(event_id))
        if not changes:
            return event, None

        merged = {**event, **changes}
        try:
            validate_params(event_params(merged))
        except ValueError as exc:
            raise BadRequestError(str(exc)) from exc

        assignments = ", ".join(f"{column} = %s" for column in changes)
        row = await (await conn.execute(
            f"UPDATE events SET {assignments}, updated_at = NOW() WHERE id = %s RETURNING {_EVENT_COLUMNS}",
            (*changes.values(), event_id),
        )).fetchone()
        updated = _event_from_row(row)

        regeneration = None
        if any(event[f] != updated[f] for f in _PARAM_FIELDS):
            regeneration = await _regenerate_in_transaction(conn, event_id)
        return updated, regeneration


async def update_phase_config(
    event_id: int,
    phase_mode: str,
    current_phase: int,
    windows: PhaseWindows,
    limits: BookingLimits,
) -> dict[str, Any] | None:
    """Replace the phase mode, manual phase, windows and limits of an event."""
    if phase_mode not in (MODE_MANUAL, MODE_AUTOMATIC):
        raise BadRequestError(f"Unknown phase mode: {phase_mode}")
    if current_phase not in (0, 1, 2):
        raise BadRequestError("Current phase must be 0, 1 or 2")
    try:
        validate_phase_config(windows, limits)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc

    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"""
            UPDATE events
            SET phase_mode = %s,
                current_phase = %s,
                phase1_start = %s,
                phase1_end = %s,
                phase2_start = %s,
                phase2_end = %s,
                phase1_booking_limit = %s,
                phase2_booking_limit = %s,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {_EVENT_COLUMNS}
            """,
            (
                phase_mode,
                current_phase,
                windows.phase1_start,
                windows.phase1_end,
                windows.phase2_start,
                windows.phase2_end,
                limits.phase1,
                limits.phase2,
                event_id,
            ),
        )).fetchone()
    if row is None:
        return None
    _logger.info(f"Event {event_id} phase config set to {phase_mode} (manual phase {current_phase})")
    return _event_from_row(row)


async def get_phase_status(event_id: int, now: datetime | None = None) -> dict[str, Any] | None:
    event = await get_event(event_id)
    if event is None:
        return None
    state = resolve_phase(event_phase_mode(event), now or datetime.now(UTC))
    limits = event_limits(event)
    return {
        "event_id": event_id,
        "phase_mode": event["phase_mode"],
        "current_phase": state.phase,
        "status": state.status,
        "booking_open": state.is_open,
        "max_bookings": limits.for_phase(state.phase),
        "phase1_start": event["phase1_start"],
        "phase1_end": event["phase1_end"],
        "phase2_start": event["phase2_start"],
        "phase2_end": event["phase2_end"],
        "phase1_booking_limit": limits.phase1,
        "phase2_booking_limit": limits.phase2,
    }


async def set_event_active(event_id: int, is_active: bool) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"UPDATE events SET is_active = %s, updated_at = NOW() WHERE id = %s RETURNING {_EVENT_COLUMNS}",
            (is_active, event_id),
        )).fetchone()
        return _event_from_row(row) if row else None


async def delete_event(event_id: int) -> bool:
    """Hard delete. Ranges, slots, bookings and registrations go with it."""
    async with _get_connection() as conn:
        cur = await conn.execute("DELETE FROM events WHERE id = %s", (event_id,))
        deleted = cur.rowcount > 0
    if deleted:
        _logger.warning(f"Deleted event {event_id} and all dependent rows")
    return deleted


def _range_from_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "event_id": row[1],
        "day_date": row[2],
        "start_time": row[3],
        "end_time": row[4],
    }


async def list_time_ranges(event_id: int) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        rows = await conn.execute(
            """
            SELECT id, event_id, day_date, start_time, end_time
            FROM event_time_ranges
            WHERE event_id = %s
            ORDER BY day_date, start_time
            """,
            (event_id,),
        )
        return [_range_from_row(row) async for row in rows]


async def add_time_range(
    event_id: int,
    day_date: date,
    start_time: time,
    end_time: time,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Add a range and regenerate the event's slots in one transaction."""
    from forum.db.slots import _regenerate_in_transaction

    try:
        validate_time_range(TimeRange(day_date, start_time, end_time))
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc

    async with _transaction() as conn:
        if await _fetch_event(conn, event_id, for_update=True) is None:
            raise NotFoundError("Event not found", resource_type="event", resource_id=str(event_id))
        row = await (await conn.execute(
            """
            INSERT INTO event_time_ranges (event_id, day_date, start_time, end_time)
            VALUES (%s, %s, %s, %s)
            RETURNING id, event_id, day_date, start_time, end_time
            """,
            (event_id, day_date, start_time, end_time),
        )).fetchone()
        regeneration = await _regenerate_in_transaction(conn, event_id)
        return _range_from_row(row), regeneration


async def delete_time_range(range_id: int) -> dict[str, Any] | None:
    """Delete a range and regenerate. Returns None if the range is unknown."""
    from forum.db.slots import _regenerate_in_transaction

    async with _transaction() as conn:
        row = await (await conn.execute(
            "DELETE FROM event_time_ranges WHERE id = %s RETURNING event_id",
            (range_id,),
        )).fetchone()
        if row is None:
            return None
        return await _regenerate_in_transaction(conn, row[0])
