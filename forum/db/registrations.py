"""Company registrations for events and their approval workflow."""

import logging
from datetime import UTC, datetime
from typing import Any

from psycopg import errors as pg_errors

from forum.db.core import _get_connection, _transaction
from forum.errors import BadRequestError, ConflictError, NotFoundError

_logger = logging.getLogger(__name__)

REGISTRATION_STATUSES = ("pending", "approved", "rejected")

_REGISTRATION_SELECT = """
    SELECT r.id, r.event_id, e.name, r.company_id, c.name, r.status, r.notes, r.created_at, r.decided_at
    FROM event_registrations r
    JOIN events e ON e.id = r.event_id
    JOIN companies c ON c.id = r.company_id
"""


def _registration_from_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "event_id": row[1],
        "event_name": row[2],
        "company_id": row[3],
        "company_name": row[4],
        "status": row[5],
        "notes": row[6],
        "created_at": row[7],
        "decided_at": row[8],
    }


async def _fetch_registration(conn, registration_id: int) -> dict[str, Any] | None:
    row = await (await conn.execute(
        _REGISTRATION_SELECT + " WHERE r.id = %s",
        (registration_id,),
    )).fetchone()
    return _registration_from_row(row) if row else None


async def register_company(event_id: int, company_id: int) -> dict[str, Any]:
    """Register a verified company for an event, pending admin review."""
    async with _transaction() as conn:
        company = await (await conn.execute(
            "SELECT is_verified FROM companies WHERE id = %s",
            (company_id,),
        )).fetchone()
        if company is None:
            raise NotFoundError("Company not found", resource_type="company", resource_id=str(company_id))
        if not company[0]:
            raise BadRequestError("Company must be verified before registering for events")

        event = await (await conn.execute(
            "SELECT is_active FROM events WHERE id = %s",
            (event_id,),
        )).fetchone()
        if event is None:
            raise NotFoundError("Event not found", resource_type="event", resource_id=str(event_id))
        if not event[0]:
            raise BadRequestError("Event is not active")

        try:
            row = await (await conn.execute(
                """
                INSERT INTO event_registrations (event_id, company_id)
                VALUES (%s, %s)
                RETURNING id
                """,
                (event_id, company_id),
            )).fetchone()
        except pg_errors.UniqueViolation as exc:
            raise ConflictError("Company is already registered for this event") from exc
        registration = await _fetch_registration(conn, row[0])
    _logger.info(f"Company {company_id} registered for event {event_id}")
    return registration


async def decide_registration(
    registration_id: int,
    status: str,
    notes: str | None = None,
) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Approve or reject a registration.

    Any change in or out of ``approved`` regenerates the event's slots in the
    same transaction. Returns the registration and the regeneration result.
    """
    from forum.db.slots import _regenerate_in_transaction

    if status not in REGISTRATION_STATUSES:
        raise BadRequestError(f"Unknown registration status: {status}")

    async with _transaction() as conn:
        current = await (await conn.execute(
            "SELECT event_id, status FROM event_registrations WHERE id = %s FOR UPDATE",
            (registration_id,),
        )).fetchone()
        if current is None:
            raise NotFoundError(
                "Registration not found", resource_type="registration", resource_id=str(registration_id)
            )
        event_id, previous = current
        await conn.execute(
            """
            UPDATE event_registrations
            SET status = %s, notes = %s, decided_at = %s
            WHERE id = %s
            """,
            (status, notes, datetime.now(UTC) if status != "pending" else None, registration_id),
        )
        regeneration = None
        if "approved" in (previous, status) and previous != status:
            regeneration = await _regenerate_in_transaction(conn, event_id)
        registration = await _fetch_registration(conn, registration_id)
    _logger.info(f"Registration {registration_id} for event {event_id}: {previous} -> {status}")
    return registration, regeneration


async def list_registrations(
    event_id: int | None = None,
    company_id: int | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    clauses = []
    params: list[Any] = []
    if event_id is not None:
        clauses.append("r.event_id = %s")
        params.append(event_id)
    if company_id is not None:
        clauses.append("r.company_id = %s")
        params.append(company_id)
    if status:
        clauses.append("r.status = %s")
        params.append(status)
    sql = _REGISTRATION_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY r.created_at DESC, r.id DESC"
    async with _get_connection() as conn:
        rows = await conn.execute(sql, tuple(params))
        return [_registration_from_row(row) async for row in rows]
