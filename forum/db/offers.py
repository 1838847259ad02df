"""Internship offers posted by companies."""

import logging
from typing import Any

from forum.db.core import _get_connection, _transaction
from forum.errors import BadRequestError, NotFoundError

_logger = logging.getLogger(__name__)

_OFFER_COLUMNS = (
    "id, company_id, event_id, title, description, category, department, duration, "
    "is_paid, is_remote, skills, is_active, created_at, updated_at"
)
_EDITABLE_FIELDS = (
    "event_id", "title", "description", "category", "department",
    "duration", "is_paid", "is_remote", "skills",
)


def _offer_from_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "company_id": row[1],
        "event_id": row[2],
        "title": row[3],
        "description": row[4],
        "category": row[5],
        "department": row[6],
        "duration": row[7],
        "is_paid": row[8],
        "is_remote": row[9],
        "skills": list(row[10] or []),
        "is_active": row[11],
        "created_at": row[12],
        "updated_at": row[13],
    }


async def _require_approved(conn, company_id: int, event_id: int) -> None:
    row = await (await conn.execute(
        "SELECT status FROM event_registrations WHERE event_id = %s AND company_id = %s",
        (event_id, company_id),
    )).fetchone()
    if row is None or row[0] != "approved":
        raise BadRequestError("Company is not approved for this event")


async def create_offer(company_id: int, fields: dict[str, Any]) -> dict[str, Any]:
    """Create an offer. Linking it to an event requires an approved registration."""
    values = {k: v for k, v in fields.items() if k in _EDITABLE_FIELDS}
    if not values.get("title"):
        raise BadRequestError("Offer title is required")
    async with _transaction() as conn:
        company = await (await conn.execute("SELECT id FROM companies WHERE id = %s", (company_id,))).fetchone()
        if company is None:
            raise NotFoundError("Company not found", resource_type="company", resource_id=str(company_id))
        if values.get("event_id") is not None:
            await _require_approved(conn, company_id, values["event_id"])

        columns = ["company_id", *values]
        placeholders = ", ".join(["%s"] * len(columns))
        row = await (await conn.execute(
            f"INSERT INTO offers ({', '.join(columns)}) VALUES ({placeholders}) RETURNING {_OFFER_COLUMNS}",
            (company_id, *values.values()),
        )).fetchone()
    offer = _offer_from_row(row)
    _logger.info(f"Company {company_id} created offer {offer['id']} (event={offer['event_id']})")
    return offer


async def get_offer(offer_id: int) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"SELECT {_OFFER_COLUMNS} FROM offers WHERE id = %s",
            (offer_id,),
        )).fetchone()
        return _offer_from_row(row) if row else None


async def update_offer(offer_id: int, changes: dict[str, Any]) -> dict[str, Any] | None:
    """Edit an offer. ``event_id`` may be set to None explicitly to unlink it."""
    values = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS}
    async with _transaction() as conn:
        current = await (await conn.execute(
            "SELECT company_id FROM offers WHERE id = %s FOR UPDATE",
            (offer_id,),
        )).fetchone()
        if current is None:
            return None
        if not values:
            row = await (await conn.execute(
                f"SELECT {_OFFER_COLUMNS} FROM offers WHERE id = %s",
                (offer_id,),
            )).fetchone()
            return _offer_from_row(row)
        if values.get("event_id") is not None:
            await _require_approved(conn, current[0], values["event_id"])

        assignments = ", ".join(f"{column} = %s" for column in values)
        row = await (await conn.execute(
            f"UPDATE offers SET {assignments}, updated_at = NOW() WHERE id = %s RETURNING {_OFFER_COLUMNS}",
            (*values.values(), offer_id),
        )).fetchone()
        return _offer_from_row(row)


async def set_offer_active(offer_id: int, is_active: bool) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"UPDATE offers SET is_active = %s, updated_at = NOW() WHERE id = %s RETURNING {_OFFER_COLUMNS}",
            (is_active, offer_id),
        )).fetchone()
        return _offer_from_row(row) if row else None


async def list_offers(
    company_id: int | None = None,
    event_id: int | None = None,
    active_only: bool = True,
) -> list[dict[str, Any]]:
    clauses = []
    params: list[Any] = []
    if company_id is not None:
        clauses.append("company_id = %s")
        params.append(company_id)
    if event_id is not None:
        # Unlinked offers are valid in every event.
        clauses.append("(event_id = %s OR event_id IS NULL)")
        params.append(event_id)
    if active_only:
        clauses.append("is_active")
    sql = f"SELECT {_OFFER_COLUMNS} FROM offers"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at DESC, id DESC"
    async with _get_connection() as conn:
        rows = await conn.execute(sql, tuple(params))
        return [_offer_from_row(row) async for row in rows]
