"""Companies and their verification state."""

from datetime import UTC, datetime
from typing import Any

from forum.db.core import _get_connection

_COMPANY_COLUMNS = "id, name, email, verification_status, is_verified, verified_at, created_at"


def _company_from_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "name": row[1],
        "email": row[2],
        "verification_status": row[3],
        "is_verified": row[4],
        "verified_at": row[5],
        "created_at": row[6],
    }


async def create_company(name: str, email: str | None = None) -> dict[str, Any]:
    """Insert a company in ``pending`` verification state.

    Raises psycopg.errors.UniqueViolation when the name is taken.
    """
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"INSERT INTO companies (name, email) VALUES (%s, %s) RETURNING {_COMPANY_COLUMNS}",
            (name, email),
        )).fetchone()
        return _company_from_row(row)


async def get_company(company_id: int) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE id = %s",
            (company_id,),
        )).fetchone()
        return _company_from_row(row) if row else None


async def list_companies(verification_status: str | None = None) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        if verification_status:
            rows = await conn.execute(
                f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE verification_status = %s ORDER BY name",
                (verification_status,),
            )
        else:
            rows = await conn.execute(f"SELECT {_COMPANY_COLUMNS} FROM companies ORDER BY name")
        return [_company_from_row(row) async for row in rows]


async def set_company_verification(company_id: int, is_verified: bool) -> dict[str, Any] | None:
    """Verify or reject a company. Returns None if it does not exist."""
    now = datetime.now(UTC)
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"""
            UPDATE companies
            SET is_verified = %s,
                verification_status = %s,
                verified_at = %s
            WHERE id = %s
            RETURNING {_COMPANY_COLUMNS}
            """,
            (
                is_verified,
                "verified" if is_verified else "rejected",
                now if is_verified else None,
                company_id,
            ),
        )).fetchone()
        return _company_from_row(row) if row else None


async def list_company_event_ids(company_id: int, status: str = "approved") -> list[int]:
    """Events the company holds a registration of ``status`` for."""
    async with _get_connection() as conn:
        rows = await conn.execute(
            "SELECT event_id FROM event_registrations WHERE company_id = %s AND status = %s ORDER BY event_id",
            (company_id, status),
        )
        return [row[0] async for row in rows]
