"""Student records. Identity itself comes from the external provider."""

from typing import Any

from forum.db.core import _get_connection

_STUDENT_COLUMNS = "id, full_name, email, is_deprioritized, created_at"


def _student_from_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "full_name": row[1],
        "email": row[2],
        "is_deprioritized": row[3],
        "created_at": row[4],
    }


async def create_student(full_name: str, email: str, is_deprioritized: bool = False) -> dict[str, Any]:
    """Raises psycopg.errors.UniqueViolation when the email is taken."""
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"""
            INSERT INTO students (full_name, email, is_deprioritized)
            VALUES (%s, %s, %s)
            RETURNING {_STUDENT_COLUMNS}
            """,
            (full_name, email.lower(), is_deprioritized),
        )).fetchone()
        return _student_from_row(row)


async def get_student(student_id: int) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"SELECT {_STUDENT_COLUMNS} FROM students WHERE id = %s",
            (student_id,),
        )).fetchone()
        return _student_from_row(row) if row else None


async def set_student_deprioritized(student_id: int, is_deprioritized: bool) -> dict[str, Any] | None:
    """Move a student in or out of the Head Start group."""
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"UPDATE students SET is_deprioritized = %s WHERE id = %s RETURNING {_STUDENT_COLUMNS}",
            (is_deprioritized, student_id),
        )).fetchone()
        return _student_from_row(row) if row else None
