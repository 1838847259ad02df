"""Database migrations module.

Migrations are versioned SQL files (``NNN_description.sql``) in this
directory, applied in order and recorded in ``schema_migrations``.
"""

import logging
from pathlib import Path
from typing import Any

from forum.db.core import _get_connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    description TEXT
);
"""


async def get_current_version() -> int:
    """Get the current migration version from the database."""
    async with _get_connection() as conn:
        await conn.execute(_CREATE_MIGRATIONS_TABLE)
        row = await (await conn.execute(
            "SELECT COALESCE(MAX(version), 0) FROM schema_migrations"
        )).fetchone()
        return int(row[0]) if row and row[0] else 0


async def apply_migration(version: int, sql: str, description: str = "") -> bool:
    """Apply a single migration inside one transaction.

    Returns:
        True if migration was applied, False if already applied.
    """
    current = await get_current_version()
    if version <= current:
        logger.debug("Migration %d already applied", version)
        return False

    async with _get_connection() as conn:
        try:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    "INSERT INTO schema_migrations (version, description) VALUES (%s, %s)",
                    (version, description),
                )
        except Exception as e:
            logger.error("Failed to apply migration %d: %s", version, e)
            raise
    logger.info("Applied migration %d: %s", version, description)
    return True


def list_migration_files() -> list[dict[str, Any]]:
    """All migration files on disk, ordered by version."""
    migrations = []
    for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
        # "001_initial.sql" -> 1
        try:
            version = int(path.stem.split("_")[0])
        except (ValueError, IndexError):
            continue
        migrations.append({
            "version": version,
            "filename": path.name,
            "description": "_".join(path.stem.split("_")[1:]),
            "path": path,
        })
    return migrations


async def get_pending_migrations() -> list[dict[str, Any]]:
    """Get list of migrations newer than the applied version."""
    current = await get_current_version()
    return [m for m in list_migration_files() if m["version"] > current]


async def run_migrations() -> int:
    """Run all pending migrations.

    Returns:
        Number of migrations applied.
    """
    applied = 0
    for migration in await get_pending_migrations():
        sql = migration["path"].read_text()
        if await apply_migration(migration["version"], sql, migration["description"]):
            applied += 1

    if applied:
        logger.info("Applied %d migrations", applied)
    else:
        logger.debug("No pending migrations")
    return applied


async def get_migration_history() -> list[dict[str, Any]]:
    """Get the history of applied migrations."""
    async with _get_connection() as conn:
        await conn.execute(_CREATE_MIGRATIONS_TABLE)
        rows = await conn.execute(
            "SELECT version, applied_at, description FROM schema_migrations ORDER BY version"
        )
        return [
            {"version": row[0], "applied_at": row[1].isoformat(), "description": row[2]}
            async for row in rows
        ]
