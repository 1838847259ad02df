"""Tests for the database migration system."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest


class TestMigrationSystem:

    @pytest.mark.asyncio
    async def test_get_current_version_creates_table(self, mock_db):
        conn = mock_db([None, [(0,)]])

        from forum.db.migrations import get_current_version

        version = await get_current_version()

        assert "CREATE TABLE IF NOT EXISTS schema_migrations" in conn.executed[0][0]
        assert version == 0

    @pytest.mark.asyncio
    async def test_get_current_version_returns_max(self, mock_db):
        mock_db([None, [(5,)]])

        from forum.db.migrations import get_current_version

        assert await get_current_version() == 5

    @pytest.mark.asyncio
    async def test_apply_migration_skips_if_already_applied(self):
        from forum.db.migrations import apply_migration

        with patch("forum.db.migrations.get_current_version", new_callable=AsyncMock, return_value=5):
            assert await apply_migration(3, "SELECT 1;", "test") is False

    @pytest.mark.asyncio
    async def test_apply_migration_records_version(self, mock_db):
        conn = mock_db()

        from forum.db.migrations import apply_migration

        with patch("forum.db.migrations.get_current_version", new_callable=AsyncMock, return_value=2):
            assert await apply_migration(3, "CREATE TABLE test (id INT);", "test migration") is True

        assert conn.executed[0][0] == "CREATE TABLE test (id INT);"
        insert_sql, insert_params = conn.executed[1]
        assert "INSERT INTO schema_migrations" in insert_sql
        assert insert_params == (3, "test migration")

    def test_list_migration_files_parses_versions(self):
        from forum.db.migrations import list_migration_files

        files = list_migration_files()
        assert files[0]["version"] == 1
        assert files[0]["filename"] == "001_initial.sql"
        assert files[0]["description"] == "initial"

    @pytest.mark.asyncio
    async def test_get_pending_migrations_excludes_applied(self):
        from forum.db.migrations import get_pending_migrations

        with patch("forum.db.migrations.get_current_version", new_callable=AsyncMock, return_value=1):
            pending = await get_pending_migrations()
        assert 1 not in [m["version"] for m in pending]

    @pytest.mark.asyncio
    async def test_run_migrations_applies_pending(self):
        from forum.db.migrations import run_migrations

        with patch("forum.db.migrations.get_current_version", new_callable=AsyncMock, return_value=0), \
             patch("forum.db.migrations.apply_migration", new_callable=AsyncMock, return_value=True) as mock_apply:
            applied = await run_migrations()

        assert applied >= 1
        first_sql = mock_apply.call_args_list[0][0][1]
        assert "CREATE TABLE IF NOT EXISTS bookings" in first_sql

    @pytest.mark.asyncio
    async def test_get_migration_history_returns_list(self, mock_db):
        applied_at = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        mock_db([None, [(1, applied_at, "initial")]])

        from forum.db.migrations import get_migration_history

        history = await get_migration_history()

        assert history == [{"version": 1, "applied_at": applied_at.isoformat(), "description": "initial"}]


class TestSchemaModule:

    @pytest.mark.asyncio
    async def test_ensure_schema_runs_migrations(self):
        with patch("forum.db.schema.get_current_version", new_callable=AsyncMock) as mock_version, \
             patch("forum.db.schema.run_migrations", new_callable=AsyncMock) as mock_run:
            mock_version.return_value = 0
            mock_run.return_value = 1

            from forum.db.schema import _ensure_schema

            await _ensure_schema()

            mock_version.assert_called()
            mock_run.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_schema_info_returns_dict(self):
        with patch("forum.db.schema.get_current_version", new_callable=AsyncMock) as mock_version, \
             patch("forum.db.schema.get_migration_history", new_callable=AsyncMock) as mock_history:
            mock_version.return_value = 1
            mock_history.return_value = [{"version": 1}]

            from forum.db.schema import get_schema_info

            info = await get_schema_info()

            assert info["current_version"] == 1
            assert len(info["migration_history"]) == 1
