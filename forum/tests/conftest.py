import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import fakeredis.aioredis as fakeredis
import pytest
from fastapi.testclient import TestClient

import forum.lifespan as lifespan
import forum.main as main
from forum.config import clear_settings_cache

ADMIN_TOKEN = "test-admin-token"


class MockAsyncCursor:

    def __init__(self, rows=None, executed=None):
        self.rows = rows or []
        self.rowcount = len(self.rows)
        self._index = 0
        self._executed = executed if executed is not None else []

    async def fetchone(self):
        if self.rows:
            return self.rows[0]
        return None

    async def executemany(self, sql, params_seq):
        self._executed.append((sql, list(params_seq)))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self.rows):
            raise StopAsyncIteration
        row = self.rows[self._index]
        self._index += 1
        return row


class MockAsyncConnection:
    """Replays one result per ``execute`` call and records every statement.

    A scripted exception instance is raised instead of returned.
    """

    def __init__(self, cursor_results=None):
        self.cursor_results = list(cursor_results or [])
        self.executed: list[tuple[str, object]] = []
        self._call_index = 0

    async def execute(self, sql, params=None):
        self.executed.append((sql, params))
        rows = None
        if self._call_index < len(self.cursor_results):
            rows = self.cursor_results[self._call_index]
            self._call_index += 1
        if isinstance(rows, Exception):
            raise rows
        return MockAsyncCursor(rows, self.executed)

    def cursor(self):
        return MockAsyncCursor([], self.executed)

    @asynccontextmanager
    async def transaction(self):
        yield

    def statements(self, needle: str) -> list[tuple[str, object]]:
        return [(sql, params) for sql, params in self.executed if needle in sql]

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def mock_db():
    """Install a scripted connection behind ``forum.db.core``.

    Usage: ``conn = mock_db([rows_for_call_1, rows_for_call_2, ...])``.
    Every connection opened during the test is the same object, so results
    are consumed in order across helper calls.
    """
    holder: dict[str, MockAsyncConnection] = {}

    def install(cursor_results=None) -> MockAsyncConnection:
        holder["conn"] = MockAsyncConnection(cursor_results)
        return holder["conn"]

    async def connect(*_args, **_kwargs):
        return holder["conn"]

    with patch("forum.db.core.psycopg.AsyncConnection") as mock:
        mock.connect = connect
        yield install


@pytest.fixture
def client(monkeypatch):
    def fake_redis_constructor(*_args, **_kwargs):
        return fakeredis.FakeRedis(decode_responses=True)

    monkeypatch.setattr(lifespan.redis, "Redis", fake_redis_constructor)
    monkeypatch.setattr(lifespan, "init_database", AsyncMock(return_value=False))

    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    clear_settings_cache()
    yield {"X-Admin-Token": ADMIN_TOKEN}
    clear_settings_cache()
