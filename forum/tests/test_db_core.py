from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest

from forum.db import core


class _Connection:

    def __init__(self):
        self.events: list[str] = []
        self.set_autocommit = AsyncMock()

    @asynccontextmanager
    async def transaction(self):
        self.events.append("begin")
        try:
            yield
        except Exception:
            self.events.append("rollback")
            raise
        self.events.append("commit")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        self.events.append("close")


class _Pool:

    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def connection(self):
        yield self.conn


class TestTransaction:

    @pytest.mark.asyncio
    async def test_direct_connection_is_autocommit_with_explicit_block(self, monkeypatch):
        conn = _Connection()
        connect_kwargs = {}

        async def connect(dsn, **kwargs):
            connect_kwargs.update(kwargs)
            return conn

        monkeypatch.setattr(core, "_pool", None)
        with patch.object(core, "_get_dsn", return_value="postgresql://test"), \
             patch("forum.db.core.psycopg.AsyncConnection.connect", new=connect):
            async with core._transaction() as yielded:
                assert yielded is conn
                assert conn.events == ["begin"]

        assert connect_kwargs == {"autocommit": True}
        assert conn.events == ["begin", "commit", "close"]

    @pytest.mark.asyncio
    async def test_pooled_connection_is_switched_to_autocommit(self, monkeypatch):
        conn = _Connection()
        monkeypatch.setattr(core, "_pool", _Pool(conn))

        async with core._transaction():
            pass

        conn.set_autocommit.assert_awaited_once_with(True)
        assert conn.events == ["begin", "commit"]

    @pytest.mark.asyncio
    async def test_error_in_block_rolls_back(self, monkeypatch):
        conn = _Connection()
        monkeypatch.setattr(core, "_pool", _Pool(conn))

        with pytest.raises(RuntimeError):
            async with core._transaction():
                raise RuntimeError("boom")

        assert conn.events == ["begin", "rollback"]
