"""
Tests for the database pool manager and query helpers.
"""

from unittest.mock import AsyncMock

import psycopg
import pytest

from relationship_engine.config import Settings, settings
from relationship_engine.db import helpers
from relationship_engine.db.helpers import DatabaseError, fetch_one, with_db_retry
from relationship_engine.db.pool import DatabasePoolManager


class TestPoolManager:
    """Lifecycle guards of the pool manager."""

    @pytest.mark.asyncio
    async def test_connection_requires_initialize(self):
        manager = DatabasePoolManager()

        with pytest.raises(RuntimeError):
            async with manager.connection():
                pass

    @pytest.mark.asyncio
    async def test_initialize_requires_database_url(self, monkeypatch):
        monkeypatch.setattr(settings, "DATABASE_URL", None)
        manager = DatabasePoolManager()

        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            await manager.initialize()
        assert manager.initialized is False

    @pytest.mark.asyncio
    async def test_close_without_initialize_is_noop(self):
        await DatabasePoolManager().close()

    def test_development_pool_is_conservative(self):
        dev = Settings(environment="development").get_db_pool_config()
        prod = Settings(environment="production").get_db_pool_config()

        assert dev["max_size"] == 4
        assert prod["max_size"] == Settings(environment="production").DB_POOL_MAX_SIZE


class TestHelpers:
    """Error wrapping and retry behaviour."""

    @pytest.mark.asyncio
    async def test_psycopg_errors_are_wrapped(self):
        class BrokenConnection:
            def cursor(self):
                raise psycopg.OperationalError("server closed the connection")

        with pytest.raises(DatabaseError) as exc_info:
            await fetch_one("SELECT 1", connection=BrokenConnection())

        assert exc_info.value.operation == "fetch_one"
        assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)

    @pytest.mark.asyncio
    async def test_retry_recovers_from_transient_error(self, monkeypatch):
        monkeypatch.setattr(helpers.asyncio, "sleep", AsyncMock())
        attempts = {"count": 0}

        @with_db_retry(max_retries=2, base_delay=0.01)
        async def flaky():
            attempts["count"] += 1
            if attempts["count"] < 2:
                raise psycopg.OperationalError("connection reset")
            return "ok"

        assert await flaky() == "ok"
        assert attempts["count"] == 2

    @pytest.mark.asyncio
    async def test_retry_gives_up_after_max_retries(self, monkeypatch):
        sleep_mock = AsyncMock()
        monkeypatch.setattr(helpers.asyncio, "sleep", sleep_mock)

        @with_db_retry(max_retries=2, base_delay=0.1)
        async def always_down():
            wrapped = DatabaseError("Query failed", operation="fetch_one")
            raise wrapped from psycopg.OperationalError("down")

        with pytest.raises(DatabaseError) as exc_info:
            await always_down()

        assert exc_info.value.recoverable is False
        assert [call.args[0] for call in sleep_mock.await_args_list] == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_retry_does_not_repeat_permanent_errors(self):
        attempts = {"count": 0}

        @with_db_retry(max_retries=3)
        async def bad_query():
            attempts["count"] += 1
            raise DatabaseError("syntax error", operation="fetch_all")

        with pytest.raises(DatabaseError):
            await bad_query()
        assert attempts["count"] == 1
