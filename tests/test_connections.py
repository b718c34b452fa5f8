from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from procurement.services.postgres import PostgresPool, ensure_datetime, to_optional_uuid, to_uuid


@pytest.fixture
def pool_mock(monkeypatch):
    connection_mock = AsyncMock()

    class DummyAcquire:
        async def __aenter__(self):
            return connection_mock

        async def __aexit__(self, exc_type, exc, tb):
            return False

    pool = MagicMock()
    pool.acquire.return_value = DummyAcquire()
    pool.close = AsyncMock()
    pool.connection = connection_mock

    created: list[dict] = []

    async def create_pool(**kwargs):
        created.append(kwargs)
        return pool

    monkeypatch.setattr("procurement.services.postgres.asyncpg.create_pool", create_pool)
    pool.created = created
    return pool


@pytest.mark.asyncio
async def test_postgres_pool_tests_connection(pool_mock):
    postgres = PostgresPool("postgresql://test", min_size=2, max_size=4)

    assert await postgres.test_connection() is True
    pool_mock.connection.execute.assert_awaited_with("SELECT 1")
    assert pool_mock.created == [{"dsn": "postgresql://test", "min_size": 2, "max_size": 4}]

    await postgres.close()
    pool_mock.close.assert_awaited()


@pytest.mark.asyncio
async def test_postgres_pool_is_created_once(pool_mock):
    postgres = PostgresPool("postgresql://test")

    first = await postgres.get_pool()
    second = await postgres.get_pool()

    assert first is second
    assert len(pool_mock.created) == 1


@pytest.mark.asyncio
async def test_close_without_pool_is_noop(pool_mock):
    postgres = PostgresPool("postgresql://test")

    await postgres.close()

    pool_mock.close.assert_not_awaited()
    assert pool_mock.created == []


def test_row_coercion_helpers():
    value = UUID(int=7)

    assert to_uuid(value) is value
    assert to_uuid(str(value)) == value
    assert to_optional_uuid(None) is None
    assert to_optional_uuid(str(value)) == value

    naive = datetime(2026, 1, 2, 3, 4)
    assert ensure_datetime(naive) == naive.replace(tzinfo=timezone.utc)
    offset = timezone(timedelta(hours=3))
    aware = datetime(2026, 1, 2, 3, 4, tzinfo=offset)
    assert ensure_datetime(aware) is aware
    assert ensure_datetime("2026-01-02T03:04:00+00:00") == datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
