from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from procurement.users.models import PasswordHash, Role
from procurement.users.repository import UserRepository


def _row(number: int, role: int = 1):
    return {
        "id": UUID(int=number),
        "name": f"User {number}",
        "login": f"user{number}",
        "password_hash": "secret",
        "role": role,
    }


@pytest.mark.asyncio
async def test_ensure_schema_creates_users_table(connection, dummy_pool):
    await UserRepository(dummy_pool).ensure_schema()

    statement = connection.execute.await_args.args[0]
    assert "CREATE TABLE IF NOT EXISTS users" in statement
    assert "login TEXT NOT NULL UNIQUE" in statement


@pytest.mark.asyncio
async def test_get_user_by_login_maps_row(connection, dummy_pool):
    connection.fetchrow = AsyncMock(return_value=_row(5, role=2))

    user = await UserRepository(dummy_pool).get_user_by_login("user5")

    assert user is not None
    assert user.id == UUID(int=5)
    assert user.role is Role.PURCHASING_MANAGER
    assert user.password_hash == PasswordHash("secret")
    assert connection.fetchrow.await_args.args[1] == "user5"


@pytest.mark.asyncio
async def test_get_user_by_id_returns_none_when_missing(connection, dummy_pool):
    connection.fetchrow = AsyncMock(return_value=None)

    assert await UserRepository(dummy_pool).get_user_by_id(UUID(int=1)) is None


@pytest.mark.asyncio
async def test_get_users_by_ids_issues_one_query(connection, dummy_pool):
    connection.fetch = AsyncMock(return_value=[_row(1), _row(3, role=3)])
    requested = {UUID(int=1), UUID(int=2), UUID(int=3)}

    users = await UserRepository(dummy_pool).get_users_by_ids(requested)

    connection.fetch.assert_awaited_once()
    statement, ids = connection.fetch.await_args.args
    assert "ANY($1::uuid[])" in statement
    assert set(ids) == requested
    assert set(users) == {UUID(int=1), UUID(int=3)}
    assert users[UUID(int=3)].role is Role.ACCOUNTING_MANAGER


@pytest.mark.asyncio
async def test_get_users_by_ids_skips_query_for_empty_input(connection, dummy_pool):
    connection.fetch = AsyncMock()

    assert await UserRepository(dummy_pool).get_users_by_ids([]) == {}
    connection.fetch.assert_not_awaited()
