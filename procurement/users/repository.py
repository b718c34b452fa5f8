from __future__ import annotations

from typing import Any, Collection, Mapping, Protocol
from uuid import UUID

import asyncpg

from procurement.services.postgres import to_uuid

from .models import PasswordHash, Role, User


class CredentialStore(Protocol):
    async def get_user_by_login(self, login: str) -> User | None:
        ...

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        ...

    async def get_users_by_ids(self, user_ids: Collection[UUID]) -> dict[UUID, User]:
        ...


class UserRepository:
    """Data access layer for user accounts."""

    _CREATE_USERS_SQL = """
    CREATE TABLE IF NOT EXISTS users (
        id UUID PRIMARY KEY,
        name TEXT NOT NULL,
        login TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role SMALLINT NOT NULL CHECK (role >= 1 AND role <= 3)
    )
    """

    _SELECT_BY_LOGIN_SQL = """
    SELECT id, name, login, password_hash, role
    FROM users
    WHERE login = $1
    LIMIT 1
    """

    _SELECT_BY_ID_SQL = """
    SELECT id, name, login, password_hash, role
    FROM users
    WHERE id = $1
    LIMIT 1
    """

    _SELECT_BY_IDS_SQL = """
    SELECT id, name, login, password_hash, role
    FROM users
    WHERE id = ANY($1::uuid[])
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_USERS_SQL)

    async def get_user_by_login(self, login: str) -> User | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_BY_LOGIN_SQL, login)
        if row is None:
            return None
        return self._row_to_user(row)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_BY_ID_SQL, user_id)
        if row is None:
            return None
        return self._row_to_user(row)

    async def get_users_by_ids(self, user_ids: Collection[UUID]) -> dict[UUID, User]:
        if not user_ids:
            return {}
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_BY_IDS_SQL, list(user_ids))
        users = (self._row_to_user(row) for row in rows)
        return {user.id: user for user in users}

    @staticmethod
    def _row_to_user(row: Mapping[str, Any]) -> User:
        return User(
            id=to_uuid(row["id"]),
            name=str(row["name"]),
            login=str(row["login"]),
            password_hash=PasswordHash(str(row["password_hash"])),
            role=Role.from_code(row["role"]),
        )
