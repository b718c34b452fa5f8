from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Collection
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from procurement.tickets.models import Ticket
from procurement.users.models import PasswordHash, Role, User


class InMemoryCredentialStore:
    def __init__(self, users: Collection[User] = ()) -> None:
        self._users = {user.id: user for user in users}
        self.batch_calls: list[set[UUID]] = []

    def add(self, user: User) -> None:
        self._users[user.id] = user

    def remove(self, user_id: UUID) -> None:
        self._users.pop(user_id, None)

    async def get_user_by_login(self, login: str) -> User | None:
        return next((user for user in self._users.values() if user.login == login), None)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    async def get_users_by_ids(self, user_ids: Collection[UUID]) -> dict[UUID, User]:
        self.batch_calls.append(set(user_ids))
        return {user_id: self._users[user_id] for user_id in user_ids if user_id in self._users}


class InMemoryTicketStore:
    def __init__(self) -> None:
        self._tickets: dict[UUID, Ticket] = {}

    async def get_ticket_by_id(self, ticket_id: UUID) -> Ticket | None:
        return self._tickets.get(ticket_id)

    async def get_tickets_page(self, offset: int, limit: int) -> list[Ticket]:
        ordered = sorted(
            self._tickets.values(),
            key=lambda ticket: (ticket.created_at, str(ticket.id)),
            reverse=True,
        )
        return ordered[offset : offset + limit]

    async def get_tickets_count(self) -> int:
        return len(self._tickets)

    async def upsert_ticket(self, ticket: Ticket) -> None:
        self._tickets[ticket.id] = ticket


def make_user(number: int, name: str, role: Role) -> User:
    return User(
        id=UUID(int=number),
        name=name,
        role=role,
        login=name.lower(),
        password_hash=PasswordHash.new("password"),
    )


class TickingClock:
    """Clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def alice() -> User:
    return make_user(1, "Alice", Role.INITIATOR)


@pytest.fixture
def bob() -> User:
    return make_user(2, "Bob", Role.PURCHASING_MANAGER)


@pytest.fixture
def carol() -> User:
    return make_user(3, "Carol", Role.ACCOUNTING_MANAGER)


@pytest.fixture
def dave() -> User:
    return make_user(4, "Dave", Role.INITIATOR)


@pytest.fixture
def credential_store(alice, bob, carol, dave) -> InMemoryCredentialStore:
    return InMemoryCredentialStore([alice, bob, carol, dave])


@pytest.fixture
def ticket_store() -> InMemoryTicketStore:
    return InMemoryTicketStore()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


class DummyAcquire:
    def __init__(self, connection):
        self._connection = connection

    async def __aenter__(self):
        return self._connection

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyPool:
    def __init__(self, connection):
        self._connection = connection

    def acquire(self):
        return DummyAcquire(self._connection)


@pytest.fixture
def connection() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def dummy_pool(connection) -> DummyPool:
    return DummyPool(connection)
