from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence
from uuid import UUID

import asyncpg

from procurement.services.postgres import ensure_datetime, to_optional_uuid, to_uuid

from .models import Ticket, TicketStatus


class TicketStore(Protocol):
    async def get_ticket_by_id(self, ticket_id: UUID) -> Ticket | None:
        ...

    async def get_tickets_page(self, offset: int, limit: int) -> Sequence[Ticket]:
        ...

    async def get_tickets_count(self) -> int:
        ...

    async def upsert_ticket(self, ticket: Ticket) -> None:
        ...


class TicketRepository:
    """Data access layer for ticket records."""

    _CREATE_TICKETS_SQL = """
    CREATE TABLE IF NOT EXISTS tickets (
        id UUID PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        status SMALLINT NOT NULL CHECK (status >= 1 AND status <= 5),
        count INT NOT NULL,
        price DOUBLE PRECISION,
        initiator_id UUID NOT NULL REFERENCES users(id) ON UPDATE RESTRICT ON DELETE RESTRICT,
        purchasing_manager_id UUID REFERENCES users(id) ON UPDATE RESTRICT ON DELETE RESTRICT,
        accounting_manager_id UUID REFERENCES users(id) ON UPDATE RESTRICT ON DELETE RESTRICT,
        created_at TIMESTAMPTZ NOT NULL
    )
    """

    _CREATE_PAGE_INDEX_SQL = """
    CREATE INDEX IF NOT EXISTS ix_tickets_created_at_id ON tickets (created_at DESC, id DESC)
    """

    _SELECT_TICKET_SQL = """
    SELECT id, title, description, status, count, price,
           initiator_id, purchasing_manager_id, accounting_manager_id, created_at
    FROM tickets
    WHERE id = $1
    """

    # id breaks ties between tickets sharing a timestamp so pages stay stable.
    _SELECT_PAGE_SQL = """
    SELECT id, title, description, status, count, price,
           initiator_id, purchasing_manager_id, accounting_manager_id, created_at
    FROM tickets
    ORDER BY created_at DESC, id DESC
    OFFSET $1 LIMIT $2
    """

    _COUNT_SQL = "SELECT COUNT(*) FROM tickets"

    _UPSERT_TICKET_SQL = """
    INSERT INTO tickets (id, title, description, status, count, price,
                         initiator_id, purchasing_manager_id, accounting_manager_id, created_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
    ON CONFLICT (id) DO UPDATE
    SET title = EXCLUDED.title,
        description = EXCLUDED.description,
        status = EXCLUDED.status,
        count = EXCLUDED.count,
        price = EXCLUDED.price,
        initiator_id = EXCLUDED.initiator_id,
        purchasing_manager_id = EXCLUDED.purchasing_manager_id,
        accounting_manager_id = EXCLUDED.accounting_manager_id,
        created_at = EXCLUDED.created_at
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_TICKETS_SQL)
            await connection.execute(self._CREATE_PAGE_INDEX_SQL)

    async def get_ticket_by_id(self, ticket_id: UUID) -> Ticket | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_TICKET_SQL, ticket_id)
        if row is None:
            return None
        return self._row_to_ticket(row)

    async def get_tickets_page(self, offset: int, limit: int) -> list[Ticket]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_PAGE_SQL, offset, limit)
        return [self._row_to_ticket(row) for row in rows]

    async def get_tickets_count(self) -> int:
        async with self._pool.acquire() as connection:
            value = await connection.fetchval(self._COUNT_SQL)
        return int(value or 0)

    async def upsert_ticket(self, ticket: Ticket) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(
                self._UPSERT_TICKET_SQL,
                ticket.id,
                ticket.title,
                ticket.description,
                int(ticket.status),
                ticket.count,
                ticket.price,
                ticket.initiator,
                ticket.purchasing_manager,
                ticket.accounting_manager,
                ticket.created_at,
            )

    @staticmethod
    def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
        price = row["price"]
        return Ticket(
            id=to_uuid(row["id"]),
            title=str(row["title"]),
            description=str(row["description"]),
            status=TicketStatus.from_code(row["status"]),
            count=int(row["count"]),
            price=None if price is None else float(price),
            initiator=to_uuid(row["initiator_id"]),
            purchasing_manager=to_optional_uuid(row["purchasing_manager_id"]),
            accounting_manager=to_optional_uuid(row["accounting_manager_id"]),
            created_at=ensure_datetime(row["created_at"]),
        )
