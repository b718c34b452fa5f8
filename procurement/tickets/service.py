from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from procurement.users.models import User
from procurement.users.repository import CredentialStore

from .repository import TicketStore
from .state import TicketCommand, TicketLifecycle, TicketOperationRejectedError
from .views import TicketPage, TicketView, TicketViewAssembler

logger = logging.getLogger(__name__)


class TicketServiceError(RuntimeError):
    """Base error for ticket service issues."""


class TicketNotFoundError(TicketServiceError):
    """Raised when a ticket could not be located."""

    def __init__(self, ticket_id: UUID) -> None:
        super().__init__(f"Ticket {ticket_id} not found")
        self.ticket_id = ticket_id


class TicketService:
    """High level orchestration for ticket lifecycle operations.

    Each call is a load, decide, persist, assemble sequence. There is no
    locking between the load and the write, so two concurrent edits of the
    same ticket resolve as last writer wins.
    """

    def __init__(
        self,
        tickets: TicketStore,
        users: CredentialStore,
        *,
        lifecycle: type[TicketLifecycle] = TicketLifecycle,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._tickets = tickets
        self._lifecycle = lifecycle
        self._assembler = TicketViewAssembler(users.get_users_by_ids)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def create_ticket(self, *, actor: User, title: str, description: str, count: int) -> TicketView:
        ticket = self._lifecycle.open(
            actor=actor,
            title=title,
            description=description,
            count=count,
            created_at=self._clock(),
        )
        await self._tickets.upsert_ticket(ticket)
        logger.info("Ticket %s requested by %s", ticket.id, actor.id)
        return await self._assembler.assemble(ticket)

    async def get_ticket(self, ticket_id: UUID) -> TicketView:
        ticket = await self._tickets.get_ticket_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return await self._assembler.assemble(ticket)

    async def list_tickets(self, *, offset: int, limit: int) -> TicketPage:
        page, total_count = await asyncio.gather(
            self._tickets.get_tickets_page(offset, limit),
            self._tickets.get_tickets_count(),
        )
        views = await self._assembler.assemble_many(list(page))
        return TicketPage(tickets=views, total_count=total_count)

    async def edit_ticket(self, ticket_id: UUID, *, actor: User, command: TicketCommand) -> TicketView:
        ticket = await self._tickets.get_ticket_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)

        try:
            updated = self._lifecycle.apply(ticket, actor, command)
        except TicketOperationRejectedError:
            logger.warning(
                "Rejected %s on ticket %s (status %s) by %s",
                command.operation.value,
                ticket.id,
                ticket.status.token,
                actor.id,
            )
            raise

        await self._tickets.upsert_ticket(updated)
        logger.info(
            "Applied %s on ticket %s by %s: %s -> %s",
            command.operation.value,
            ticket.id,
            actor.id,
            ticket.status.token,
            updated.status.token,
        )
        return await self._assembler.assemble(updated)
