"""Read-side aggregates joining tickets with the users they reference."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Collection, Iterable, Mapping, Sequence
from uuid import UUID

from procurement.users.models import User, UserSummary

from .models import Ticket, TicketStatus

logger = logging.getLogger(__name__)

UserBatchLookup = Callable[[Collection[UUID]], Awaitable[Mapping[UUID, User]]]


class UserReferenceError(RuntimeError):
    """Raised when a ticket points at a user the credential store cannot resolve.

    This signals store corruption rather than a client mistake.
    """

    def __init__(self, ticket_id: UUID, user_id: UUID) -> None:
        super().__init__(f"Ticket {ticket_id} references unknown user {user_id}")
        self.ticket_id = ticket_id
        self.user_id = user_id


@dataclass(frozen=True, slots=True)
class TicketView:
    """Ticket with its user references replaced by public summaries."""

    id: UUID
    title: str
    description: str
    status: TicketStatus
    count: int
    price: float | None
    initiator: UserSummary
    purchasing_manager: UserSummary | None
    accounting_manager: UserSummary | None


@dataclass(frozen=True, slots=True)
class TicketPage:
    tickets: Sequence[TicketView]
    total_count: int


def collect_user_ids(tickets: Iterable[Ticket]) -> set[UUID]:
    """Return every distinct user id referenced by ``tickets``."""

    user_ids: set[UUID] = set()
    for ticket in tickets:
        user_ids |= ticket.referenced_user_ids()
    return user_ids


def build_view(ticket: Ticket, users: Mapping[UUID, User]) -> TicketView:
    def resolve(user_id: UUID) -> UserSummary:
        user = users.get(user_id)
        if user is None:
            logger.error("Ticket %s references missing user %s", ticket.id, user_id)
            raise UserReferenceError(ticket.id, user_id)
        return user.summary()

    return TicketView(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        count=ticket.count,
        price=ticket.price,
        initiator=resolve(ticket.initiator),
        purchasing_manager=None if ticket.purchasing_manager is None else resolve(ticket.purchasing_manager),
        accounting_manager=None if ticket.accounting_manager is None else resolve(ticket.accounting_manager),
    )


class TicketViewAssembler:
    """Build ticket views with a single user lookup per batch of tickets."""

    def __init__(self, lookup_users: UserBatchLookup) -> None:
        self._lookup_users = lookup_users

    async def assemble(self, ticket: Ticket) -> TicketView:
        views = await self.assemble_many([ticket])
        return views[0]

    async def assemble_many(self, tickets: Sequence[Ticket]) -> list[TicketView]:
        if not tickets:
            return []

        user_ids = collect_user_ids(tickets)
        users = await self._lookup_users(user_ids)
        return [build_view(ticket, users) for ticket in tickets]
