from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from uuid import UUID


class TicketStatus(IntEnum):
    """Supported states for a ticket's lifecycle.

    Values are the persisted ``tickets.status`` codes and must never be
    renumbered; member names double as the external tokens.
    """

    REQUESTED = 1
    CANCELLED = 2
    CONFIRMED = 3
    DENIED = 4
    PAYMENT_COMPLETED = 5

    @property
    def token(self) -> str:
        return self.name

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def from_token(cls, token: str) -> "TicketStatus":
        try:
            return cls[token]
        except KeyError:
            raise ValueError(f"Unknown ticket status token: {token!r}") from None

    @classmethod
    def from_code(cls, code: int) -> "TicketStatus":
        try:
            return cls(int(code))
        except ValueError:
            raise ValueError(f"Unknown ticket status code: {code!r}") from None


TERMINAL_STATUSES = frozenset(
    {TicketStatus.CANCELLED, TicketStatus.DENIED, TicketStatus.PAYMENT_COMPLETED}
)

PRICED_STATUSES = frozenset({TicketStatus.CONFIRMED, TicketStatus.PAYMENT_COMPLETED})

# Upper bound of the INT column holding the requested quantity.
MAX_TICKET_COUNT = 2**31 - 1


class TicketInvariantError(ValueError):
    """Raised when a ticket record violates a structural invariant."""


@dataclass(frozen=True, slots=True)
class Ticket:
    """Aggregate representing a procurement request."""

    id: UUID
    title: str
    description: str
    status: TicketStatus
    count: int
    price: float | None
    initiator: UUID
    purchasing_manager: UUID | None
    accounting_manager: UUID | None
    created_at: datetime

    def referenced_user_ids(self) -> set[UUID]:
        ids = {self.initiator}
        if self.purchasing_manager is not None:
            ids.add(self.purchasing_manager)
        if self.accounting_manager is not None:
            ids.add(self.accounting_manager)
        return ids


def check_ticket_invariants(ticket: Ticket) -> None:
    """Validate the field-level invariants every stored ticket must satisfy."""

    if ticket.count < 1:
        raise TicketInvariantError(f"Ticket {ticket.id} has non-positive count {ticket.count}")
    if ticket.count > MAX_TICKET_COUNT:
        raise TicketInvariantError(f"Ticket {ticket.id} count {ticket.count} exceeds {MAX_TICKET_COUNT}")

    priced = ticket.status in PRICED_STATUSES
    if priced and ticket.price is None:
        raise TicketInvariantError(f"Ticket {ticket.id} is {ticket.status.token} without a price")
    if not priced and ticket.price is not None:
        raise TicketInvariantError(f"Ticket {ticket.id} is {ticket.status.token} but carries a price")

    reviewed = ticket.status in (TicketStatus.CONFIRMED, TicketStatus.DENIED, TicketStatus.PAYMENT_COMPLETED)
    if reviewed != (ticket.purchasing_manager is not None):
        raise TicketInvariantError(
            f"Ticket {ticket.id} is {ticket.status.token} with purchasing manager {ticket.purchasing_manager}"
        )

    paid = ticket.status is TicketStatus.PAYMENT_COMPLETED
    if paid != (ticket.accounting_manager is not None):
        raise TicketInvariantError(
            f"Ticket {ticket.id} is {ticket.status.token} with accounting manager {ticket.accounting_manager}"
        )
