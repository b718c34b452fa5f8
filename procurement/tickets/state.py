from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Mapping, Union
from uuid import UUID, uuid4

from procurement.users.models import Role, User

from .models import Ticket, TicketStatus, check_ticket_invariants


class TicketOperation(str, Enum):
    """Operations that can be applied to an existing ticket."""

    EDIT_TITLE = "editTitle"
    EDIT_DESCRIPTION = "editDescription"
    CANCEL = "cancel"
    CONFIRM = "confirm"
    DENY = "deny"
    MARK_AS_PAID = "markAsPaid"


class TicketCannotBeCreatedError(RuntimeError):
    """Raised when a user whose role may not request materials opens a ticket."""

    def __init__(self, actor_id: UUID) -> None:
        super().__init__(f"User {actor_id} cannot create tickets")
        self.actor_id = actor_id


class TicketOperationRejectedError(RuntimeError):
    """Base class for operations refused by the lifecycle guards."""

    operation: ClassVar[TicketOperation]
    outcome: ClassVar[str]

    def __init__(self, ticket_id: UUID) -> None:
        super().__init__(f"Ticket {ticket_id} cannot be {self.outcome}")
        self.ticket_id = ticket_id

    @property
    def code(self) -> str:
        return f"TICKET_CANNOT_BE_{self.outcome.upper()}"


class TicketCannotBeModifiedError(TicketOperationRejectedError):
    operation = TicketOperation.EDIT_TITLE
    outcome = "modified"


class TicketCannotBeCancelledError(TicketOperationRejectedError):
    operation = TicketOperation.CANCEL
    outcome = "cancelled"


class TicketCannotBeConfirmedError(TicketOperationRejectedError):
    operation = TicketOperation.CONFIRM
    outcome = "confirmed"


class TicketCannotBeDeniedError(TicketOperationRejectedError):
    operation = TicketOperation.DENY
    outcome = "denied"


class TicketCannotBePaidError(TicketOperationRejectedError):
    operation = TicketOperation.MARK_AS_PAID
    outcome = "paid"


@dataclass(frozen=True, slots=True)
class TicketGuard:
    """Preconditions an actor and a ticket must meet for one operation."""

    status: TicketStatus
    rejection: type[TicketOperationRejectedError]
    role: Role | None = None
    initiator_only: bool = False

    def permits(self, ticket: Ticket, actor: User) -> bool:
        if ticket.status is not self.status:
            return False
        if self.role is not None and actor.role is not self.role:
            return False
        if self.initiator_only and actor.id != ticket.initiator:
            return False
        return True


@dataclass(frozen=True, slots=True)
class EditTitle:
    title: str

    operation: ClassVar[TicketOperation] = TicketOperation.EDIT_TITLE

    def apply(self, ticket: Ticket, actor: User) -> Ticket:
        return replace(ticket, title=self.title)


@dataclass(frozen=True, slots=True)
class EditDescription:
    description: str

    operation: ClassVar[TicketOperation] = TicketOperation.EDIT_DESCRIPTION

    def apply(self, ticket: Ticket, actor: User) -> Ticket:
        return replace(ticket, description=self.description)


@dataclass(frozen=True, slots=True)
class Cancel:
    operation: ClassVar[TicketOperation] = TicketOperation.CANCEL

    def apply(self, ticket: Ticket, actor: User) -> Ticket:
        return replace(ticket, status=TicketStatus.CANCELLED)


@dataclass(frozen=True, slots=True)
class Confirm:
    price: float

    operation: ClassVar[TicketOperation] = TicketOperation.CONFIRM

    def __post_init__(self) -> None:
        if not math.isfinite(self.price) or self.price < 0:
            raise ValueError(f"Price must be a finite non-negative amount, got {self.price!r}")

    def apply(self, ticket: Ticket, actor: User) -> Ticket:
        return replace(
            ticket,
            status=TicketStatus.CONFIRMED,
            price=self.price,
            purchasing_manager=actor.id,
        )


@dataclass(frozen=True, slots=True)
class Deny:
    operation: ClassVar[TicketOperation] = TicketOperation.DENY

    def apply(self, ticket: Ticket, actor: User) -> Ticket:
        return replace(ticket, status=TicketStatus.DENIED, purchasing_manager=actor.id)


@dataclass(frozen=True, slots=True)
class MarkAsPaid:
    operation: ClassVar[TicketOperation] = TicketOperation.MARK_AS_PAID

    def apply(self, ticket: Ticket, actor: User) -> Ticket:
        return replace(ticket, status=TicketStatus.PAYMENT_COMPLETED, accounting_manager=actor.id)


TicketCommand = Union[EditTitle, EditDescription, Cancel, Confirm, Deny, MarkAsPaid]


class TicketLifecycle:
    """Decide whether an actor may apply an operation and compute the result.

    The engine never mutates its input: an accepted command returns a new
    ticket, a refused one raises the rejection registered for the operation.
    """

    # editDescription has no entry: it stays open to any user in any status.
    _GUARDS: Mapping[TicketOperation, TicketGuard] = {
        TicketOperation.EDIT_TITLE: TicketGuard(
            status=TicketStatus.REQUESTED,
            initiator_only=True,
            rejection=TicketCannotBeModifiedError,
        ),
        TicketOperation.CANCEL: TicketGuard(
            status=TicketStatus.REQUESTED,
            initiator_only=True,
            rejection=TicketCannotBeCancelledError,
        ),
        TicketOperation.CONFIRM: TicketGuard(
            status=TicketStatus.REQUESTED,
            role=Role.PURCHASING_MANAGER,
            rejection=TicketCannotBeConfirmedError,
        ),
        TicketOperation.DENY: TicketGuard(
            status=TicketStatus.REQUESTED,
            role=Role.PURCHASING_MANAGER,
            rejection=TicketCannotBeDeniedError,
        ),
        TicketOperation.MARK_AS_PAID: TicketGuard(
            status=TicketStatus.CONFIRMED,
            role=Role.ACCOUNTING_MANAGER,
            rejection=TicketCannotBePaidError,
        ),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.REQUESTED

    @classmethod
    def open(
        cls,
        *,
        actor: User,
        title: str,
        description: str,
        count: int,
        ticket_id: UUID | None = None,
        created_at: datetime | None = None,
    ) -> Ticket:
        if actor.role is not Role.INITIATOR:
            raise TicketCannotBeCreatedError(actor.id)

        ticket = Ticket(
            id=ticket_id or uuid4(),
            title=title,
            description=description,
            status=cls.initial_state(),
            count=count,
            price=None,
            initiator=actor.id,
            purchasing_manager=None,
            accounting_manager=None,
            created_at=created_at or datetime.now(timezone.utc),
        )
        check_ticket_invariants(ticket)
        return ticket

    @classmethod
    def permits(cls, ticket: Ticket, actor: User, operation: TicketOperation) -> bool:
        guard = cls._GUARDS.get(operation)
        return guard is None or guard.permits(ticket, actor)

    @classmethod
    def apply(cls, ticket: Ticket, actor: User, command: TicketCommand) -> Ticket:
        guard = cls._GUARDS.get(command.operation)
        if guard is not None and not guard.permits(ticket, actor):
            raise guard.rejection(ticket.id)

        updated = command.apply(ticket, actor)
        check_ticket_invariants(updated)
        return updated
