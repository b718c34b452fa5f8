"""Ticket domain models and services."""

from .models import Ticket, TicketInvariantError, TicketStatus, check_ticket_invariants
from .service import TicketNotFoundError, TicketService
from .state import (
    Cancel,
    Confirm,
    Deny,
    EditDescription,
    EditTitle,
    MarkAsPaid,
    TicketCannotBeCreatedError,
    TicketLifecycle,
    TicketOperation,
    TicketOperationRejectedError,
)
from .views import TicketPage, TicketView, TicketViewAssembler, UserReferenceError

__all__ = [
    "Cancel",
    "Confirm",
    "Deny",
    "EditDescription",
    "EditTitle",
    "MarkAsPaid",
    "Ticket",
    "TicketCannotBeCreatedError",
    "TicketInvariantError",
    "TicketLifecycle",
    "TicketNotFoundError",
    "TicketOperation",
    "TicketOperationRejectedError",
    "TicketPage",
    "TicketService",
    "TicketStatus",
    "TicketView",
    "TicketViewAssembler",
    "UserReferenceError",
    "check_ticket_invariants",
]
