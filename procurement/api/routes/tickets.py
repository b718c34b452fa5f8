from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, RootModel
from pydantic.alias_generators import to_camel

from procurement.api.routes.user import UserResponse
from procurement.dependencies.auth import CurrentUser
from procurement.dependencies.tickets import TicketServiceDep
from procurement.tickets.models import MAX_TICKET_COUNT
from procurement.tickets.service import TicketNotFoundError
from procurement.tickets.state import (
    Cancel,
    Confirm,
    Deny,
    EditDescription,
    EditTitle,
    MarkAsPaid,
    TicketCannotBeCreatedError,
    TicketCommand,
    TicketOperationRejectedError,
)
from procurement.tickets.views import TicketPage, TicketView, UserReferenceError

router = APIRouter(prefix="/ticket", tags=["tickets"])

# OFFSET and LIMIT bind as BIGINT.
MAX_PAGE_BOUND = 2**63 - 1


class TicketCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str
    count: int = Field(..., ge=1, le=MAX_TICKET_COUNT)


class _TitleData(BaseModel):
    title: str = Field(..., min_length=1)


class _DescriptionData(BaseModel):
    description: str


class _PriceData(BaseModel):
    price: float = Field(..., ge=0, allow_inf_nan=False)


class EditTitleRequest(BaseModel):
    op: Literal["editTitle"]
    data: _TitleData

    def to_command(self) -> TicketCommand:
        return EditTitle(title=self.data.title)


class EditDescriptionRequest(BaseModel):
    op: Literal["editDescription"]
    data: _DescriptionData

    def to_command(self) -> TicketCommand:
        return EditDescription(description=self.data.description)


class CancelRequest(BaseModel):
    op: Literal["cancel"]

    def to_command(self) -> TicketCommand:
        return Cancel()


class ConfirmRequest(BaseModel):
    op: Literal["confirm"]
    data: _PriceData

    def to_command(self) -> TicketCommand:
        return Confirm(price=self.data.price)


class DenyRequest(BaseModel):
    op: Literal["deny"]

    def to_command(self) -> TicketCommand:
        return Deny()


class MarkAsPaidRequest(BaseModel):
    op: Literal["markAsPaid"]

    def to_command(self) -> TicketCommand:
        return MarkAsPaid()


class TicketEditRequest(
    RootModel[
        Annotated[
            Union[
                EditTitleRequest,
                EditDescriptionRequest,
                CancelRequest,
                ConfirmRequest,
                DenyRequest,
                MarkAsPaidRequest,
            ],
            Field(discriminator="op"),
        ]
    ]
):
    def to_command(self) -> TicketCommand:
        return self.root.to_command()


class TicketResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    title: str
    description: str
    status: str
    count: int
    price: float | None
    initiator: UserResponse
    purchasing_manager: UserResponse | None
    accounting_manager: UserResponse | None


class TicketListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tickets: list[TicketResponse]
    total_count: int


def _to_response(view: TicketView) -> TicketResponse:
    return TicketResponse(
        id=view.id,
        title=view.title,
        description=view.description,
        status=view.status.token,
        count=view.count,
        price=view.price,
        initiator=UserResponse.from_summary(view.initiator),
        purchasing_manager=(
            None if view.purchasing_manager is None else UserResponse.from_summary(view.purchasing_manager)
        ),
        accounting_manager=(
            None if view.accounting_manager is None else UserResponse.from_summary(view.accounting_manager)
        ),
    )


def _to_list_response(page: TicketPage) -> TicketListResponse:
    return TicketListResponse(
        tickets=[_to_response(view) for view in page.tickets],
        total_count=page.total_count,
    )


def _inconsistent() -> HTTPException:
    return HTTPException(status_code=500, detail="Ticket references an unknown user")


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    _: CurrentUser,
    service: TicketServiceDep,
    offset: int = Query(..., ge=0, le=MAX_PAGE_BOUND),
    limit: int = Query(..., ge=0, le=MAX_PAGE_BOUND),
) -> TicketListResponse:
    try:
        page = await service.list_tickets(offset=offset, limit=limit)
    except UserReferenceError as exc:
        raise _inconsistent() from exc
    return _to_list_response(page)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    user: CurrentUser,
    service: TicketServiceDep,
) -> TicketResponse:
    try:
        view = await service.create_ticket(
            actor=user,
            title=payload.title,
            description=payload.description,
            count=payload.count,
        )
    except TicketCannotBeCreatedError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "TICKET_CANNOT_BE_CREATED", "message": str(exc)},
        ) from exc
    except UserReferenceError as exc:
        raise _inconsistent() from exc
    return _to_response(view)


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: UUID, _: CurrentUser, service: TicketServiceDep) -> TicketResponse:
    try:
        view = await service.get_ticket(ticket_id)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UserReferenceError as exc:
        raise _inconsistent() from exc
    return _to_response(view)


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def edit_ticket(
    ticket_id: UUID,
    payload: TicketEditRequest,
    user: CurrentUser,
    service: TicketServiceDep,
) -> TicketResponse:
    try:
        view = await service.edit_ticket(ticket_id, actor=user, command=payload.to_command())
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except TicketOperationRejectedError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": exc.code, "operation": exc.operation.value, "message": str(exc)},
        ) from exc
    except UserReferenceError as exc:
        raise _inconsistent() from exc
    return _to_response(view)
