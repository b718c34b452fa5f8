from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from procurement.dependencies.auth import CurrentUser
from procurement.users.models import UserSummary

router = APIRouter(prefix="/user", tags=["user"])


class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    name: str
    role: str

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "UserResponse":
        return cls(id=summary.id, name=summary.name, role=summary.role.token)


@router.get("", response_model=UserResponse)
async def get_user(user: CurrentUser) -> UserResponse:
    return UserResponse.from_summary(user.summary())
