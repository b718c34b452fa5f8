from __future__ import annotations

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from procurement.auth.tokens import WrongCredentialsError
from procurement.dependencies.auth import TokenServiceDep

router = APIRouter(prefix="/auth", tags=["auth"])


class AuthRequest(BaseModel):
    login: str = Field(..., min_length=1)
    password: str


@router.post("", response_class=PlainTextResponse, summary="Exchange credentials for a bearer token")
async def authenticate(payload: AuthRequest, tokens: TokenServiceDep) -> str:
    try:
        return await tokens.issue(payload.login, payload.password)
    except WrongCredentialsError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
