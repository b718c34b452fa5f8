from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from procurement.auth.tokens import InvalidTokenError, TokenService
from procurement.users.models import User
from procurement.users.repository import UserRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_service(request: Request) -> TokenService:
    service = getattr(request.app.state, "token_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Token service is not configured")
    return service


async def get_user_repository(request: Request) -> UserRepository:
    repository = getattr(request.app.state, "user_repository", None)
    if repository is None:
        raise HTTPException(status_code=503, detail="User repository is not configured")
    return repository


TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]


async def require_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
) -> str:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")
    return credentials.credentials


async def get_current_user(
    request: Request,
    token: Annotated[str, Depends(require_bearer_token)],
    tokens: TokenServiceDep,
    users: UserRepositoryDep,
) -> User:
    """Resolve the bearer token to the user record it was issued for."""

    cached = getattr(request.state, "user", None)
    if isinstance(cached, User):
        return cached

    try:
        user_id = tokens.validate(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials") from exc

    user = await users.get_user_by_id(user_id)
    if user is None:
        # Tokens are not revoked, so this is an account removed under a live token.
        logger.error("Token subject %s no longer exists", user_id)
        raise HTTPException(status_code=500, detail="Authenticated user not found")

    request.state.user = user
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
