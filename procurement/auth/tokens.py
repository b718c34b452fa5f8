"""Stateless signed identity tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

import jwt

from procurement.users.models import PasswordHash
from procurement.users.repository import CredentialStore

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Base error for authentication failures."""


class WrongCredentialsError(AuthError):
    """Raised when the login is unknown or the password does not match."""

    def __init__(self) -> None:
        super().__init__("Wrong login or password")


class InvalidTokenError(AuthError):
    """Raised for any malformed, tampered or expired token."""

    def __init__(self) -> None:
        super().__init__("Invalid authentication token")


@dataclass(frozen=True, slots=True)
class SigningKey:
    """Process-wide secret used to sign and verify tokens."""

    secret: str
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("Signing secret must not be empty")

    def __repr__(self) -> str:
        return f"SigningKey(algorithm={self.algorithm!r})"


class TokenService:
    """Issue and validate tokens carrying a user id and an expiry."""

    def __init__(
        self,
        key: SigningKey,
        credentials: CredentialStore,
        *,
        ttl: timedelta,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._key = key
        self._credentials = credentials
        self._ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def issue(self, login: str, password: str) -> str:
        user = await self._credentials.get_user_by_login(login)
        if user is None or not user.password_hash.matches(PasswordHash.new(password)):
            logger.warning("Rejected login attempt for %r", login)
            raise WrongCredentialsError()

        expires_at = self._clock() + self._ttl
        claims = {"user_id": str(user.id), "exp": int(expires_at.timestamp())}
        return jwt.encode(claims, self._key.secret, algorithm=self._key.algorithm)

    def validate(self, token: str) -> UUID:
        """Return the user id carried by ``token``.

        Expiry is judged against the service clock, the same one ``issue``
        stamps ``exp`` from.
        """

        try:
            claims = jwt.decode(
                token,
                self._key.secret,
                algorithms=[self._key.algorithm],
                options={"require": ["exp", "user_id"], "verify_exp": False},
            )
            expires_at = int(claims["exp"])
            if expires_at <= self._clock().timestamp():
                raise jwt.ExpiredSignatureError("Signature has expired")
            return UUID(str(claims["user_id"]))
        except (jwt.PyJWTError, ValueError, KeyError, TypeError) as exc:
            logger.debug("Token rejected: %s", exc)
            raise InvalidTokenError() from None
