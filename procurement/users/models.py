from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import IntEnum
from uuid import UUID


class Role(IntEnum):
    """Closed set of user roles.

    The integer values are the codes persisted in ``users.role``; the member
    names are the tokens exchanged over the wire.
    """

    INITIATOR = 1
    PURCHASING_MANAGER = 2
    ACCOUNTING_MANAGER = 3

    @property
    def token(self) -> str:
        return self.name

    @classmethod
    def from_token(cls, token: str) -> "Role":
        try:
            return cls[token]
        except KeyError:
            raise ValueError(f"Unknown role token: {token!r}") from None

    @classmethod
    def from_code(cls, code: int) -> "Role":
        try:
            return cls(int(code))
        except ValueError:
            raise ValueError(f"Unknown role code: {code!r}") from None


@dataclass(frozen=True, slots=True)
class PasswordHash:
    """Stored password digest.

    Hashing is a placeholder: the digest is the secret itself until a real
    hashing scheme replaces :meth:`new`.
    """

    value: str

    @classmethod
    def new(cls, secret: str) -> "PasswordHash":
        return cls(secret)

    def matches(self, other: "PasswordHash") -> bool:
        return hmac.compare_digest(self.value.encode("utf-8"), other.value.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class User:
    """Account record as held by the credential store."""

    id: UUID
    name: str
    role: Role
    login: str
    password_hash: PasswordHash

    def summary(self) -> "UserSummary":
        return UserSummary(id=self.id, name=self.name, role=self.role)


@dataclass(frozen=True, slots=True)
class UserSummary:
    """Public projection of a user embedded in ticket views."""

    id: UUID
    name: str
    role: Role
