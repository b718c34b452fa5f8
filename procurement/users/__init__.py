"""User accounts and the credential store."""

from .models import PasswordHash, Role, User, UserSummary
from .repository import CredentialStore, UserRepository

__all__ = ["CredentialStore", "PasswordHash", "Role", "User", "UserRepository", "UserSummary"]
