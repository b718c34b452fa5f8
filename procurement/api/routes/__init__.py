"""Route modules exposed by the API package."""

from . import auth, ping, tickets, user

__all__ = ["auth", "ping", "tickets", "user"]
