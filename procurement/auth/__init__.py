from .tokens import AuthError, InvalidTokenError, SigningKey, TokenService, WrongCredentialsError

__all__ = ["AuthError", "InvalidTokenError", "SigningKey", "TokenService", "WrongCredentialsError"]
