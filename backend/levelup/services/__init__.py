"""LevelUp Learning - Services initialization."""
from levelup.services.auth import (
    AuthService,
    AuthenticationError,
    InvalidCredentialsError,
    EmailAlreadyRegisteredError,
)

__all__ = [
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "EmailAlreadyRegisteredError",
]
