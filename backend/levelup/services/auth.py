"""
LevelUp Learning - Authentication Service
Business logic for user registration, login, and session tokens
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from levelup.core.config import settings
from levelup.core.security import create_access_token, get_password_hash, verify_password
from levelup.models.user import User
from levelup.schemas.user import TokenResponse, UserCreate

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base authentication error."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""
    pass


class EmailAlreadyRegisteredError(AuthenticationError):
    """Registration with an email that already has an account."""
    pass


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, user_data: UserCreate) -> User:
        """
        Register a new user.

        Raises:
            EmailAlreadyRegisteredError: If email already exists
        """
        existing = await self.db.execute(
            select(User).where(User.email == user_data.email)
        )
        if existing.scalar_one_or_none():
            raise EmailAlreadyRegisteredError("Email already registered")

        user = User(
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            display_name=user_data.display_name,
            timezone=user_data.timezone,
        )

        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("Registered user %s", user.id)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid or the account is inactive
        """
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError("Invalid email or password")
        if not user.is_active:
            raise InvalidCredentialsError("Account is disabled")

        return user

    def create_token(self, user: User) -> TokenResponse:
        """Issue a session token for the user."""
        return TokenResponse(
            access_token=create_access_token(user.id),
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
