"""
LevelUp Learning - API Dependencies
FastAPI dependencies for authentication, sessions, and content generation
"""
import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from levelup.ai.core.llm import LLMClient, get_llm_client
from levelup.core.database import get_db
from levelup.core.security import verify_token
from levelup.models.user import User

# Security scheme; missing credentials are answered with 401 below
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Get current authenticated user from the session token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or the user is gone
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    subject = verify_token(credentials.credentials)
    if not subject:
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    user = await db.get(User, user_id)
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    return user


# Type aliases for common dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
ContentGenerator = Annotated[LLMClient, Depends(get_llm_client)]
