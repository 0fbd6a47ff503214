"""
LevelUp Learning - Authentication API Routes
Endpoints for registration, login, and the current user
"""
from fastapi import APIRouter, HTTPException, status

from levelup.api.deps import CurrentUser, DbSession
from levelup.schemas.user import LoginRequest, TokenResponse, UserCreate, UserResponse
from levelup.services.auth import (
    AuthService,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    """Register a new learner account."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.register_user(user_data)
        return UserResponse.model_validate(user)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate user",
    description="Login with email and password to receive a session token.",
)
async def login(
    credentials: LoginRequest,
    db: DbSession,
) -> TokenResponse:
    """Authenticate user and return a token."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.authenticate(
            email=credentials.email,
            password=credentials.password,
        )
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_service.create_token(user)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_current_user_info(
    current_user: CurrentUser,
) -> UserResponse:
    """Get the authenticated user's profile, including streaks."""
    return UserResponse.model_validate(current_user)
