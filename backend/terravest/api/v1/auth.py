"""
Authentication API endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.auth.principal import create_access_token
from terravest.core.users.models import User
from terravest.infrastructure.database import get_db
from terravest.infrastructure.settings import get_settings
from terravest.schemas.auth import LoginRequest, LoginResponse, MeResponse, RegisterRequest, RegisterResponse
from terravest.services.user_service import authenticate, register_user

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Register a new user account with email and password. An optional referral code links the account to its referrer.",
)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
) -> RegisterResponse:
    user = register_user(
        db,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        referral_code=request.referral_code,
    )
    return RegisterResponse.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="User login",
    description="Authenticate user with email and password, returns JWT token",
)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    user = authenticate(db, email=request.email, password=request.password)
    token = create_access_token(user.id, user.email, user.role)
    return LoginResponse(
        access_token=token,
        expires_in=get_settings().JWT_EXPIRES_HOURS * 3600,
        user_id=user.id,
        email=user.email,
        role=user.role,
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user",
    description="Get the authenticated user's profile",
)
async def me(user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse.model_validate(user)
