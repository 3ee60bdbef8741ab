"""Authentication API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from skyearth.database import get_db
from skyearth.errors import UnauthorizedError
from skyearth.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    TokenPayload,
    UserResponse,
)
from skyearth.services.auth_service import AuthService

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def get_token_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenPayload:
    """Dependency that verifies the bearer token and returns its claims."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access denied. No token provided.")

    claims = request.app.state.token_service.verify(credentials.credentials)
    request.state.user_claims = claims
    return claims


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user."""
    user, token = await auth_service.register(db, data)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """User login endpoint."""
    user, token = await auth_service.login(db, data)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(
    claims: TokenPayload = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Get current user information."""
    user = await auth_service.get_current_user(db, claims)
    return MeResponse(user=UserResponse.model_validate(user))
