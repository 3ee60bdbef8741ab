"""Pydantic schemas for request/response models."""
from skyearth.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    UserResponse,
    AuthResponse,
    MeResponse,
    StatusResponse,
    TokenPayload,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "UserResponse",
    "AuthResponse",
    "MeResponse",
    "StatusResponse",
    "TokenPayload",
]
