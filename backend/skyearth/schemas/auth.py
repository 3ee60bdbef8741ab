"""Authentication schemas."""
from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field


class RegisterRequest(BaseModel):
    """Registration request schema.

    Fields are optional here so that missing values reach the explicit
    validators and are reported as 400s.
    """
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request schema."""
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Public user fields."""
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
    )
    updated_at: datetime = Field(
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        serialization_alias="updatedAt",
    )

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Register / login response with JWT token."""
    success: bool = True
    message: str
    user: UserResponse
    token: str


class MeResponse(BaseModel):
    """Current user response."""
    success: bool = True
    user: UserResponse


class StatusResponse(BaseModel):
    """API status response."""
    success: bool = True
    message: str
    version: str


class TokenPayload(BaseModel):
    """JWT token payload."""
    id: int
    email: str
    iat: Optional[datetime] = None
    exp: Optional[datetime] = None
