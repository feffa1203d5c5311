"""Authentication Pydantic schemas for API validation."""

from .auth import (
    ApiResponse,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenPayload,
    UserResponse,
    VerificationRequest,
)

__all__ = [
    "ApiResponse",
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenPayload",
    "UserResponse",
    "VerificationRequest",
]
