"""Request and response schemas for the auth endpoints."""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ...schemas import Role, Status, User

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72


# ============================================================================
# Requests
# ============================================================================


class RegisterRequest(BaseModel):
    """Self-service account registration."""

    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username may only contain letters, numbers, underscores, and hyphens"
            )
        return v.lower()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Email must be a valid email address")
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded"
            )
        if not any(c.isalpha() for c in v):
            raise ValueError("Password must contain at least one letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class LoginRequest(BaseModel):
    """Login with either username or email."""

    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("username_or_email")
    @classmethod
    def normalize_identifier(cls, v: str) -> str:
        return v.strip().lower()


class VerificationRequest(BaseModel):
    token: str = Field(..., min_length=1)


# ============================================================================
# Responses
# ============================================================================


class TokenPayload(BaseModel):
    """Decoded JWT claims."""

    sub: str
    type: str
    iat: int
    exp: int
    jti: str


class AuthResponse(BaseModel):
    """Outcome of a register/verify/login/refresh call.

    Token fields are None for registration, which never issues tokens.
    """

    message: str
    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None

    @property
    def has_tokens(self) -> bool:
        return self.access_token is not None


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""

    id: int
    name: str
    username: str
    email: str
    role: Role
    status: Status
    email_verified_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            role=user.role,
            status=user.status,
            email_verified_at=user.email_verified_at,
            created_at=user.created_at,
        )


class ApiResponse(BaseModel):
    """Envelope for every successful auth endpoint response."""

    success: bool = True
    message: str
    data: Any = None
