"""User and Token records as stored by the Account Store and Token Ledger."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Status(str, Enum):
    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"


class TokenType(str, Enum):
    BEARER = "BEARER"


class User(BaseModel):
    """A user account.

    `id` is None until the record is first saved. `email_verification_token`
    is set at registration and cleared on successful verification.
    """

    id: int | None = None
    name: str
    username: str
    email: str
    password_hash: str = Field(..., repr=False)
    role: Role = Role.USER
    status: Status = Status.INACTIVE
    email_verification_token: str | None = Field(default=None, repr=False)
    email_verified_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE


class Token(BaseModel):
    """An issued access token as recorded in the ledger."""

    id: int
    token: str = Field(..., repr=False)
    user_id: int
    token_type: TokenType = TokenType.BEARER
    expired: bool = False
    revoked: bool = False
    created_at: datetime

    @property
    def is_valid(self) -> bool:
        return not self.expired and not self.revoked
