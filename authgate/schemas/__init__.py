"""Pydantic records for the persisted data model."""

from .account import Role, Status, Token, TokenType, User

__all__ = [
    "Role",
    "Status",
    "Token",
    "TokenType",
    "User",
]
