"""Authentication module for AuthGate.

This module provides the token lifecycle:
- Schema validation for auth requests and responses
- JWT access/refresh token issuing and validation (token)
- Password hashing and verification (hasher)
- Verification email delivery (email)
- Register / verify / login / refresh orchestration (service)
- Authentication middleware for protected endpoints (decorators)

Auth endpoints (under /api/auth):
- POST /register - Create an inactive account
- GET|POST /verify-email - Activate account, returns tokens
- POST /login - Authenticate, returns tokens
- POST /refresh-token - New access token from a refresh token
- GET /me - Current user info
- POST /logout - Revoke all recorded access tokens of the current user
"""

from . import schemas, token

__all__ = ["schemas", "token"]
