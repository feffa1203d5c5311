"""Authentication API endpoints for AuthGate.

Routes (mounted under /api/auth):
- POST /register        - Create an inactive account, email a verification link
- POST /verify-email    - Activate an account, returns tokens
- GET  /verify-email    - Same, with ?token= (the link in the email)
- POST /login           - Authenticate, returns tokens
- POST /refresh-token   - Exchange a refresh token (Authorization: Bearer) for a new access token
- GET  /me              - Current user
- POST /logout          - Revoke all recorded access tokens of the current user

All endpoints return JSON:
    {"success": true, "message": "...", "data": {...}}
Errors are rendered by the handlers in main.py.
"""

import logging
import sqlite3

from flask import Blueprint, g, jsonify

from ..api.validation import validate_request
from ..db import get_core
from ..exceptions import ConflictError, ValidationError
from .decorators import auth_required, bearer_token, build_service
from .schemas import (
    ApiResponse,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    VerificationRequest,
)

logger = logging.getLogger(__name__)


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _envelope(result: AuthResponse):
    """Wrap a service result; token fields go under data when tokens were issued."""
    data = result.model_dump(exclude={"message"}) if result.has_tokens else None
    return jsonify(ApiResponse(message=result.message, data=data).model_dump())


# ============================================================================
# Registration and verification
# ============================================================================


@auth_bp.post("/register")
@validate_request
def register(data: RegisterRequest):
    """
    Register a new account.

    The account starts INACTIVE; no tokens are issued until the emailed
    verification link is used.

    Example request:
    ```json
    {
        "name": "Alice",
        "username": "alice",
        "email": "alice@example.com",
        "password": "SecurePass123"
    }
    ```

    Example response (201):
    ```json
    {
        "success": true,
        "message": "Registration successful. Please check your email for verification.",
        "data": null
    }
    ```
    """
    core = get_core()
    try:
        result = build_service(core).register(
            data.name, data.username, data.email, data.password
        )
    except sqlite3.IntegrityError:
        # Lost a race with a concurrent registration for the same name/email
        logger.warning(f"Registration failed on unique constraint: {data.username}")
        raise ConflictError("Username or email is already registered")
    finally:
        core.close()

    return _envelope(result), 201


@auth_bp.post("/verify-email")
@validate_request
def verify_email(data: VerificationRequest):
    """
    Verify an email address with the token from the verification email.

    Example response:
    ```json
    {
        "success": true,
        "message": "Email verified successfully",
        "data": {
            "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            "token_type": "Bearer",
            "expires_in": 900
        }
    }
    ```
    """
    with get_core(atomic=True) as core:
        result = build_service(core).verify_email(data.token)
    return _envelope(result), 200


@auth_bp.get("/verify-email")
@validate_request
def verify_email_link(data: VerificationRequest):
    """Verify via GET /api/auth/verify-email?token=... (the emailed link)."""
    with get_core(atomic=True) as core:
        result = build_service(core).verify_email(data.token)
    return _envelope(result), 200


# ============================================================================
# Login and token refresh
# ============================================================================


@auth_bp.post("/login")
@validate_request
def login(data: LoginRequest):
    """
    Authenticate with username or email and password.

    Any previously issued tokens of the user are revoked.

    Example request:
    ```json
    {
        "username_or_email": "alice",
        "password": "SecurePass123"
    }
    ```
    """
    with get_core(atomic=True) as core:
        result = build_service(core).login(data.username_or_email, data.password)
    return _envelope(result), 200


@auth_bp.post("/refresh-token")
def refresh_token():
    """
    Issue a new access token from a refresh token.

    The refresh token is sent as `Authorization: Bearer <refresh_token>` and
    is echoed back unchanged.
    """
    token = bearer_token()
    if token is None:
        raise ValidationError(
            "Invalid refresh token",
            {"expected": "Authorization: Bearer <refresh_token>"}
        )

    with get_core(atomic=True) as core:
        result = build_service(core).refresh(token)
    return _envelope(result), 200


# ============================================================================
# Authenticated endpoints
# ============================================================================


@auth_bp.get("/me")
@auth_required
def me():
    """Return the user owning the presented access token."""
    user = UserResponse.from_user(g.user)
    return jsonify(
        ApiResponse(message="OK", data=user.model_dump(mode="json")).model_dump()
    ), 200


@auth_bp.post("/logout")
@auth_required
def logout():
    """Revoke every recorded access token of the current user.

    Refresh tokens are not tracked, so they stay usable until they expire.
    """
    with get_core(atomic=True) as core:
        result = build_service(core).logout(g.user)
    return _envelope(result), 200
