"""Authentication helpers for protected endpoints.

This module provides:
- build_service(core) - AuthService wired to the app-wide codec, hasher and notifier
- bearer_token() - extract the token from an Authorization: Bearer header
- @auth_required - require a valid, unrevoked access token
"""

import logging
from functools import wraps

from flask import current_app, g, request

from ..db import Core, get_core
from ..exceptions import AuthenticationError
from .service import AuthService

logger = logging.getLogger(__name__)

EXTENSION_KEY = "authgate"


def build_service(core: Core) -> AuthService:
    """Build an AuthService over `core` using the application's components.

    The codec, hasher and notifier are created once in main.py and stored
    under app.extensions["authgate"].
    """
    components = current_app.extensions[EXTENSION_KEY]
    return AuthService(
        users=core.users,
        tokens=core.tokens,
        codec=components["codec"],
        hasher=components["hasher"],
        notifier=components["notifier"],
    )


def bearer_token() -> str | None:
    """Return the bearer token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def auth_required(f):
    """
    Decorator to require a valid access token for endpoint access.

    Stores the authenticated user in flask.g:
    - g.user: User record
    - g.user_id: User ID
    - g.username: Username

    Raises:
        AuthenticationError: If the header is missing or malformed
        InvalidToken: If the token is invalid, expired or revoked

    Example:
    ```python
    @auth_required
    def protected_endpoint():
        user_id = g.user_id
        ...
    ```
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if token is None:
            logger.warning("Unauthenticated request to protected endpoint")
            raise AuthenticationError(
                "Authentication required",
                {"expected": "Authorization: Bearer <token>"}
            )

        core = get_core()
        try:
            user = build_service(core).authenticate(token)
        finally:
            core.close()

        g.user = user
        g.user_id = user.id
        g.username = user.username
        return f(*args, **kwargs)

    return wrapper
