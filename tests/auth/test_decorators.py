"""Tests for authentication helpers.

Tests bearer token extraction, build_service wiring and the @auth_required
decorator that guards protected endpoints.
"""

import pytest
from flask import g

from authgate.auth.decorators import auth_required, bearer_token, build_service
from authgate.auth.service import AuthService
from authgate.db import get_core
from authgate.exceptions import AuthenticationError, InvalidToken
from authgate.main import app


@auth_required
def protected_view():
    return {"user_id": g.user_id, "username": g.username}


class TestBearerToken:
    """Tests for bearer_token()."""

    def test_extracts_token(self):
        with app.test_request_context(headers={"Authorization": "Bearer abc.def.ghi"}):
            assert bearer_token() == "abc.def.ghi"

    def test_missing_header(self):
        with app.test_request_context():
            assert bearer_token() is None

    def test_wrong_scheme(self):
        with app.test_request_context(headers={"Authorization": "Basic dXNlcjpwYXNz"}):
            assert bearer_token() is None

    def test_empty_bearer(self):
        with app.test_request_context(headers={"Authorization": "Bearer   "}):
            assert bearer_token() is None


class TestBuildService:
    """Tests for build_service()."""

    def test_uses_app_components(self, client):
        with app.app_context():
            core = get_core()
            try:
                service = build_service(core)
            finally:
                core.close()

        assert isinstance(service, AuthService)
        assert service._notifier is client.notifier


class TestAuthRequired:
    """Tests for @auth_required."""

    def test_sets_user_on_g(self, verified_client):
        client, tokens = verified_client
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        with app.test_request_context(headers=headers):
            result = protected_view()
            assert g.user.username == "alice"

        assert result["username"] == "alice"
        assert isinstance(result["user_id"], int)

    def test_missing_header(self, client):
        with app.test_request_context():
            with pytest.raises(AuthenticationError) as exc_info:
                protected_view()

        assert exc_info.value.message == "Authentication required"

    def test_invalid_token(self, client):
        with app.test_request_context(headers={"Authorization": "Bearer garbage"}):
            with pytest.raises(InvalidToken):
                protected_view()

    def test_revoked_token(self, verified_client):
        client, tokens = verified_client
        client.post(
            "/api/auth/login",
            json={"username_or_email": "alice", "password": "SecurePass123"},
        )
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        with app.test_request_context(headers=headers):
            with pytest.raises(InvalidToken):
                protected_view()

    def test_preserves_function_name(self):
        assert protected_view.__name__ == "protected_view"
