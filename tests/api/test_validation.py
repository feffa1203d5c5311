"""Tests for the @validate_request decorator."""

import pytest
from flask import Blueprint, jsonify
from pydantic import BaseModel, Field

from authgate.api.validation import validate_request
from authgate.main import app


class MockCredentials(BaseModel):
    """Test schema for request body validation."""
    username: str = Field(..., min_length=3)
    attempts: int = Field(..., description="Attempt counter")
    password: str | None = None


class MockLookup(BaseModel):
    token: str


# Register test routes globally (before any requests)
test_validation_bp = Blueprint('validation_test_routes', __name__)


@test_validation_bp.post("/test/validation/credentials")
@validate_request
def route_credentials(data: MockCredentials):
    return jsonify({
        "username": data.username,
        "attempts": data.attempts,
        "password": data.password,
    }), 200


@test_validation_bp.route("/test/validation/lookup", methods=["GET", "POST"])
@validate_request
def route_lookup(data: MockLookup):
    return jsonify({"token": data.token}), 200


@test_validation_bp.get("/test/validation/path/<user_id>")
@validate_request
def route_path_param(user_id: str):
    return jsonify({"user_id": user_id}), 200


@test_validation_bp.post("/test/validation/combined/<user_id>")
@validate_request
def route_combined(user_id: str, data: MockLookup):
    return jsonify({"user_id": user_id, "token": data.token}), 200


app.register_blueprint(test_validation_bp)


@pytest.fixture
def validation_client():
    """Create test client with validation test routes."""
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def test_validates_valid_request_body(validation_client):
    """Valid request body should pass validation and be parsed correctly."""
    response = validation_client.post(
        "/test/validation/credentials",
        json={"username": "alice", "attempts": 2, "password": "pw"}
    )

    assert response.status_code == 200
    assert response.get_json() == {"username": "alice", "attempts": 2, "password": "pw"}


def test_optional_field_omitted(validation_client):
    """Request with optional field omitted should still pass validation."""
    response = validation_client.post(
        "/test/validation/credentials",
        json={"username": "alice", "attempts": 1}
    )

    assert response.status_code == 200
    assert response.get_json()["password"] is None


def test_missing_required_field_returns_400(validation_client):
    """Missing required field should raise ValidationError with details."""
    response = validation_client.post(
        "/test/validation/credentials",
        json={"username": "alice"}
    )

    assert response.status_code == 400
    data = response.get_json()
    assert data["success"] is False
    assert data["error"]["type"] == "ValidationError"

    errors = data["error"]["details"]["errors"]
    assert any(e["field"] == "attempts" for e in errors)


def test_error_details_include_field_and_message(validation_client):
    """Validation errors should include field, message, and expected_type."""
    response = validation_client.post(
        "/test/validation/credentials",
        json={"attempts": "many"}
    )

    assert response.status_code == 400
    errors = response.get_json()["error"]["details"]["errors"]
    assert errors
    for error in errors:
        assert "field" in error
        assert "message" in error
        assert "expected_type" in error


def test_empty_json_body(validation_client):
    """Empty JSON body should report every missing required field."""
    response = validation_client.post("/test/validation/credentials", json={})

    assert response.status_code == 400
    details = response.get_json()["error"]["details"]
    assert details["model"] == "MockCredentials"
    assert details["received"] == {}
    field_names = [e["field"] for e in details["errors"]]
    assert "username" in field_names
    assert "attempts" in field_names


def test_received_data_redacts_secrets(validation_client):
    """Passwords and tokens are never echoed back in error details."""
    response = validation_client.post(
        "/test/validation/credentials",
        json={"username": "al", "attempts": 1, "password": "hunter2", "token": "abc"}
    )

    assert response.status_code == 400
    received = response.get_json()["error"]["details"]["received"]
    assert received["username"] == "al"
    assert received["password"] == "[REDACTED]"
    assert received["token"] == "[REDACTED]"
    assert "hunter2" not in response.get_data(as_text=True)


def test_get_reads_query_string(validation_client):
    """GET requests are validated from the query string."""
    response = validation_client.get("/test/validation/lookup?token=abc-123")

    assert response.status_code == 200
    assert response.get_json() == {"token": "abc-123"}


def test_form_body(validation_client):
    """Form posts are validated from form data."""
    response = validation_client.post(
        "/test/validation/lookup", data={"token": "from-form"}
    )

    assert response.status_code == 200
    assert response.get_json() == {"token": "from-form"}


def test_passes_through_path_parameters_unchanged(validation_client):
    """Path parameters should be passed as strings, not validated."""
    response = validation_client.get("/test/validation/path/42")

    assert response.status_code == 200
    assert response.get_json() == {"user_id": "42"}


def test_path_param_with_body(validation_client):
    """Routes with both path param and body should handle both correctly."""
    response = validation_client.post(
        "/test/validation/combined/7",
        json={"token": "t"}
    )

    assert response.status_code == 200
    assert response.get_json() == {"user_id": "7", "token": "t"}


def test_raises_typeerror_when_function_has_no_parameters():
    """Decorator should raise TypeError when function has no parameters."""
    def no_params():
        return "ok"

    with pytest.raises(TypeError) as exc_info:
        validate_request(no_params)

    assert "has no parameters to validate" in str(exc_info.value)


def test_raises_typeerror_when_first_param_lacks_annotation():
    """Decorator should raise TypeError when first param lacks type annotation."""
    def no_annotation(data):
        return "ok"

    with pytest.raises(TypeError) as exc_info:
        validate_request(no_annotation)

    assert "lacks a type annotation" in str(exc_info.value)


def test_raises_typeerror_for_body_param_without_basemodel():
    """Body parameters without BaseModel annotation should raise TypeError at request time."""
    def wrong_annotation(data: str):
        return "ok"

    decorated = validate_request(wrong_annotation)

    with app.test_request_context('/test', method='POST', json={"data": "test"}):
        from flask import request
        request.view_args = {}

        with pytest.raises(TypeError) as exc_info:
            decorated()

        assert "Pydantic BaseModel subclass" in str(exc_info.value)
