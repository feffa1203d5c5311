"""Shared test fixtures for authgate."""

import os
import sqlite3
import tempfile
from datetime import timedelta

import pytest

from authgate.auth.decorators import EXTENSION_KEY
from authgate.auth.hasher import BcryptHasher
from authgate.auth.service import AuthService
from authgate.auth.token import TokenCodec
from authgate.config import settings
from authgate.db import Core, apply_schema
from authgate.main import app

TEST_SECRET = "test-secret-key"


class RecordingNotifier:
    """Notifier double that records verification emails instead of sending."""

    def __init__(self):
        self.sent = []

    def send_verification_email(self, to, name, token):
        self.sent.append({"to": to, "name": name, "token": token})

    @property
    def last_token(self):
        return self.sent[-1]["token"]


@pytest.fixture
def test_db():
    """Create in-memory test database with schema."""
    db = sqlite3.connect(":memory:")
    db.row_factory = sqlite3.Row
    db.execute("PRAGMA foreign_keys = ON")
    apply_schema(db)
    db.commit()

    yield db

    db.close()


@pytest.fixture
def core(test_db):
    """Autocommit Core over the in-memory test database."""
    return Core(test_db, atomic=False)


@pytest.fixture
def hasher():
    """Bcrypt hasher with the minimum work factor for fast tests."""
    return BcryptHasher(rounds=4)


@pytest.fixture
def codec():
    return TokenCodec(
        secret_key=TEST_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def auth_service(core, codec, hasher, notifier):
    return AuthService(core.users, core.tokens, codec, hasher, notifier)


@pytest.fixture
def active_user(auth_service, notifier, core):
    """Register and verify alice. Returns (user_id, verify_response)."""
    auth_service.register("Alice", "alice", "a@x.com", "pw1")
    result = auth_service.verify_email(notifier.last_token)
    user = core.users.get_by_username("alice")
    return user.id, result


@pytest.fixture
def client(hasher):
    """Create test client for API testing.

    Uses a temp file database so every Core opened by a request sees the
    same data. The app's notifier is swapped for a RecordingNotifier,
    available as client.notifier.
    """
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    original_db_path = settings.database_path
    components = app.extensions[EXTENSION_KEY]
    original_components = dict(components)
    recording = RecordingNotifier()

    try:
        settings.database_path = db_path

        # mkstemp leaves an empty file behind; init_db applies the schema
        from authgate.db import init_db
        init_db()

        components["hasher"] = hasher
        components["notifier"] = recording

        app.config['TESTING'] = True
        with app.test_client() as client:
            client.notifier = recording
            yield client

    finally:
        settings.database_path = original_db_path
        components.clear()
        components.update(original_components)
        try:
            os.unlink(db_path)
        except OSError:
            pass


def _register_payload(**overrides):
    payload = {
        "name": "Alice",
        "username": "alice",
        "email": "alice@example.com",
        "password": "SecurePass123",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register_payload():
    """Builder for a valid registration body; keyword overrides replace fields."""
    return _register_payload


@pytest.fixture
def verified_client(client):
    """Client with alice registered and verified.

    Returns (client, verify_data) where verify_data holds the issued tokens.
    """
    client.post("/api/auth/register", json=_register_payload())
    response = client.post(
        "/api/auth/verify-email", json={"token": client.notifier.last_token}
    )
    assert response.status_code == 200
    return client, response.get_json()["data"]
