"""Tests for Account Store operations."""

import sqlite3
from datetime import datetime, UTC

import pytest

from authgate.schemas import Role, Status, User


def _user(**overrides):
    data = {
        "name": "Alice",
        "username": "alice",
        "email": "alice@example.com",
        "password_hash": "hash",
        "email_verification_token": "verify-alice",
    }
    data.update(overrides)
    return User(**data)


class TestSave:
    """Tests for UserOperations.save."""

    def test_insert_assigns_id_and_timestamps(self, core):
        saved = core.users.save(_user())

        assert isinstance(saved.id, int)
        assert saved.created_at is not None
        assert saved.updated_at is not None
        assert saved.role == Role.USER
        assert saved.status == Status.INACTIVE

    def test_ids_are_distinct(self, core):
        first = core.users.save(_user())
        second = core.users.save(_user(
            username="bob", email="bob@example.com", email_verification_token="verify-bob"
        ))

        assert first.id != second.id

    def test_update_keeps_id(self, core):
        saved = core.users.save(_user())
        saved.status = Status.ACTIVE
        saved.email_verified_at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        saved.email_verification_token = None

        updated = core.users.save(saved)

        assert updated.id == saved.id
        assert updated.status == Status.ACTIVE
        assert updated.email_verified_at == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert updated.email_verification_token is None
        assert updated.created_at == saved.created_at
        assert core.users.count() == 1

    def test_duplicate_username_violates_constraint(self, core):
        core.users.save(_user())

        with pytest.raises(sqlite3.IntegrityError):
            core.users.save(_user(
                username="ALICE", email="other@example.com", email_verification_token="v2"
            ))

    def test_duplicate_email_violates_constraint(self, core):
        core.users.save(_user())

        with pytest.raises(sqlite3.IntegrityError):
            core.users.save(_user(username="other", email_verification_token="v2"))


class TestLookup:
    """Tests for Account Store lookups."""

    def test_exists_by_username(self, core):
        core.users.save(_user())

        assert core.users.exists_by_username("alice") is True
        assert core.users.exists_by_username("Alice") is True
        assert core.users.exists_by_username("bob") is False

    def test_exists_by_email(self, core):
        core.users.save(_user())

        assert core.users.exists_by_email("ALICE@example.com") is True
        assert core.users.exists_by_email("bob@example.com") is False

    def test_find_by_username_or_email(self, core):
        saved = core.users.save(_user())

        assert core.users.find_by_username_or_email("alice").id == saved.id
        assert core.users.find_by_username_or_email("alice@example.com").id == saved.id
        assert core.users.find_by_username_or_email("nobody") is None

    def test_find_by_verification_token(self, core):
        saved = core.users.save(_user())

        assert core.users.find_by_verification_token("verify-alice").id == saved.id
        assert core.users.find_by_verification_token("other") is None

    def test_consume_verification_token(self, core):
        saved = core.users.save(_user())
        verified_at = datetime(2026, 1, 2, tzinfo=UTC)

        activated = core.users.consume_verification_token(saved.id, "verify-alice", verified_at)

        assert activated.status == Status.ACTIVE
        assert activated.email_verification_token is None
        assert activated.email_verified_at == verified_at

    def test_consume_verification_token_only_once(self, core):
        saved = core.users.save(_user())
        verified_at = datetime(2026, 1, 2, tzinfo=UTC)
        core.users.consume_verification_token(saved.id, "verify-alice", verified_at)

        assert core.users.consume_verification_token(saved.id, "verify-alice", verified_at) is None

    def test_consume_verification_token_wrong_token(self, core):
        saved = core.users.save(_user())

        result = core.users.consume_verification_token(
            saved.id, "other", datetime(2026, 1, 2, tzinfo=UTC)
        )

        assert result is None
        assert core.users.get_by_id(saved.id).status == Status.INACTIVE

    def test_get_by_id_missing(self, core):
        assert core.users.get_by_id(12345) is None

    def test_get_by_username(self, core):
        core.users.save(_user())

        user = core.users.get_by_username("alice")
        assert user.email == "alice@example.com"
        assert user.password_hash == "hash"

    def test_count(self, core):
        assert core.users.count() == 0
        core.users.save(_user())
        assert core.users.count() == 1
