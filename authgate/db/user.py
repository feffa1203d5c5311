"""Account Store operations.

IMPORT CONVENTION:
- Core accesses these through core.users property
- NO direct import needed when using Core API

Usernames and emails are compared case-insensitively (the columns are
declared COLLATE NOCASE). User IDs are integers assigned by SQLite on first
save and never change afterwards.
"""

import sqlite3
from datetime import datetime

from ..schemas import Role, Status, User
from ..utils import isodatetime


def _row_to_user(row: sqlite3.Row) -> User:
    verified_at = row["email_verified_at"]
    return User(
        id=row["id"],
        name=row["name"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        status=Status(row["status"]),
        email_verification_token=row["email_verification_token"],
        email_verified_at=isodatetime.to_datetime(verified_at) if verified_at else None,
        created_at=isodatetime.to_datetime(row["created_at"]),
        updated_at=isodatetime.to_datetime(row["updated_at"]),
    )


class UserOperations:
    """User account lookup and persistence."""

    def __init__(self, conn: sqlite3.Connection):
        """Initialize user operations with a database connection.

        Args:
            conn: SQLite connection with row_factory set to sqlite3.Row
        """
        self._conn = conn

    def exists_by_username(self, username: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM users WHERE username = ?",
            (username,)
        ).fetchone()
        return row is not None

    def exists_by_email(self, email: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM users WHERE email = ?",
            (email,)
        ).fetchone()
        return row is not None

    def find_by_username_or_email(self, identifier: str) -> User | None:
        """Find a user whose username or email equals `identifier`."""
        row = self._conn.execute(
            "SELECT * FROM users WHERE username = ? OR email = ?",
            (identifier, identifier)
        ).fetchone()
        return _row_to_user(row) if row else None

    def find_by_verification_token(self, token: str) -> User | None:
        row = self._conn.execute(
            "SELECT * FROM users WHERE email_verification_token = ?",
            (token,)
        ).fetchone()
        return _row_to_user(row) if row else None

    def consume_verification_token(
        self, user_id: int, token: str, verified_at: datetime
    ) -> User | None:
        """Activate a user and clear their verification token in one statement.

        The UPDATE only matches while the row still holds `token`, so of two
        concurrent callers exactly one succeeds.

        Returns:
            The activated user, or None if the token was already consumed
        """
        cursor = self._conn.execute(
            """UPDATE users
               SET status = ?, email_verification_token = NULL,
                   email_verified_at = ?, updated_at = ?
               WHERE id = ? AND email_verification_token = ?""",
            (
                Status.ACTIVE.value,
                isodatetime.to_timestamp(verified_at),
                isodatetime.now(),
                user_id,
                token,
            )
        )
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def get_by_id(self, user_id: int) -> User | None:
        row = self._conn.execute(
            "SELECT * FROM users WHERE id = ?",
            (user_id,)
        ).fetchone()
        return _row_to_user(row) if row else None

    def get_by_username(self, username: str) -> User | None:
        row = self._conn.execute(
            "SELECT * FROM users WHERE username = ?",
            (username,)
        ).fetchone()
        return _row_to_user(row) if row else None

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]

    def save(self, user: User) -> User:
        """Insert or update a user.

        Args:
            user: The user to persist. A user with id None is inserted.

        Returns:
            The stored user, with id and timestamps populated.

        Raises:
            sqlite3.IntegrityError: If username, email or verification token
                collides with an existing row
        """
        now = isodatetime.now()
        verified_at = (
            isodatetime.to_timestamp(user.email_verified_at)
            if user.email_verified_at else None
        )

        if user.id is None:
            created_at = (
                isodatetime.to_timestamp(user.created_at) if user.created_at else now
            )
            cursor = self._conn.execute(
                """INSERT INTO users
                   (name, username, email, password_hash, role, status,
                    email_verification_token, email_verified_at, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    user.name,
                    user.username,
                    user.email,
                    user.password_hash,
                    user.role.value,
                    user.status.value,
                    user.email_verification_token,
                    verified_at,
                    created_at,
                    now,
                )
            )
            user_id = cursor.lastrowid
        else:
            self._conn.execute(
                """UPDATE users
                   SET name = ?, username = ?, email = ?, password_hash = ?,
                       role = ?, status = ?, email_verification_token = ?,
                       email_verified_at = ?, updated_at = ?
                   WHERE id = ?""",
                (
                    user.name,
                    user.username,
                    user.email,
                    user.password_hash,
                    user.role.value,
                    user.status.value,
                    user.email_verification_token,
                    verified_at,
                    now,
                    user.id,
                )
            )
            user_id = user.id

        return self.get_by_id(user_id)
