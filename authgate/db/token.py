"""Token Ledger operations.

IMPORT CONVENTION:
- Core accesses these through core.tokens property

A token row is valid while both its expired and revoked flags are clear.
Revocation always sets both flags together.
"""

import sqlite3

from ..schemas import Token, TokenType
from ..utils import isodatetime


def _row_to_token(row: sqlite3.Row) -> Token:
    return Token(
        id=row["id"],
        token=row["token"],
        user_id=row["user_id"],
        token_type=TokenType(row["token_type"]),
        expired=bool(row["expired"]),
        revoked=bool(row["revoked"]),
        created_at=isodatetime.to_datetime(row["created_at"]),
    )


class TokenOperations:
    """Issued-token records, keyed by token string and grouped by user."""

    def __init__(self, conn: sqlite3.Connection):
        """Initialize token operations with a database connection.

        Args:
            conn: SQLite connection with row_factory set to sqlite3.Row
        """
        self._conn = conn

    def record(
        self,
        user_id: int,
        token: str,
        token_type: TokenType = TokenType.BEARER
    ) -> Token:
        """Persist a newly issued token as valid.

        Raises:
            sqlite3.IntegrityError: If the token string is already recorded
        """
        cursor = self._conn.execute(
            """INSERT INTO tokens (token, user_id, token_type, expired, revoked, created_at)
               VALUES (?, ?, ?, 0, 0, ?)""",
            (token, user_id, token_type.value, isodatetime.now())
        )
        row = self._conn.execute(
            "SELECT * FROM tokens WHERE id = ?",
            (cursor.lastrowid,)
        ).fetchone()
        return _row_to_token(row)

    def all_valid_for_user(self, user_id: int) -> list[Token]:
        rows = self._conn.execute(
            """SELECT * FROM tokens
               WHERE user_id = ? AND expired = 0 AND revoked = 0
               ORDER BY id""",
            (user_id,)
        ).fetchall()
        return [_row_to_token(row) for row in rows]

    def revoke_all(self, user_id: int) -> int:
        """Expire and revoke every valid token of a user in one statement.

        Returns:
            Number of tokens revoked (0 when the user had none)
        """
        cursor = self._conn.execute(
            """UPDATE tokens
               SET expired = 1, revoked = 1
               WHERE user_id = ? AND expired = 0 AND revoked = 0""",
            (user_id,)
        )
        return cursor.rowcount

    def find(self, token: str) -> Token | None:
        row = self._conn.execute(
            "SELECT * FROM tokens WHERE token = ?",
            (token,)
        ).fetchone()
        return _row_to_token(row) if row else None
