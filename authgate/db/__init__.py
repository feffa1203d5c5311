"""Database module for AuthGate.

This module provides the Core API for database operations.
Core encapsulates connection management and provides access to the
Account Store (core.users) and the Token Ledger (core.tokens).

ARCHITECTURE:
- Core owns its connection (no Flask g.db dependency)
- atomic=False: connection runs in autocommit mode, every statement is durable
  as soon as it returns
- atomic=True: Core MUST be used as a context manager; all statements commit
  together on exit or roll back on exception

The verify, login and refresh flows rely on atomic mode so that revoking a user's
previous tokens and recording the new one land as a single transaction.
"""

import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import settings
from ..exceptions import DatabaseError

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .token import TokenOperations
    from .user import UserOperations


SCHEMA_PATH = Path(__file__).parent.parent / "schema" / "schema.sql"


class Core:
    """
    Database Core with account and token operations.

    Maintains its own connection and transaction state.
    Provides access to store operations through properties.
    """

    def __init__(self, connection: sqlite3.Connection, atomic: bool = False):
        """Initialize Core with a database connection.

        Args:
            connection: SQLite connection with row_factory set to sqlite3.Row
            atomic: If True, Core MUST be used as context manager.
                    If False, the connection is switched to autocommit.
        """
        self._conn = connection
        self._atomic = atomic
        if not atomic:
            self._conn.isolation_level = None
        self._user_ops = None
        self._token_ops = None

    @property
    def users(self) -> "UserOperations":
        """Account Store operations.

        Lazy-loaded to avoid circular import issues.
        """
        if self._user_ops is None:
            from .user import UserOperations
            self._user_ops = UserOperations(self._conn)
        return self._user_ops

    @property
    def tokens(self) -> "TokenOperations":
        """Token Ledger operations.

        Lazy-loaded to avoid circular import issues.
        """
        if self._token_ops is None:
            from .token import TokenOperations
            self._token_ops = TokenOperations(self._conn)
        return self._token_ops

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Core":
        """Enter context manager for atomic transaction.

        Raises:
            RuntimeError: If Core was not created with atomic=True
        """
        if not self._atomic:
            raise RuntimeError(
                "Core must be created with atomic=True for context manager use. "
                "Use: with db.get_core(atomic=True) as core:"
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager, committing or rolling back the transaction."""
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            self._conn.close()


def _create_connection() -> sqlite3.Connection:
    """Create a fresh database connection.

    Returns:
        SQLite connection with row_factory set to sqlite3.Row
        and foreign keys enabled.

    Raises:
        DatabaseError: If the database file cannot be opened
    """
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # Requests are served from a thread pool; each Core still owns its own
    # connection, so sharing across threads never happens in practice.
    try:
        conn = sqlite3.connect(str(db_path), timeout=10, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as e:
        logger.error(f"Could not open database at {db_path}: {e}")
        raise DatabaseError("Could not open database", {"reason": str(e)}) from e
    conn.row_factory = sqlite3.Row
    return conn


def get_core(atomic: bool = False) -> Core:
    """
    Get a database Core instance.

    Args:
        atomic: If True, returns a Core that MUST be used as context manager.
                Use for multi-statement flows that need to commit together.
                If False (default), returns an autocommit Core.

    Examples:
        Autocommit mode:
        >>> core = get_core()
        >>> user = core.users.find_by_username_or_email("alice")

        Atomic mode:
        >>> with get_core(atomic=True) as core:
        ...     core.tokens.revoke_all(user.id)
        ...     core.tokens.record(user.id, access_token)
    """
    return Core(_create_connection(), atomic=atomic)


# ============================================================================
# DATABASE INITIALIZATION
# ============================================================================

def apply_schema(conn: sqlite3.Connection) -> None:
    """Run schema.sql against an open connection."""
    with open(SCHEMA_PATH, "r") as f:
        conn.executescript(f.read())


def init_db():
    """Initialize database by running schema.sql if not already initialized."""
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with sqlite3.connect(str(db_path)) as db:
        cursor = db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='_schema_metadata'"
        )
        if cursor.fetchone():
            # Database already initialized, skip
            return

        apply_schema(db)
        db.commit()


def get_schema_version(conn: sqlite3.Connection) -> str:
    """Get current schema version from _schema_metadata table."""
    row = conn.execute(
        "SELECT value FROM _schema_metadata WHERE key = 'version'"
    ).fetchone()
    return row[0] if row else "unknown"
