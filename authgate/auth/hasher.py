"""Password hashing with bcrypt.

bcrypt only considers the first 72 bytes of a password; RegisterRequest caps
passwords at 72 UTF-8 bytes and verify() treats longer inputs as a mismatch.
"""

import bcrypt

from ..config import Settings


class BcryptHasher:
    """One-way password hash and verify."""

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    @classmethod
    def from_settings(cls, settings: Settings) -> "BcryptHasher":
        return cls(rounds=settings.bcrypt_work_factor)

    def hash(self, password: str) -> str:
        """Hash a password with a fresh salt. Returns a 60 character string."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed hash or over-long password
            return False
