"""JWT token codec.

Signs and validates the self-contained bearer tokens handed to clients.
Every token carries:
- sub: username of the token owner
- type: "access" or "refresh"
- iat / exp: issue and expiry times (Unix seconds)
- jti: random UUID, so tokens minted in the same second never collide

The signing secret is read from settings once, when the application builds
its TokenCodec, and handed to the codec at construction.
"""

import logging
from datetime import timedelta
from enum import Enum

import jwt
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..exceptions import InvalidToken
from ..utils import isodatetime, uid
from .schemas import TokenPayload

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "type", "iat", "exp", "jti"]


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenCodec:
    """Issue and validate HS256-signed access and refresh tokens."""

    def __init__(
        self,
        secret_key: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttls = {
            TokenKind.ACCESS: access_ttl,
            TokenKind.REFRESH: refresh_ttl,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            secret_key=settings.jwt_secret_key,
            access_ttl=timedelta(minutes=settings.access_token_expiry_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expiry_days),
            algorithm=settings.jwt_algorithm,
        )

    def expires_in(self, kind: TokenKind) -> int:
        """Lifetime of a freshly issued token of this kind, in seconds."""
        return int(self._ttls[kind].total_seconds())

    def issue(self, kind: TokenKind, subject: str) -> str:
        """Mint a signed token of `kind` for `subject`."""
        now = isodatetime.now_unix()
        payload = {
            "sub": subject,
            "type": kind.value,
            "iat": now,
            "exp": now + self.expires_in(kind),
            "jti": uid.generate_uuid(),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> TokenPayload:
        """Verify signature and expiry and return the claims.

        Raises:
            jwt.InvalidTokenError: On bad signature, expiry, malformed input
                or missing claims
        """
        payload = jwt.decode(
            token,
            self._secret_key,
            algorithms=[self._algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
        try:
            return TokenPayload(**payload)
        except PydanticValidationError as e:
            raise jwt.InvalidTokenError(f"Unexpected claim types: {e}") from e

    def parse_subject(self, token: str) -> str:
        """Return the verified subject of a token.

        Raises:
            InvalidToken: For any token that does not verify. The reason is
                logged but never surfaced to the caller.
        """
        try:
            payload = self.decode(token)
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected token: {e}")
            raise InvalidToken("Invalid or expired token")
        if not payload.sub:
            raise InvalidToken("Invalid or expired token")
        return payload.sub

    def is_valid(self, token: str, subject: str, kind: TokenKind | None = None) -> bool:
        """Check signature, expiry, subject and (optionally) token kind."""
        try:
            payload = self.decode(token)
        except jwt.InvalidTokenError:
            return False
        if payload.sub != subject:
            return False
        if kind is not None and payload.type != kind.value:
            return False
        return True
