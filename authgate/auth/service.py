"""Authentication orchestration.

AuthService coordinates the Account Store, Token Ledger, Token Codec,
Credential Hasher and Notifier into the register / verify / login / refresh
flows. All collaborators are passed in at construction.

Lineage revocation: every flow that mints an access token first revokes all
of the user's still-valid tokens, then records the new one, so at most one
valid access token exists per user once the flow completes. The HTTP layer
runs these flows inside an atomic Core, so the revoke and the record commit
together.
"""

import logging
from datetime import datetime, UTC
from typing import Protocol

from ..exceptions import (
    AccountNotVerified,
    EmailTaken,
    InvalidCredentials,
    InvalidToken,
    ResourceNotFound,
    UsernameTaken,
)
from ..schemas import Role, Status, Token, User
from ..utils import uid
from .schemas import AuthResponse
from .token import TokenCodec, TokenKind

logger = logging.getLogger(__name__)


# ============================================================================
# Collaborator interfaces
# ============================================================================


class AccountStore(Protocol):
    def exists_by_username(self, username: str) -> bool: ...

    def exists_by_email(self, email: str) -> bool: ...

    def find_by_username_or_email(self, identifier: str) -> User | None: ...

    def find_by_verification_token(self, token: str) -> User | None: ...

    def consume_verification_token(
        self, user_id: int, token: str, verified_at: datetime
    ) -> User | None: ...

    def get_by_username(self, username: str) -> User | None: ...

    def get_by_id(self, user_id: int) -> User | None: ...

    def save(self, user: User) -> User: ...


class TokenLedger(Protocol):
    def record(self, user_id: int, token: str) -> Token: ...

    def all_valid_for_user(self, user_id: int) -> list[Token]: ...

    def revoke_all(self, user_id: int) -> int: ...

    def find(self, token: str) -> Token | None: ...


class CredentialHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


class Notifier(Protocol):
    def send_verification_email(self, to: str, name: str, token: str) -> object: ...


# ============================================================================
# Orchestrator
# ============================================================================


class AuthService:
    """Register, verify, login and refresh use cases."""

    def __init__(
        self,
        users: AccountStore,
        tokens: TokenLedger,
        codec: TokenCodec,
        hasher: CredentialHasher,
        notifier: Notifier,
    ):
        self._users = users
        self._tokens = tokens
        self._codec = codec
        self._hasher = hasher
        self._notifier = notifier

    def register(self, name: str, username: str, email: str, password: str) -> AuthResponse:
        """Create an inactive account and email its verification link.

        Raises:
            UsernameTaken: If the username exists (checked first)
            EmailTaken: If the email is already registered
        """
        if self._users.exists_by_username(username):
            logger.warning(f"Registration rejected, username taken: {username}")
            raise UsernameTaken("Username is already taken", {"field": "username"})
        if self._users.exists_by_email(email):
            logger.warning(f"Registration rejected, email taken for username: {username}")
            raise EmailTaken("Email is already registered", {"field": "email"})

        user = self._users.save(
            User(
                name=name,
                username=username,
                email=email,
                password_hash=self._hasher.hash(password),
                role=Role.USER,
                status=Status.INACTIVE,
                email_verification_token=uid.generate_uuid(),
            )
        )
        logger.info(f"Registered user {user.username} (id={user.id})")

        try:
            self._notifier.send_verification_email(
                user.email, user.name, user.email_verification_token
            )
        except Exception:
            # The account exists either way; the user can ask for support
            logger.exception(f"Could not queue verification email for user {user.id}")

        return AuthResponse(
            message="Registration successful. Please check your email for verification."
        )

    def verify_email(self, token: str) -> AuthResponse:
        """Activate the account holding `token` and issue its first tokens.

        Raises:
            InvalidToken: If no account holds the token (including replays)
        """
        user = self._users.find_by_verification_token(token)
        if user is None:
            logger.warning("Email verification with unknown token")
            raise InvalidToken("Invalid verification token")

        activated = self._users.consume_verification_token(
            user.id, token, datetime.now(UTC)
        )
        if activated is None:
            # Another request redeemed the token after our lookup
            logger.warning(f"Verification token already consumed for user {user.username}")
            raise InvalidToken("Invalid verification token")
        user = activated
        logger.info(f"Email verified for user {user.username}")

        access_token = self._codec.issue(TokenKind.ACCESS, user.username)
        refresh_token = self._codec.issue(TokenKind.REFRESH, user.username)
        self._replace_user_tokens(user, access_token)

        return self._token_response("Email verified successfully", access_token, refresh_token)

    def login(self, identifier: str, password: str) -> AuthResponse:
        """Authenticate by username or email and start a new token lineage.

        Raises:
            InvalidCredentials: Unknown identifier or wrong password
            AccountNotVerified: Correct credentials, email not yet verified
        """
        user = self._users.find_by_username_or_email(identifier)
        if user is None or not self._hasher.verify(password, user.password_hash):
            logger.warning(f"Failed login attempt for: {identifier}")
            raise InvalidCredentials("Invalid username or password")

        if not user.is_active:
            logger.warning(f"Login before verification: {user.username}")
            raise AccountNotVerified("Please verify your email first")

        access_token = self._codec.issue(TokenKind.ACCESS, user.username)
        refresh_token = self._codec.issue(TokenKind.REFRESH, user.username)
        self._replace_user_tokens(user, access_token)

        logger.info(f"Successful login: {user.username}")
        return self._token_response("Login successful", access_token, refresh_token)

    def refresh(self, refresh_token: str) -> AuthResponse:
        """Exchange a refresh token for a new access token.

        The refresh token itself is returned unchanged.

        Raises:
            InvalidToken: Unparsable, tampered, expired or non-refresh token
            ResourceNotFound: Token subject no longer matches a user
        """
        username = self._codec.parse_subject(refresh_token)

        user = self._users.get_by_username(username)
        if user is None:
            logger.warning(f"Refresh token for unknown user: {username}")
            raise ResourceNotFound("User not found", {"username": username})

        if not self._codec.is_valid(refresh_token, user.username, TokenKind.REFRESH):
            logger.warning(f"Refresh rejected for user {user.username}")
            raise InvalidToken("Invalid refresh token")

        access_token = self._codec.issue(TokenKind.ACCESS, user.username)
        self._replace_user_tokens(user, access_token)

        logger.info(f"Access token refreshed for user {user.username}")
        return self._token_response("Token refreshed successfully", access_token, refresh_token)

    def authenticate(self, access_token: str) -> User:
        """Resolve a bearer access token to its user.

        The token must verify, be an access token, still be valid in the
        ledger, and belong to an existing user.

        Raises:
            InvalidToken: For any failure, without saying which
        """
        username = self._codec.parse_subject(access_token)
        if not self._codec.is_valid(access_token, username, TokenKind.ACCESS):
            raise InvalidToken("Invalid or expired token")

        record = self._tokens.find(access_token)
        if record is None or not record.is_valid:
            logger.warning(f"Revoked or unknown access token presented for {username}")
            raise InvalidToken("Invalid or expired token")

        user = self._users.get_by_id(record.user_id)
        if user is None or user.username != username:
            raise InvalidToken("Invalid or expired token")
        return user

    def logout(self, user: User) -> AuthResponse:
        """Revoke every recorded access token of `user`.

        Only access tokens are recorded in the ledger. Refresh tokens are
        self-contained, so one issued before logout can still be exchanged
        for a new access token until it expires.
        """
        revoked = self._tokens.revoke_all(user.id)
        logger.info(f"User {user.username} logged out, {revoked} token(s) revoked")
        return AuthResponse(message="Logged out successfully")

    # ------------------------------------------------------------------------

    def _replace_user_tokens(self, user: User, access_token: str) -> None:
        revoked = self._tokens.revoke_all(user.id)
        if revoked:
            logger.info(f"Revoked {revoked} token(s) for user {user.username}")
        self._tokens.record(user.id, access_token)

    def _token_response(self, message: str, access_token: str, refresh_token: str) -> AuthResponse:
        return AuthResponse(
            message=message,
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="Bearer",
            expires_in=self._codec.expires_in(TokenKind.ACCESS),
        )
