"""
Credential Service

Single-account username/password login with opaque session tokens.

Sessions are held in process memory and expire a fixed interval after login
(24 hours by default). There is no sliding renewal: validating a session does
not extend it. Restarting the process logs everyone out.

Exceptions:
- AuthError: Base class for every authentication failure
- InvalidCredentialsError: Wrong username or password
- InvalidSessionError: Unknown or revoked token
- SessionExpiredError: Token found but past its expiry
"""

import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Dict, Optional

from pacing_recon.models.schemas import Session

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(hours=24)


class AuthError(Exception):
    """Base class for credential service failures."""


class InvalidCredentialsError(AuthError):
    """Username or password did not match."""


class InvalidSessionError(AuthError):
    """Token is unknown or has been revoked."""


class SessionExpiredError(AuthError):
    """Token was valid but its validity window has passed."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialService:
    """
    Issues and checks session tokens for one configured account.

    Args:
        username: Accepted login name
        password: Accepted password
        session_ttl: Validity window measured from login
        now: Clock function, replaceable in tests
    """

    def __init__(
        self,
        username: str,
        password: str,
        session_ttl: timedelta = DEFAULT_SESSION_TTL,
        now: Callable[[], datetime] = _utcnow
    ):
        if session_ttl <= timedelta(0):
            raise ValueError(f"session_ttl must be positive, got {session_ttl}")
        self._username = username
        self._password = password
        self._session_ttl = session_ttl
        self._now = now
        self._sessions: Dict[str, Session] = {}
        self._lock = Lock()

    @property
    def session_ttl(self) -> timedelta:
        return self._session_ttl

    def _credentials_match(self, username: str, password: str) -> bool:
        # Both fields are always compared
        username_ok = hmac.compare_digest(username.encode('utf-8'), self._username.encode('utf-8'))
        password_ok = hmac.compare_digest(password.encode('utf-8'), self._password.encode('utf-8'))
        return username_ok and password_ok

    def login(self, username: str, password: str) -> Session:
        """
        Check credentials and issue a new session.

        Expired sessions are swept first so the store stays bounded by the
        number of logins within one validity window.

        Raises:
            InvalidCredentialsError: If the username or password is wrong
        """
        if not self._credentials_match(username, password):
            logger.warning(f"Failed login attempt for user '{username}'")
            raise InvalidCredentialsError("Invalid username or password")

        self.purge_expired()

        issued_at = self._now()
        session = Session(
            token=secrets.token_urlsafe(32),
            username=username,
            issued_at=issued_at,
            expires_at=issued_at + self._session_ttl,
        )
        with self._lock:
            self._sessions[session.token] = session

        logger.info(f"Issued session for '{username}' expiring {session.expires_at.isoformat()}")
        return session

    def validate(self, token: Optional[str]) -> Session:
        """
        Return the live session for a token.

        Expired sessions are removed on sight.

        Raises:
            InvalidSessionError: If the token is missing, unknown or revoked
            SessionExpiredError: If the session has reached its expiry time
        """
        if not token:
            raise InvalidSessionError("Missing session token")

        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise InvalidSessionError("Unknown or revoked session token")
            if session.is_expired(self._now()):
                del self._sessions[token]
                logger.info(f"Session for '{session.username}' expired")
                raise SessionExpiredError("Session has expired")
        return session

    def logout(self, token: str) -> bool:
        """Revoke a session. Returns False if the token was not active."""
        with self._lock:
            session = self._sessions.pop(token, None)
        if session is None:
            return False
        logger.info(f"Revoked session for '{session.username}'")
        return True

    def purge_expired(self) -> int:
        """Drop expired sessions; returns how many were removed."""
        now = self._now()
        with self._lock:
            expired = [token for token, session in self._sessions.items() if session.is_expired(now)]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.debug(f"Purged {len(expired)} expired sessions")
        return len(expired)

    @property
    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = [
    "DEFAULT_SESSION_TTL",
    "AuthError",
    "InvalidCredentialsError",
    "InvalidSessionError",
    "SessionExpiredError",
    "CredentialService",
]
