"""Session lifecycle: login, validation and logout of opaque bearer tokens."""

import secrets
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import structlog
from cachetools import TTLCache

from docviewer.auth.models import Principal, Session
from docviewer.auth.users import UserStore, hash_password, verify_password
from docviewer.errors import InvalidCredentials, SessionInvalid, StorageUnavailable

logger = structlog.get_logger()

# 32 bytes -> 256 bits of entropy, 43 url-safe characters
TOKEN_BYTES = 32
DEFAULT_SESSION_TTL = 24 * 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Compared against when the username is unknown so both failure paths cost one bcrypt check
    return hash_password(secrets.token_urlsafe(16))


def token_prefix(token: str) -> str:
    """Loggable prefix of a token."""
    return token[:8]


class SessionAuthority:
    """Issues, validates and revokes sessions.

    Sessions live for a fixed window from login; validating a session does not
    extend it. Expired sessions are rejected even if the cache has not evicted
    them yet. The table is guarded by a lock held only for the table operation
    itself, not across user store lookups.
    """

    def __init__(
        self,
        user_store: UserStore,
        ttl: int = DEFAULT_SESSION_TTL,
        maxsize: int = 10000,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = user_store
        self._ttl = timedelta(seconds=ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: TTLCache[str, Session] = TTLCache(
            maxsize=maxsize,
            ttl=ttl,
            timer=lambda: self._clock().timestamp(),
        )
        logger.info("session_authority_initialized", ttl=ttl, maxsize=maxsize)

    def login(self, username: str, password: str) -> Session:
        """Verify credentials and open a new session.

        Raises:
            InvalidCredentials: unknown user, inactive user or wrong password.
                The three cases are indistinguishable to the caller.
            StorageUnavailable: the session table is full of live sessions.
        """
        user = self._users.find_user(username)
        if user is None:
            verify_password(password, _dummy_hash())
            logger.warning("login_failed", username=username, reason="unknown_user")
            raise InvalidCredentials()

        password_ok = verify_password(password, user.password_hash)
        if not password_ok or not user.is_active:
            reason = "wrong_password" if not password_ok else "inactive_user"
            logger.warning("login_failed", username=username, reason=reason)
            raise InvalidCredentials()

        now = self._clock()
        session = Session(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            user_id=user.user_id,
            created_at=now,
            expires_at=now + self._ttl,
        )
        with self._lock:
            # A full table refuses new logins; live sessions are never evicted
            self._sessions.expire()
            if len(self._sessions) >= self._sessions.maxsize:
                logger.warning("session_table_full", maxsize=self._sessions.maxsize)
                raise StorageUnavailable("Too many active sessions")
            self._sessions[session.token] = session

        logger.info(
            "session_created",
            user_id=user.user_id,
            token=token_prefix(session.token),
            expires_at=session.expires_at.isoformat(),
        )
        return session

    def _get_session(self, token: str) -> Session | None:
        with self._lock:
            return self._sessions.get(token)

    def validate(self, token: str | None) -> Principal:
        """Resolve a token to the principal it was issued for.

        Raises:
            SessionInvalid: token missing, unknown, expired, revoked, or its
                user no longer exists or was deactivated.
        """
        if not token:
            raise SessionInvalid()

        session = self._get_session(token)
        if session is None:
            logger.debug("session_unknown", token=token_prefix(token))
            raise SessionInvalid()

        if session.is_expired(self._clock()):
            self._drop(token)
            logger.info("session_expired", user_id=session.user_id, token=token_prefix(token))
            raise SessionInvalid()

        user = self._users.get_user(session.user_id)
        if user is None or not user.is_active:
            self._drop(token)
            logger.warning("session_user_unavailable", user_id=session.user_id)
            raise SessionInvalid()

        return Principal.from_user(user)

    def logout(self, token: str | None) -> None:
        """Revoke a session. Unknown or expired tokens are a no-op."""
        if not token:
            return
        if self._drop(token):
            logger.info("session_revoked", token=token_prefix(token))

    def _drop(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
