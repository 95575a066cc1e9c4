"""
Session store - the single in-memory owner of the login session.

Built once by the application and handed to whatever needs it; there is no
module-level session. Persisted state lives in SessionStorage, and changes
made to it by another process are fed back in through
``handle_storage_change``.
"""

from typing import Any, Callable, NamedTuple, Optional

from loguru import logger

from tunestream.core.output import log
from tunestream.domain.library.models import User
from tunestream.gateway import auth
from tunestream.gateway.client import GatewayClient
from tunestream.gateway.exceptions import MalformedResponseError
from tunestream.gateway.schemas import to_user, user_to_record

from .storage import SessionStorage

TOKEN_KEY = "token"
USER_KEY = "user"
RELEVANT_KEYS = (USER_KEY, TOKEN_KEY)


class Session(NamedTuple):
    """A logged-in user and their bearer credential."""
    user: User
    token: str


SessionListener = Callable[[Optional[Session]], None]


class SessionStore:
    """Owns the current Session and keeps it in step with storage."""

    def __init__(self, storage: SessionStorage, client: GatewayClient):
        self.storage = storage
        self.client = client
        self._listeners: list[SessionListener] = []
        self._session: Optional[Session] = self._read_session()
        if self._session:
            logger.info(f"Restored session for {self._session.user.email}")

    # Accessors

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def user(self) -> Optional[User]:
        return self._session.user if self._session else None

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    # Observation

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` with the new session (or None) on every change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Optional[Session]) -> None:
        if session == self._session:
            return
        self._session = session
        for listener in list(self._listeners):
            listener(session)

    def _read_session(self) -> Optional[Session]:
        data = self.storage.read()
        user_data = data.get(USER_KEY)
        token = data.get(TOKEN_KEY)

        if user_data is None:
            return None

        try:
            user = to_user(user_data)
        except MalformedResponseError as e:
            logger.error(f"Failed to parse stored user: {e}")
            self.storage.remove(USER_KEY)
            return None

        if not token:
            logger.debug("Stored user has no token; treating session as absent")
            return None

        return Session(user=user, token=token)

    # Auth operations

    def register(self, username: str, email: str, password: str) -> str:
        """Create an account without logging in.

        Raises:
            AuthenticationError: With a readable reason
        """
        return auth.register(self.client, username, email, password)

    def login(self, email: str, password: str) -> User:
        """Log in and persist the session.

        Raises:
            AuthenticationError: With a readable reason; the current session
                is left exactly as it was
        """
        token, user = auth.login(self.client, email, password)
        self.storage.set(**{TOKEN_KEY: token, USER_KEY: user_to_record(user)})
        self._set(Session(user=user, token=token))
        return user

    def update_profile(self, changes: dict[str, Any]) -> User:
        """Push profile edits and store the updated user.

        Raises:
            AuthenticationError: Not logged in, or the update failed
        """
        user = auth.update_profile(self.client, self.token, changes)
        self.storage.set(**{USER_KEY: user_to_record(user)})
        if self._session:
            self._set(self._session._replace(user=user))
        return user

    def logout(self) -> None:
        self.storage.remove(USER_KEY, TOKEN_KEY)
        self._set(None)
        logger.info("Logged out")

    def invalidate(self) -> None:
        """Drop a session whose credential the API rejected."""
        if self._session is None:
            return
        log("Your session has expired, please log in again", "warning")
        self.logout()

    # Cross-process sync

    def handle_storage_change(self, key: Optional[str]) -> None:
        """Reflect a change another process made to the session file.

        Args:
            key: The stored key that changed; only ``user`` and ``token``
                are relevant
        """
        if key not in RELEVANT_KEYS:
            return
        logger.debug(f"Session key {key!r} changed externally")
        self._set(self._read_session())
