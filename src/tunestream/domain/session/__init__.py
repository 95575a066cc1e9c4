"""Session domain - persisted login state.

- storage: JSON key/value file that survives restarts
- store: the in-memory Session owner (login, logout, profile updates)
- watcher: reflects changes made by other processes
"""

from .storage import SessionStorage
from .store import RELEVANT_KEYS, Session, SessionStore
from .watcher import SessionWatcher

__all__ = [
    "RELEVANT_KEYS",
    "Session",
    "SessionStorage",
    "SessionStore",
    "SessionWatcher",
]
