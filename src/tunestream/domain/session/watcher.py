"""
Watch the session file for changes made by other processes.

The watchdog observer thread only timestamps events; ``poll()`` runs on the
caller's thread, diffs the stored keys and hands each changed key to the
SessionStore, so the store is only ever mutated from one thread.
"""

import threading
import time
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .storage import SessionStorage
from .store import SessionStore


class SessionFileHandler(FileSystemEventHandler):
    """Records debounced changes to one file."""

    def __init__(self, path: Path, debounce_ms: int = 100):
        """
        Initialize session file handler.

        Args:
            path: The session file to watch
            debounce_ms: Milliseconds to wait after last change before reporting
        """
        self.path = str(path)
        self.debounce_seconds = debounce_ms / 1000.0
        self._pending_since: Optional[float] = None
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Handle created/modified/deleted/moved events for the session file."""
        if event.is_directory:
            return
        paths = {str(event.src_path), str(getattr(event, "dest_path", "") or "")}
        if self.path not in paths:
            return
        with self._lock:
            self._pending_since = time.time()

    def check_pending_changes(self) -> bool:
        """Whether a change has settled and is ready to process."""
        with self._lock:
            if self._pending_since is None:
                return False
            if time.time() - self._pending_since < self.debounce_seconds:
                return False
            self._pending_since = None
            return True


class SessionWatcher:
    """Feeds external session file changes into the SessionStore."""

    def __init__(self, storage: SessionStorage, store: SessionStore, debounce_ms: int = 100):
        self.storage = storage
        self.store = store
        self.handler = SessionFileHandler(storage.path, debounce_ms)
        self._observer = None
        self._snapshot: dict[str, Any] = {}

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start watching the session file's directory."""
        if self._observer is not None:
            return

        self.storage.path.parent.mkdir(parents=True, exist_ok=True)
        self._snapshot = self.storage.read()

        observer = Observer()
        observer.schedule(self.handler, str(self.storage.path.parent), recursive=False)
        observer.start()
        self._observer = observer
        logger.info(f"Watching session file: {self.storage.path}")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._observer = None
        logger.debug("Session watcher stopped")

    def poll(self) -> list[str]:
        """Dispatch settled changes. Call regularly from the main loop.

        Returns:
            Keys that changed since the last dispatch
        """
        if not self.handler.check_pending_changes():
            return []
        return self.dispatch_changes()

    def dispatch_changes(self) -> list[str]:
        """Diff storage against the last snapshot and notify the store per key."""
        current = self.storage.read()
        changed = sorted(
            key
            for key in set(self._snapshot) | set(current)
            if self._snapshot.get(key) != current.get(key)
        )
        self._snapshot = current

        for key in changed:
            self.store.handle_storage_change(key)
        return changed
