"""
Persisted session storage.

A small JSON key/value file (``token``, ``user``) that survives restarts and
can be edited by other tunestream processes running as the same user.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from loguru import logger


class SessionStorage:
    """Key/value access to the session file."""

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> dict[str, Any]:
        """Load every stored key. A missing or unreadable file reads as empty."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read session file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Session file {self.path} does not hold an object")
            return {}
        return data

    def get(self, key: str) -> Optional[Any]:
        return self.read().get(key)

    def write(self, values: dict[str, Any]) -> None:
        """Replace the file contents atomically with owner-only permissions."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=".session-", suffix=".json", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(values, f, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def set(self, **values: Any) -> None:
        """Store one or more keys, keeping the others."""
        data = self.read()
        data.update(values)
        self.write(data)

    def remove(self, *keys: str) -> None:
        data = self.read()
        if not any(key in data for key in keys):
            return
        for key in keys:
            data.pop(key, None)
        self.write(data)
