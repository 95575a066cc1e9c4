"""
Audio output handle contract.

The coordinator drives exactly one handle. A handle plays one media source
at a time and reports what happens to it through events:

- ``timeupdate``: playback position moved
- ``loadedmetadata``: duration of the current source became known
- ``ended``: the current source played to its natural end
- ``error``: the current source failed to load or play
"""

from typing import Any, Callable, Optional, Protocol

from loguru import logger

TIMEUPDATE = "timeupdate"
LOADEDMETADATA = "loadedmetadata"
ENDED = "ended"
ERROR = "error"

EVENTS = (TIMEUPDATE, LOADEDMETADATA, ENDED, ERROR)

AudioListener = Callable[..., None]


class MediaError(Exception):
    """Raised when a media source cannot be loaded or played."""

    pass


class AudioOutput(Protocol):
    """What the coordinator needs from an audio output."""

    source: Optional[str]
    current_time: float
    volume: float

    @property
    def duration(self) -> float: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def add_listener(self, event: str, listener: AudioListener) -> None: ...

    def remove_listener(self, event: str, listener: AudioListener) -> None: ...


class AudioEvents:
    """Listener bookkeeping shared by audio output implementations."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[AudioListener]] = {event: [] for event in EVENTS}

    def add_listener(self, event: str, listener: AudioListener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown audio event: {event}")
        self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: AudioListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(*args)
            except Exception:
                logger.exception(f"Audio listener for {event!r} failed")
