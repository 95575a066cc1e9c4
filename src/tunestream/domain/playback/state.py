"""
Playback state for tunestream

Immutable value types for the queue and the player; the coordinator swaps
in new instances with ``_replace`` instead of mutating.
"""

from enum import Enum
from typing import NamedTuple, Optional

from tunestream.domain.library.models import Track


class PlaybackStatus(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class RepeatMode(str, Enum):
    NONE = "none"
    ALL = "all"
    ONE = "one"

    def cycled(self) -> "RepeatMode":
        """Next mode in the none -> all -> one -> none rotation."""
        return _REPEAT_CYCLE[self]


_REPEAT_CYCLE = {
    RepeatMode.NONE: RepeatMode.ALL,
    RepeatMode.ALL: RepeatMode.ONE,
    RepeatMode.ONE: RepeatMode.NONE,
}


class Queue(NamedTuple):
    """Tracks eligible for next/previous navigation.

    ``index`` is -1 when the queue is empty, otherwise a valid position.
    Position is 0-indexed internally; add 1 when showing it to users.
    """
    tracks: tuple[Track, ...] = ()
    index: int = -1

    @property
    def current(self) -> Optional[Track]:
        if 0 <= self.index < len(self.tracks):
            return self.tracks[self.index]
        return None

    @property
    def is_empty(self) -> bool:
        return not self.tracks

    @property
    def is_last(self) -> bool:
        return self.index == len(self.tracks) - 1

    def at(self, index: int) -> "Queue":
        """Same tracks, new position (clamped into range)."""
        if not self.tracks:
            return Queue()
        return self._replace(index=max(0, min(index, len(self.tracks) - 1)))


class PlaybackState(NamedTuple):
    """Immutable player state."""
    status: PlaybackStatus = PlaybackStatus.STOPPED
    position: float = 0.0  # seconds into the current track
    duration: float = 0.0  # 0 until the media reports it
    volume: float = 1.0  # 0.0 - 1.0, kept while muted
    muted: bool = False
    shuffle: bool = False
    repeat_mode: RepeatMode = RepeatMode.NONE

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def effective_volume(self) -> float:
        """Level actually sent to the audio output."""
        return 0.0 if self.muted else self.volume


class Preferences(NamedTuple):
    """Listening preferences toggled from the player."""
    high_quality: bool = False
    show_unplayable: bool = True


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def clamp_position(seconds: float, duration: float) -> float:
    """Clamp a seek target to [0, duration]; no upper bound while duration is unknown."""
    if duration > 0:
        return clamp(seconds, 0.0, duration)
    return max(0.0, seconds)


def format_time(seconds: Optional[float]) -> str:
    """Format time in seconds as M:SS."""
    if seconds is None or seconds != seconds or seconds < 0:  # None, NaN, negative
        return "0:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
