"""Playback domain - queue, transport state and audio output.

This domain handles:
- The playback coordinator (queue, play/pause, next/previous, shuffle, repeat)
- Volume and mute
- Liked songs
- The audio output contract and its MPV implementation
"""

from .audio import AudioEvents, AudioOutput, MediaError
from .coordinator import PlaybackCoordinator, TrackCatalog
from .likes import LikeSet
from .mpv import MpvAudioOutput, check_mpv_available
from .state import (
    PlaybackState,
    PlaybackStatus,
    Preferences,
    Queue,
    RepeatMode,
    format_time,
)

__all__ = [
    "AudioEvents",
    "AudioOutput",
    "MediaError",
    "PlaybackCoordinator",
    "TrackCatalog",
    "LikeSet",
    "MpvAudioOutput",
    "check_mpv_available",
    "PlaybackState",
    "PlaybackStatus",
    "Preferences",
    "Queue",
    "RepeatMode",
    "format_time",
]
