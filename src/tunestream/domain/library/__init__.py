"""Library domain - songs, albums, playlists and the stores that cache them.

The stores live in ``tunestream.domain.library.stores`` and are imported
from there directly; this package only re-exports the models so the gateway
can depend on them without pulling the stores in.
"""

from .models import Album, Playlist, Track, TrackRef, User

__all__ = [
    "Album",
    "Playlist",
    "Track",
    "TrackRef",
    "User",
]
