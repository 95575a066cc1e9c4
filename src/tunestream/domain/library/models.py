"""
Music library domain models.

Canonical shapes for everything fetched from the music API. Records are
normalized into these at the gateway edge (see tunestream.gateway.schemas).
"""

from typing import NamedTuple, Optional, Union


class Track(NamedTuple):
    """Represents a streamable song.

    Immutable once loaded; an edit replaces the whole record.
    """
    id: str
    title: str
    artist: str = "Unknown Artist"
    album: str = "Unknown Album"
    cover_url: Optional[str] = None
    audio_url: Optional[str] = None  # Absolute URL of the playable media
    duration: Optional[float] = None  # in seconds

    @property
    def playable(self) -> bool:
        """Whether the track has media that can be streamed."""
        return bool(self.audio_url)


# Playlist and album membership arrives either as embedded records or as bare ids
TrackRef = Union[Track, str]


class Album(NamedTuple):
    """An album and its ordered songs."""
    id: str
    title: str
    artist: str = "Unknown Artist"
    cover_url: Optional[str] = None
    year: Optional[int] = None
    songs: tuple[TrackRef, ...] = ()


class Playlist(NamedTuple):
    """A user playlist and its ordered songs."""
    id: str
    name: str
    description: str = ""
    is_public: bool = True
    owner_id: Optional[str] = None
    songs: tuple[TrackRef, ...] = ()

    @property
    def track_ids(self) -> list[str]:
        """Ids of the member songs, in playlist order."""
        return [song.id if isinstance(song, Track) else song for song in self.songs]


class User(NamedTuple):
    """The logged-in user's profile."""
    id: str
    username: str
    email: str
    avatar_url: Optional[str] = None
