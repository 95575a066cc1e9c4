"""
In-memory stores for songs, albums and playlists.

Each store caches one collection fetched from the API and pushes edits back
through the gateway. A failed call never raises out of a store: the error is
logged, kept on ``store.error``, shown to the user as a notice, and the
cached collection is left as it was.
"""

from pathlib import Path
from typing import Any, Optional

from tunestream.core.output import log
from tunestream.gateway import albums as albums_api
from tunestream.gateway import playlists as playlists_api
from tunestream.gateway import songs as songs_api
from tunestream.gateway.client import GatewayClient
from tunestream.gateway.exceptions import GatewayError

from .models import Album, Playlist, Track


def _matches(query: str, *fields: Optional[str]) -> bool:
    needle = query.strip().lower()
    return any(needle in (field or "").lower() for field in fields)


class _Store:
    """Shared error reporting for the collection stores."""

    def __init__(self, client: GatewayClient):
        self.client = client
        self.error: Optional[str] = None
        self.loading = False

    def _failed(self, action: str, error: GatewayError) -> None:
        self.error = str(error)
        log(f"Failed to {action}: {error}", "warning")

    def _succeeded(self) -> None:
        self.error = None


class SongStore(_Store):
    """Cached song library. Also serves as the player's track catalog."""

    def __init__(self, client: GatewayClient):
        super().__init__(client)
        self._songs: list[Track] = []

    @property
    def songs(self) -> tuple[Track, ...]:
        return tuple(self._songs)

    def get(self, song_id: str) -> Optional[Track]:
        for song in self._songs:
            if song.id == song_id:
                return song
        return None

    def fetch(self) -> bool:
        """Reload the whole library from the API."""
        self.loading = True
        try:
            self._songs = songs_api.list_songs(self.client)
        except GatewayError as e:
            self._failed("fetch songs", e)
            return False
        finally:
            self.loading = False
        self._succeeded()
        return True

    def upload(
        self,
        audio_file: Path,
        cover_file: Optional[Path] = None,
        artist: Optional[str] = None,
        album: Optional[str] = None,
    ) -> list[Track]:
        """Upload a song and append whatever the API created.

        Returns:
            The new songs, or an empty list on failure
        """
        try:
            created = songs_api.upload_song(
                self.client, audio_file, cover_file, artist=artist, album=album
            )
        except GatewayError as e:
            self._failed("add song", e)
            return []
        except OSError as e:
            self._failed("add song", GatewayError(f"Cannot read {e.filename}: {e.strerror}"))
            return []
        self._songs.extend(created)
        self._succeeded()
        return created

    def update(self, song_id: str, changes: dict[str, Any]) -> Optional[Track]:
        try:
            updated = songs_api.update_song(self.client, song_id, changes)
        except GatewayError as e:
            self._failed("update song", e)
            return None
        self._songs = [updated if s.id == song_id else s for s in self._songs]
        self._succeeded()
        return updated

    def delete(self, song_id: str) -> bool:
        try:
            songs_api.delete_song(self.client, song_id)
        except GatewayError as e:
            self._failed("delete song", e)
            return False
        self._songs = [s for s in self._songs if s.id != song_id]
        self._succeeded()
        return True

    def search(self, query: str) -> list[Track]:
        """Case-insensitive match on title, artist or album."""
        if not query.strip():
            return list(self._songs)
        return [s for s in self._songs if _matches(query, s.title, s.artist, s.album)]

    def visible(self, show_unplayable: bool = True) -> list[Track]:
        """Songs to list, optionally hiding ones with no streamable media."""
        if show_unplayable:
            return list(self._songs)
        return [s for s in self._songs if s.playable]


class AlbumStore(_Store):
    def __init__(self, client: GatewayClient):
        super().__init__(client)
        self._albums: list[Album] = []

    @property
    def albums(self) -> tuple[Album, ...]:
        return tuple(self._albums)

    def get(self, album_id: str) -> Optional[Album]:
        return next((a for a in self._albums if a.id == album_id), None)

    def fetch(self) -> bool:
        self.loading = True
        try:
            self._albums = albums_api.list_albums(self.client)
        except GatewayError as e:
            self._failed("fetch albums", e)
            return False
        finally:
            self.loading = False
        self._succeeded()
        return True

    def add(self, fields: dict[str, Any]) -> Optional[Album]:
        try:
            album = albums_api.create_album(self.client, fields)
        except GatewayError as e:
            self._failed("create album", e)
            return None
        self._albums.append(album)
        self._succeeded()
        return album

    def update(self, album_id: str, changes: dict[str, Any]) -> Optional[Album]:
        try:
            updated = albums_api.update_album(self.client, album_id, changes)
        except GatewayError as e:
            self._failed("update album", e)
            return None
        self._albums = [updated if a.id == album_id else a for a in self._albums]
        self._succeeded()
        return updated

    def delete(self, album_id: str) -> bool:
        try:
            albums_api.delete_album(self.client, album_id)
        except GatewayError as e:
            self._failed("delete album", e)
            return False
        self._albums = [a for a in self._albums if a.id != album_id]
        self._succeeded()
        return True

    def search(self, query: str) -> list[Album]:
        if not query.strip():
            return list(self._albums)
        return [a for a in self._albums if _matches(query, a.title, a.artist)]


class PlaylistStore(_Store):
    """The logged-in user's playlists."""

    def __init__(self, client: GatewayClient):
        super().__init__(client)
        self._playlists: list[Playlist] = []

    @property
    def playlists(self) -> tuple[Playlist, ...]:
        return tuple(self._playlists)

    def get(self, playlist_id: str) -> Optional[Playlist]:
        return next((p for p in self._playlists if p.id == playlist_id), None)

    def find_by_name(self, name: str) -> Optional[Playlist]:
        """Exact, case-insensitive name lookup."""
        wanted = name.strip().lower()
        return next((p for p in self._playlists if p.name.lower() == wanted), None)

    def fetch(self) -> bool:
        """Reload the user's playlists. A failure keeps the cached list."""
        self.loading = True
        try:
            self._playlists = playlists_api.list_my_playlists(self.client)
        except GatewayError as e:
            self._failed("fetch playlists", e)
            return False
        finally:
            self.loading = False
        self._succeeded()
        return True

    def add(self, fields: dict[str, Any]) -> Optional[Playlist]:
        try:
            playlist = playlists_api.create_playlist(self.client, fields)
        except GatewayError as e:
            self._failed("create playlist", e)
            return None
        self._playlists.append(playlist)
        self._succeeded()
        return playlist

    def update(self, playlist_id: str, changes: dict[str, Any]) -> Optional[Playlist]:
        try:
            updated = playlists_api.update_playlist(self.client, playlist_id, changes)
        except GatewayError as e:
            self._failed("update playlist", e)
            return None
        self._playlists = [
            updated if p.id == playlist_id else p for p in self._playlists
        ]
        self._succeeded()
        return updated

    def delete(self, playlist_id: str) -> bool:
        try:
            playlists_api.delete_playlist(self.client, playlist_id)
        except GatewayError as e:
            self._failed("delete playlist", e)
            return False
        self._playlists = [p for p in self._playlists if p.id != playlist_id]
        self._succeeded()
        return True

    def search(self, query: str) -> list[Playlist]:
        """Case-insensitive match on playlist name."""
        if not query.strip():
            return list(self._playlists)
        return [p for p in self._playlists if _matches(query, p.name)]

    def clear(self) -> None:
        """Forget cached playlists (after logout)."""
        self._playlists = []
