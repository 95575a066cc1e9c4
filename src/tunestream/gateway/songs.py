"""
Song endpoints.

Handles listing, uploading, editing and deleting songs.
"""

from pathlib import Path
from typing import Any, Optional

from loguru import logger

from tunestream.domain.library.models import Track

from .client import GatewayClient
from .schemas import to_track, to_tracks

SONGS_PATH = "/api/songs"


def list_songs(client: GatewayClient) -> list[Track]:
    """Fetch every song in the library."""
    data = client.get(SONGS_PATH)
    tracks = to_tracks(data, client.base_url) if data is not None else []
    logger.info(f"Fetched {len(tracks)} songs")
    return tracks


def upload_song(
    client: GatewayClient,
    audio_file: Path,
    cover_file: Optional[Path] = None,
    artist: Optional[str] = None,
    album: Optional[str] = None,
) -> list[Track]:
    """Upload a song file with optional cover art.

    Args:
        client: Gateway client
        audio_file: Audio file to upload (required)
        cover_file: Optional cover image
        artist: Artist name (defaults to "Unknown Artist")
        album: Album name (defaults to "Unknown Album")

    Returns:
        The created songs (the API may answer with one record or several)
    """
    form = {
        "artist": artist or "Unknown Artist",
        "album": album or "Unknown Album",
    }

    with open(audio_file, "rb") as audio:
        files: dict[str, Any] = {"songs": (audio_file.name, audio)}
        if cover_file is None:
            data = client.post(f"{SONGS_PATH}/upload", data=form, files=files)
        else:
            with open(cover_file, "rb") as cover:
                files["cover"] = (cover_file.name, cover)
                data = client.post(f"{SONGS_PATH}/upload", data=form, files=files)

    tracks = to_tracks(data, client.base_url) if data is not None else []
    logger.info(f"Uploaded {audio_file.name}: {len(tracks)} song(s) created")
    return tracks


def update_song(client: GatewayClient, song_id: str, changes: dict[str, Any]) -> Track:
    """Update song fields and return the replacement record.

    A response without an id keeps the id we asked to update.
    """
    data = client.put(f"{SONGS_PATH}/{song_id}", json=changes)
    track = to_track(data or {}, client.base_url)
    if track.id.startswith("temp-"):
        track = track._replace(id=song_id)
    return track


def delete_song(client: GatewayClient, song_id: str) -> None:
    """Delete a song."""
    client.delete(f"{SONGS_PATH}/{song_id}")
    logger.info(f"Deleted song {song_id}")
