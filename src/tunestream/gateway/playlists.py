"""
Playlist endpoints.

Playlists belong to the logged-in user, so every call carries the credential.
"""

from typing import Any

from loguru import logger

from tunestream.domain.library.models import Playlist

from .client import GatewayClient
from .schemas import to_playlist, to_playlists

PLAYLISTS_PATH = "/api/playlists"


def list_my_playlists(client: GatewayClient) -> list[Playlist]:
    """Fetch the logged-in user's playlists."""
    data = client.get(f"{PLAYLISTS_PATH}/my", protected=True)
    playlists = to_playlists(data, client.base_url)
    logger.info(f"Fetched {len(playlists)} playlists")
    return playlists


def create_playlist(client: GatewayClient, fields: dict[str, Any]) -> Playlist:
    """Create a playlist. Playlists are public unless ``isPublic`` says otherwise."""
    body = {**fields}
    if body.get("isPublic") is None:
        body["isPublic"] = True
    data = client.post(PLAYLISTS_PATH, json=body, protected=True)
    return to_playlist(data or {}, client.base_url)


def update_playlist(
    client: GatewayClient, playlist_id: str, changes: dict[str, Any]
) -> Playlist:
    data = client.put(f"{PLAYLISTS_PATH}/{playlist_id}", json=changes, protected=True)
    playlist = to_playlist(data or {}, client.base_url)
    if playlist.id.startswith("temp-"):
        playlist = playlist._replace(id=playlist_id)
    return playlist


def delete_playlist(client: GatewayClient, playlist_id: str) -> None:
    client.delete(f"{PLAYLISTS_PATH}/{playlist_id}", protected=True)
    logger.info(f"Deleted playlist {playlist_id}")
