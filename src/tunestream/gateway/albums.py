"""Album endpoints."""

from typing import Any

from tunestream.domain.library.models import Album

from .client import GatewayClient
from .exceptions import MalformedResponseError
from .schemas import to_album

ALBUMS_PATH = "/api/albums"


def list_albums(client: GatewayClient) -> list[Album]:
    data = client.get(ALBUMS_PATH)
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedResponseError("Album listing is not a list")
    return [to_album(item, client.base_url, index) for index, item in enumerate(data)]


def create_album(client: GatewayClient, fields: dict[str, Any]) -> Album:
    data = client.post(ALBUMS_PATH, json=fields)
    return to_album(data or {}, client.base_url)


def update_album(client: GatewayClient, album_id: str, changes: dict[str, Any]) -> Album:
    data = client.put(f"{ALBUMS_PATH}/{album_id}", json=changes)
    album = to_album(data or {}, client.base_url)
    if album.id.startswith("temp-"):
        album = album._replace(id=album_id)
    return album


def delete_album(client: GatewayClient, album_id: str) -> None:
    client.delete(f"{ALBUMS_PATH}/{album_id}")
