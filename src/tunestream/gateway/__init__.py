"""Remote data gateway - client for the music API.

Endpoint modules are plain functions taking a GatewayClient:
- songs: list/upload/update/delete
- albums: list/create/update/delete
- playlists: the user's playlists, list/create/update/delete
- auth: register, login, profile update
"""

from . import albums, auth, playlists, songs
from .client import GatewayClient
from .exceptions import (
    AuthenticationError,
    GatewayError,
    MalformedResponseError,
    UnauthorizedError,
)

__all__ = [
    "albums",
    "auth",
    "playlists",
    "songs",
    "GatewayClient",
    "AuthenticationError",
    "GatewayError",
    "MalformedResponseError",
    "UnauthorizedError",
]
