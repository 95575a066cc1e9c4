"""Normalization boundary between API records and domain models.

The API is loose about record shapes: ids arrive as ``_id`` or ``id``, media
as ``audioUrl`` or ``url``, covers as ``coverUrl`` or ``cover``, and fields
are sometimes missing. The record models below accept every variant; the
``to_*`` functions turn them into the canonical models once, at the edge.
"""

import time
from typing import Any, Optional, Union
from urllib.parse import urljoin

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from tunestream.domain.library.models import Album, Playlist, Track, TrackRef, User

from .exceptions import MalformedResponseError

IdValue = Union[str, int]


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TrackRecord(_Record):
    id: Optional[IdValue] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = Field(default=None, validation_alias=AliasChoices("title", "name"))
    artist: Optional[str] = None
    album: Optional[str] = None
    cover_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("coverUrl", "cover", "cover_url")
    )
    audio_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("audioUrl", "url", "audio_url")
    )
    duration: Optional[float] = None


class AlbumRecord(_Record):
    id: Optional[IdValue] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = Field(default=None, validation_alias=AliasChoices("title", "name"))
    artist: Optional[str] = None
    cover_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("coverUrl", "cover", "cover_url")
    )
    year: Optional[int] = None
    songs: list[Union[dict[str, Any], IdValue]] = Field(
        default_factory=list, validation_alias=AliasChoices("songs", "tracks")
    )


class PlaylistRecord(_Record):
    id: Optional[IdValue] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "title"))
    description: Optional[str] = None
    is_public: bool = Field(default=True, validation_alias=AliasChoices("isPublic", "is_public"))
    owner: Optional[Union[dict[str, Any], IdValue]] = Field(
        default=None, validation_alias=AliasChoices("user", "owner", "userId")
    )
    songs: list[Union[dict[str, Any], IdValue]] = Field(
        default_factory=list, validation_alias=AliasChoices("songs", "tracks")
    )


class UserRecord(_Record):
    id: Optional[IdValue] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    username: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("username", "name")
    )
    email: Optional[str] = None
    avatar_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("avatarUrl", "avatar", "avatar_url")
    )


def temporary_id(index: int = 0) -> str:
    """Placeholder id for records the API returned without one."""
    return f"temp-{int(time.time() * 1000)}-{index}"


def resolve_media_url(reference: Optional[str], base_url: str) -> Optional[str]:
    """Make a server-relative media/cover reference absolute.

    Args:
        reference: ``/uploads/song.mp3``, a full URL, or None
        base_url: API base URL, e.g. ``http://localhost:5000``

    Returns:
        Absolute URL, or None when there is no reference
    """
    if not reference:
        return None
    if reference.startswith(("http://", "https://")):
        return reference
    return urljoin(base_url.rstrip("/") + "/", reference.lstrip("/"))


def _validate(model: type[_Record], data: Any) -> Any:
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected an object for {model.__name__}, got {type(data).__name__}"
        )
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Invalid {model.__name__}: {e}") from e


def to_track(data: Any, base_url: str, index: int = 0) -> Track:
    """Map one inbound song record to a Track."""
    record = _validate(TrackRecord, data)
    return Track(
        id=str(record.id) if record.id is not None else temporary_id(index),
        title=record.title or "Untitled",
        artist=record.artist or "Unknown Artist",
        album=record.album or "Unknown Album",
        cover_url=resolve_media_url(record.cover_url, base_url),
        audio_url=resolve_media_url(record.audio_url, base_url),
        duration=record.duration,
    )


def to_tracks(data: Any, base_url: str) -> list[Track]:
    """Map a single record or a list of records to Tracks."""
    items = data if isinstance(data, list) else [data]
    return [to_track(item, base_url, index) for index, item in enumerate(items)]


def _to_refs(songs: list, base_url: str) -> tuple[TrackRef, ...]:
    refs: list[TrackRef] = []
    for index, song in enumerate(songs):
        if isinstance(song, dict):
            refs.append(to_track(song, base_url, index))
        else:
            refs.append(str(song))
    return tuple(refs)


def to_album(data: Any, base_url: str, index: int = 0) -> Album:
    """Map one inbound album record to an Album."""
    record = _validate(AlbumRecord, data)
    return Album(
        id=str(record.id) if record.id is not None else temporary_id(index),
        title=record.title or "Untitled",
        artist=record.artist or "Unknown Artist",
        cover_url=resolve_media_url(record.cover_url, base_url),
        year=record.year,
        songs=_to_refs(record.songs, base_url),
    )


def to_playlist(data: Any, base_url: str, index: int = 0) -> Playlist:
    """Map one inbound playlist record to a Playlist."""
    record = _validate(PlaylistRecord, data)

    owner_id = None
    if isinstance(record.owner, dict):
        owner_id = record.owner.get("_id") or record.owner.get("id")
    elif record.owner is not None:
        owner_id = record.owner

    return Playlist(
        id=str(record.id) if record.id is not None else temporary_id(index),
        name=record.name or "Untitled Playlist",
        description=record.description or "",
        is_public=record.is_public,
        owner_id=str(owner_id) if owner_id is not None else None,
        songs=_to_refs(record.songs, base_url),
    )


def to_playlists(data: Any, base_url: str) -> list[Playlist]:
    """Map a playlist listing, either a bare list or ``{"playlists": [...]}``."""
    if isinstance(data, dict) and isinstance(data.get("playlists"), list):
        data = data["playlists"]
    if not isinstance(data, list):
        logger.warning(f"Unexpected playlist response format: {type(data).__name__}")
        return []
    return [to_playlist(item, base_url, index) for index, item in enumerate(data)]


def to_user(data: Any) -> User:
    """Map a user record to a User."""
    record = _validate(UserRecord, data)
    if record.id is None:
        raise MalformedResponseError("User record has no id")
    return User(
        id=str(record.id),
        username=record.username or "",
        email=record.email or "",
        avatar_url=record.avatar_url,
    )


def user_to_record(user: User) -> dict[str, Any]:
    """Serialize a User in the API's own record shape (for session storage)."""
    record: dict[str, Any] = {
        "_id": user.id,
        "username": user.username,
        "email": user.email,
    }
    if user.avatar_url:
        record["avatarUrl"] = user.avatar_url
    return record
