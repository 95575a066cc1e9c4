"""Tests for normalizing API records into domain models."""

import re

import pytest

from tunestream.domain.library.models import Track
from tunestream.gateway.exceptions import MalformedResponseError
from tunestream.gateway.schemas import (
    resolve_media_url,
    to_album,
    to_playlist,
    to_playlists,
    to_track,
    to_tracks,
    to_user,
    user_to_record,
)

BASE = "http://localhost:5000"


class TestToTrack:
    """Test mapping song records."""

    def test_server_shape(self):
        track = to_track(
            {
                "_id": "65f0",
                "title": "Teardrop",
                "artist": "Massive Attack",
                "album": "Mezzanine",
                "coverUrl": "/uploads/covers/mezz.jpg",
                "audioUrl": "/uploads/songs/teardrop.mp3",
                "duration": 330,
            },
            BASE,
        )

        assert track == Track(
            id="65f0",
            title="Teardrop",
            artist="Massive Attack",
            album="Mezzanine",
            cover_url="http://localhost:5000/uploads/covers/mezz.jpg",
            audio_url="http://localhost:5000/uploads/songs/teardrop.mp3",
            duration=330.0,
        )

    def test_legacy_shape(self):
        track = to_track(
            {
                "id": 7,
                "name": "Angel",
                "cover": "https://cdn.example.com/angel.jpg",
                "url": "https://cdn.example.com/angel.mp3",
            },
            BASE,
        )

        assert track.id == "7"
        assert track.title == "Angel"
        assert track.cover_url == "https://cdn.example.com/angel.jpg"
        assert track.audio_url == "https://cdn.example.com/angel.mp3"

    def test_missing_fields_defaulted(self):
        track = to_track({}, BASE, index=3)

        assert re.fullmatch(r"temp-\d+-3", track.id)
        assert track.title == "Untitled"
        assert track.artist == "Unknown Artist"
        assert track.album == "Unknown Album"
        assert not track.playable

    def test_extra_fields_ignored(self):
        track = to_track({"_id": "x", "title": "T", "__v": 0, "plays": 12}, BASE)
        assert track.id == "x"

    def test_non_object_rejected(self):
        with pytest.raises(MalformedResponseError):
            to_track("not a record", BASE)

    def test_bad_field_type_rejected(self):
        with pytest.raises(MalformedResponseError):
            to_track({"_id": "x", "duration": "long"}, BASE)

    def test_single_record_or_list(self):
        assert len(to_tracks({"_id": "a"}, BASE)) == 1
        assert [t.id for t in to_tracks([{"_id": "a"}, {"id": "b"}], BASE)] == ["a", "b"]


class TestResolveMediaUrl:
    """Test media URL resolution."""

    def test_relative(self):
        assert resolve_media_url("uploads/a.mp3", BASE + "/") == BASE + "/uploads/a.mp3"

    def test_absolute_kept(self):
        assert resolve_media_url("https://x.test/a.mp3", BASE) == "https://x.test/a.mp3"

    def test_empty(self):
        assert resolve_media_url(None, BASE) is None
        assert resolve_media_url("", BASE) is None


class TestToPlaylist:
    """Test mapping playlist records."""

    def test_ids_and_embedded_songs(self):
        playlist = to_playlist(
            {
                "_id": "p1",
                "name": "Mix",
                "isPublic": False,
                "user": {"_id": "u1", "username": "ana"},
                "songs": ["s1", {"_id": "s2", "title": "Two"}],
            },
            BASE,
        )

        assert playlist.id == "p1"
        assert playlist.is_public is False
        assert playlist.owner_id == "u1"
        assert playlist.songs[0] == "s1"
        assert playlist.songs[1].title == "Two"
        assert playlist.track_ids == ["s1", "s2"]

    def test_defaults(self):
        playlist = to_playlist({"_id": "p1"}, BASE)
        assert playlist.name == "Untitled Playlist"
        assert playlist.is_public is True
        assert playlist.owner_id is None
        assert playlist.songs == ()

    def test_listing_shapes(self):
        records = [{"_id": "p1", "name": "A"}]
        assert [p.id for p in to_playlists(records, BASE)] == ["p1"]
        assert [p.id for p in to_playlists({"playlists": records}, BASE)] == ["p1"]

    def test_unexpected_listing_is_empty(self, log_messages):
        assert to_playlists({"message": "ok"}, BASE) == []
        assert any("Unexpected playlist response format" in m for m in log_messages)


class TestToAlbum:
    """Test mapping album records."""

    def test_album(self):
        album = to_album(
            {"_id": "al1", "title": "Mezzanine", "artist": "Massive Attack", "year": 1998,
             "songs": ["s1", "s2"]},
            BASE,
        )
        assert album.year == 1998
        assert album.songs == ("s1", "s2")


class TestUser:
    """Test mapping user records."""

    def test_to_user(self):
        user = to_user({"_id": "u1", "username": "ana", "email": "ana@example.com"})
        assert (user.id, user.username, user.email) == ("u1", "ana", "ana@example.com")

    def test_user_without_id_rejected(self):
        with pytest.raises(MalformedResponseError):
            to_user({"username": "ana"})

    def test_record_roundtrip(self):
        user = to_user({"id": "u1", "username": "ana", "email": "a@x", "avatarUrl": "/a.png"})
        assert to_user(user_to_record(user)) == user
