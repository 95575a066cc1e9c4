"""Tests for song, album and playlist endpoint functions."""

from unittest.mock import MagicMock

import pytest

from tunestream.gateway import albums, playlists, songs
from tunestream.gateway.exceptions import MalformedResponseError


@pytest.fixture
def client():
    mock = MagicMock()
    mock.base_url = "http://localhost:5000"
    return mock


class TestSongs:
    def test_list(self, client):
        client.get.return_value = [{"_id": "1", "title": "One", "audioUrl": "/u/1.mp3"}]

        tracks = songs.list_songs(client)

        client.get.assert_called_once_with("/api/songs")
        assert tracks[0].audio_url == "http://localhost:5000/u/1.mp3"

    def test_list_empty_body(self, client):
        client.get.return_value = None
        assert songs.list_songs(client) == []

    def test_upload_multipart(self, client, tmp_path):
        audio = tmp_path / "track.mp3"
        audio.write_bytes(b"ID3")
        cover = tmp_path / "cover.jpg"
        cover.write_bytes(b"\xff\xd8")
        client.post.return_value = {"_id": "9", "title": "track"}

        created = songs.upload_song(client, audio, cover)

        args, kwargs = client.post.call_args
        assert args == ("/api/songs/upload",)
        assert kwargs["data"] == {"artist": "Unknown Artist", "album": "Unknown Album"}
        assert kwargs["files"]["songs"][0] == "track.mp3"
        assert kwargs["files"]["cover"][0] == "cover.jpg"
        assert [t.id for t in created] == ["9"]

    def test_upload_without_cover(self, client, tmp_path):
        audio = tmp_path / "track.mp3"
        audio.write_bytes(b"ID3")
        client.post.return_value = [{"_id": "9"}, {"_id": "10"}]

        created = songs.upload_song(client, audio, artist="Band", album="LP")

        kwargs = client.post.call_args.kwargs
        assert "cover" not in kwargs["files"]
        assert kwargs["data"] == {"artist": "Band", "album": "LP"}
        assert len(created) == 2

    def test_update_keeps_requested_id(self, client):
        client.put.return_value = {"title": "Renamed"}

        track = songs.update_song(client, "s1", {"title": "Renamed"})

        client.put.assert_called_once_with("/api/songs/s1", json={"title": "Renamed"})
        assert track.id == "s1"

    def test_delete(self, client):
        songs.delete_song(client, "s1")
        client.delete.assert_called_once_with("/api/songs/s1")


class TestAlbums:
    def test_list_must_be_list(self, client):
        client.get.return_value = {"albums": []}
        with pytest.raises(MalformedResponseError):
            albums.list_albums(client)

    def test_create(self, client):
        client.post.return_value = {"_id": "al1", "title": "LP"}
        assert albums.create_album(client, {"title": "LP"}).id == "al1"


class TestPlaylists:
    def test_list_is_protected(self, client):
        client.get.return_value = {"playlists": [{"_id": "p1", "name": "Mix"}]}

        result = playlists.list_my_playlists(client)

        client.get.assert_called_once_with("/api/playlists/my", protected=True)
        assert [p.name for p in result] == ["Mix"]

    def test_create_defaults_public(self, client):
        client.post.return_value = {"_id": "p1", "name": "Mix"}

        playlists.create_playlist(client, {"name": "Mix"})

        client.post.assert_called_once_with(
            "/api/playlists", json={"name": "Mix", "isPublic": True}, protected=True
        )

    def test_create_private(self, client):
        client.post.return_value = {"_id": "p1", "name": "Mix", "isPublic": False}

        playlist = playlists.create_playlist(client, {"name": "Mix", "isPublic": False})

        assert client.post.call_args.kwargs["json"]["isPublic"] is False
        assert playlist.is_public is False

    def test_delete_is_protected(self, client):
        playlists.delete_playlist(client, "p1")
        client.delete.assert_called_once_with("/api/playlists/p1", protected=True)
