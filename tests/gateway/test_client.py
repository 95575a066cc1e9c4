"""
Tests for the HTTP client.

A mocked requests.Session returns real Response objects so status handling
goes through requests' own raise_for_status.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from tunestream.gateway.client import AUTH_HEADER, GatewayClient, api_reason
from tunestream.gateway.exceptions import GatewayError, MalformedResponseError, UnauthorizedError


def make_response(status: int = 200, body=None, raw: bytes = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = {200: "OK", 204: "No Content", 401: "Unauthorized", 500: "Internal Server Error"}.get(status, "")
    response.url = "http://api.test/api/x"
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session) -> GatewayClient:
    return GatewayClient("http://api.test/", token_provider=lambda: "tok", session=session)


class TestRequest:
    """Test request building and response decoding."""

    def test_decodes_json(self, client, session):
        session.request.return_value = make_response(200, [{"_id": "1"}])

        assert client.get("/api/songs") == [{"_id": "1"}]
        session.request.assert_called_once_with(
            "GET",
            "http://api.test/api/songs",
            json=None,
            data=None,
            files=None,
            headers={},
            timeout=30.0,
        )

    def test_protected_attaches_token(self, client, session):
        session.request.return_value = make_response(200, {})

        client.get("/api/playlists/my", protected=True)

        assert session.request.call_args.kwargs["headers"] == {AUTH_HEADER: "tok"}

    def test_protected_without_token_sends_no_header(self, session):
        client = GatewayClient("http://api.test", token_provider=lambda: None, session=session)
        session.request.return_value = make_response(200, {})

        client.get("/api/playlists/my", protected=True)

        assert session.request.call_args.kwargs["headers"] == {}

    def test_empty_body_is_none(self, client, session):
        session.request.return_value = make_response(204)
        assert client.delete("/api/songs/1") is None

    def test_malformed_body(self, client, session):
        session.request.return_value = make_response(200, raw=b"<html>oops</html>")
        with pytest.raises(MalformedResponseError):
            client.get("/api/songs")


class TestErrors:
    """Test failure mapping."""

    def test_status_error_carries_api_reason(self, client, session):
        session.request.return_value = make_response(400, {"error": "Title is required"})

        with pytest.raises(GatewayError) as excinfo:
            client.post("/api/albums", json={})

        assert str(excinfo.value) == "Title is required"
        assert excinfo.value.status_code == 400
        assert excinfo.value.reason == "Title is required"

    def test_status_error_without_reason(self, client, session):
        session.request.return_value = make_response(500, raw=b"")

        with pytest.raises(GatewayError) as excinfo:
            client.get("/api/songs")

        assert str(excinfo.value) == "HTTP 500 Internal Server Error"
        assert excinfo.value.reason is None

    def test_network_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(GatewayError, match="Network error: refused") as excinfo:
            client.get("/api/songs")

        assert excinfo.value.status_code is None

    def test_401_on_protected_call_fires_hook(self, client, session):
        client.on_unauthorized = MagicMock()
        session.request.return_value = make_response(401, {"error": "Token expired"})

        with pytest.raises(UnauthorizedError):
            client.get("/api/playlists/my", protected=True)

        client.on_unauthorized.assert_called_once_with()

    def test_401_on_public_call_is_plain_error(self, client, session):
        client.on_unauthorized = MagicMock()
        session.request.return_value = make_response(401, {"error": "Invalid credentials"})

        with pytest.raises(GatewayError) as excinfo:
            client.post("/api/auth/login", json={})

        assert not isinstance(excinfo.value, UnauthorizedError)
        client.on_unauthorized.assert_not_called()


class TestApiReason:
    """Test reading the API's error text."""

    def test_error_field(self):
        assert api_reason(make_response(400, {"error": "Nope"})) == "Nope"

    def test_message_field(self):
        assert api_reason(make_response(400, {"message": "Also nope"})) == "Also nope"

    def test_unhelpful_bodies(self):
        assert api_reason(make_response(400, ["x"])) is None
        assert api_reason(make_response(400, {"error": ""})) is None
        assert api_reason(make_response(400, raw=b"not json")) is None
