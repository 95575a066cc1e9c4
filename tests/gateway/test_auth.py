"""Tests for authentication endpoints."""

from unittest.mock import MagicMock

import pytest

from tunestream.gateway import auth
from tunestream.gateway.exceptions import (
    AuthenticationError,
    GatewayError,
    MalformedResponseError,
)


@pytest.fixture
def client():
    return MagicMock()


class TestRegister:
    def test_success(self, client):
        message = auth.register(client, "ana", "ana@example.com", "pw")

        assert message == "Registration successful, please log in"
        client.post.assert_called_once_with(
            "/api/auth/register",
            json={"username": "ana", "email": "ana@example.com", "password": "pw"},
        )

    def test_server_reason_used(self, client):
        client.post.side_effect = GatewayError("Email taken", 400, "Email taken")

        with pytest.raises(AuthenticationError, match="Email taken"):
            auth.register(client, "ana", "ana@example.com", "pw")

    def test_default_reason(self, client):
        client.post.side_effect = GatewayError("HTTP 500", 500)

        with pytest.raises(AuthenticationError, match="^Registration failed$"):
            auth.register(client, "ana", "ana@example.com", "pw")


class TestLogin:
    def test_success(self, client):
        client.post.return_value = {
            "token": "tok",
            "user": {"_id": "u1", "username": "ana", "email": "ana@example.com"},
        }

        token, user = auth.login(client, "ana@example.com", "pw")

        assert token == "tok"
        assert user.id == "u1"

    def test_rejected(self, client):
        client.post.side_effect = GatewayError("Invalid credentials", 401, "Invalid credentials")

        with pytest.raises(AuthenticationError) as excinfo:
            auth.login(client, "ana@example.com", "bad")

        assert str(excinfo.value) == "Invalid credentials"
        assert excinfo.value.status_code == 401

    def test_missing_token(self, client):
        client.post.return_value = {"user": {"_id": "u1"}}

        with pytest.raises(AuthenticationError, match="^Login failed$"):
            auth.login(client, "ana@example.com", "pw")

    def test_missing_user(self, client):
        client.post.return_value = {"token": "tok"}

        with pytest.raises(AuthenticationError, match="^Login failed$"):
            auth.login(client, "ana@example.com", "pw")

    def test_network_failure_reason(self, client):
        client.post.side_effect = GatewayError("Network error: refused")

        with pytest.raises(AuthenticationError, match="Network error: refused"):
            auth.login(client, "ana@example.com", "pw")

    def test_malformed_body(self, client):
        client.post.side_effect = MalformedResponseError("Malformed response", 200)

        with pytest.raises(AuthenticationError, match="^Login failed$"):
            auth.login(client, "ana@example.com", "pw")


class TestUpdateProfile:
    def test_requires_token(self, client):
        with pytest.raises(AuthenticationError, match="Unauthorized: No token found"):
            auth.update_profile(client, None, {"username": "x"})
        client.put.assert_not_called()

    def test_success(self, client):
        client.put.return_value = {"_id": "u1", "username": "new", "email": "a@x"}

        user = auth.update_profile(client, "tok", {"username": "new"})

        assert user.username == "new"
        client.put.assert_called_once_with(
            "/api/user/update", json={"username": "new"}, protected=True
        )

    def test_failure(self, client):
        client.put.side_effect = GatewayError("HTTP 500", 500)

        with pytest.raises(AuthenticationError, match="^Profile update failed$"):
            auth.update_profile(client, "tok", {"username": "new"})
