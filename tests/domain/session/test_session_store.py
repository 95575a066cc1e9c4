"""
Tests for the session store: login/logout, persistence and external changes.

Gateway auth calls are patched; nothing touches the network.
"""

from unittest.mock import MagicMock, patch

import pytest

from tunestream.domain.library.models import User
from tunestream.domain.session.storage import SessionStorage
from tunestream.domain.session.store import Session, SessionStore
from tunestream.gateway.exceptions import AuthenticationError

USER = User(id="u1", username="ana", email="ana@example.com")
USER_RECORD = {"_id": "u1", "username": "ana", "email": "ana@example.com"}


@pytest.fixture
def storage(tmp_path) -> SessionStorage:
    return SessionStorage(tmp_path / "session.json")


@pytest.fixture
def store(storage) -> SessionStore:
    return SessionStore(storage, MagicMock())


class TestRestore:
    """Test restoring a session from storage."""

    def test_empty_storage_no_session(self, store):
        assert store.session is None
        assert not store.is_authenticated
        assert store.token is None

    def test_restores_user_and_token(self, storage):
        storage.set(user=USER_RECORD, token="tok")

        store = SessionStore(storage, MagicMock())

        assert store.session == Session(user=USER, token="tok")
        assert store.user == USER

    def test_user_without_token_is_absent(self, storage):
        storage.set(user=USER_RECORD)
        assert SessionStore(storage, MagicMock()).session is None

    def test_corrupt_user_cleared(self, storage):
        storage.set(user="garbage", token="tok")

        store = SessionStore(storage, MagicMock())

        assert store.session is None
        assert storage.read() == {"token": "tok"}


class TestLogin:
    """Test logging in and out."""

    def test_login_persists_session(self, store, storage):
        with patch("tunestream.gateway.auth.login", return_value=("tok", USER)):
            user = store.login("ana@example.com", "pw")

        assert user == USER
        assert store.token == "tok"
        assert storage.read() == {"token": "tok", "user": USER_RECORD}

    def test_failed_login_leaves_session_untouched(self, storage):
        storage.set(user=USER_RECORD, token="old")
        store = SessionStore(storage, MagicMock())
        listener = MagicMock()
        store.subscribe(listener)

        with patch(
            "tunestream.gateway.auth.login",
            side_effect=AuthenticationError("Invalid credentials"),
        ):
            with pytest.raises(AuthenticationError, match="Invalid credentials"):
                store.login("ana@example.com", "wrong")

        assert store.session == Session(user=USER, token="old")
        assert storage.read()["token"] == "old"
        listener.assert_not_called()

    def test_logout_clears_storage_and_notifies(self, storage):
        storage.set(user=USER_RECORD, token="tok")
        store = SessionStore(storage, MagicMock())
        listener = MagicMock()
        store.subscribe(listener)

        store.logout()

        assert store.session is None
        assert storage.read() == {}
        listener.assert_called_once_with(None)

    def test_register_does_not_log_in(self, store):
        with patch("tunestream.gateway.auth.register", return_value="Registration successful, please log in"):
            message = store.register("ana", "ana@example.com", "pw")

        assert message == "Registration successful, please log in"
        assert not store.is_authenticated

    def test_invalidate_notices_and_logs_out(self, storage, notices):
        storage.set(user=USER_RECORD, token="tok")
        store = SessionStore(storage, MagicMock())

        store.invalidate()

        assert store.session is None
        assert notices == [("Your session has expired, please log in again", "warning")]

    def test_invalidate_without_session_is_quiet(self, store, notices):
        store.invalidate()
        assert notices == []


class TestUpdateProfile:
    """Test profile updates."""

    def test_without_token_raises(self, store):
        with pytest.raises(AuthenticationError, match="Unauthorized: No token found"):
            store.update_profile({"username": "new"})

    def test_updates_stored_user(self, storage):
        storage.set(user=USER_RECORD, token="tok")
        store = SessionStore(storage, MagicMock())
        renamed = USER._replace(username="ana2")

        with patch("tunestream.gateway.auth.update_profile", return_value=renamed) as update:
            store.update_profile({"username": "ana2"})

        update.assert_called_once_with(store.client, "tok", {"username": "ana2"})
        assert store.user == renamed
        assert storage.read()["user"]["username"] == "ana2"


class TestStorageChanges:
    """Test reacting to changes made by another process."""

    def test_external_login_reflected(self, store, storage):
        listener = MagicMock()
        store.subscribe(listener)

        storage.set(user=USER_RECORD, token="tok")
        store.handle_storage_change("token")

        assert store.session == Session(user=USER, token="tok")
        listener.assert_called_once_with(store.session)

    def test_external_logout_reflected(self, storage):
        storage.set(user=USER_RECORD, token="tok")
        store = SessionStore(storage, MagicMock())

        storage.remove("user", "token")
        store.handle_storage_change("user")

        assert store.session is None

    def test_irrelevant_keys_ignored(self, store, storage):
        storage.set(user=USER_RECORD, token="tok")
        store.handle_storage_change("theme")
        store.handle_storage_change(None)

        assert store.session is None

    def test_unchanged_session_not_renotified(self, storage):
        storage.set(user=USER_RECORD, token="tok")
        store = SessionStore(storage, MagicMock())
        listener = MagicMock()
        store.subscribe(listener)

        store.handle_storage_change("token")

        listener.assert_not_called()

    def test_unsubscribe(self, store, storage):
        listener = MagicMock()
        unsubscribe = store.subscribe(listener)
        unsubscribe()

        storage.set(user=USER_RECORD, token="tok")
        store.handle_storage_change("user")

        listener.assert_not_called()
