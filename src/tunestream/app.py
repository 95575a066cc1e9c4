"""
Application composition root.

Builds every component once, wires them together explicitly and tears them
down in order. Nothing here is a module-level singleton: front ends create an
Application and pass its parts to whatever needs them.
"""

from typing import Any, Optional

import requests
from loguru import logger

from tunestream.core.config import Config, get_log_file, get_session_file
from tunestream.core.output import setup_loguru
from tunestream.domain.library.stores import AlbumStore, PlaylistStore, SongStore
from tunestream.domain.playback import MpvAudioOutput, PlaybackCoordinator, Preferences
from tunestream.domain.playback.audio import AudioOutput
from tunestream.domain.session import Session, SessionStorage, SessionStore, SessionWatcher
from tunestream.gateway.client import GatewayClient


def setup_logging(config: Config) -> None:
    """Configure loguru from the [logging] section."""
    setup_loguru(
        get_log_file(config),
        level=config.logging.level,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
        console_output=config.logging.console_output,
    )


class Application:
    """Owns the gateway client, stores, session and player."""

    def __init__(
        self,
        config: Config,
        audio: Optional[AudioOutput] = None,
        http_session: Optional[requests.Session] = None,
    ):
        self.config = config

        self.session_storage = SessionStorage(get_session_file(config))
        self.client = GatewayClient(
            config.api.base_url,
            timeout=config.api.timeout,
            token_provider=lambda: self.sessions.token,
            session=http_session,
        )
        self.sessions = SessionStore(self.session_storage, self.client)
        self.client.on_unauthorized = self.sessions.invalidate

        self.songs = SongStore(self.client)
        self.albums = AlbumStore(self.client)
        self.playlists = PlaylistStore(self.client)

        self.audio = audio or MpvAudioOutput(
            config.player.mpv_socket_path, volume=config.player.volume
        )
        self.player = PlaybackCoordinator(
            self.audio,
            catalog=self.songs,
            volume=config.player.volume,
            shuffle=config.player.shuffle_on_start,
            repeat_mode=config.player.repeat_mode,
            preferences=Preferences(
                high_quality=config.player.high_quality,
                show_unplayable=config.player.show_unplayable,
            ),
        )

        self.watcher: Optional[SessionWatcher] = None
        if config.session.watch_changes:
            self.watcher = SessionWatcher(
                self.session_storage, self.sessions, config.session.debounce_ms
            )

        self._unsubscribe_session = self.sessions.subscribe(self._on_session_change)

    def __enter__(self) -> "Application":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def start(self) -> None:
        if self.watcher is not None:
            self.watcher.start()
        logger.info(f"Application started (api={self.config.api.base_url})")

    def poll(self) -> None:
        """One main-loop tick: audio events, then external session changes."""
        poll_audio = getattr(self.audio, "poll", None)
        if poll_audio is not None:
            poll_audio()
        if self.watcher is not None:
            self.watcher.poll()

    def delete_song(self, song_id: str) -> bool:
        """Delete a song everywhere it is referenced locally."""
        if not self.songs.delete(song_id):
            return False
        self.player.forget_track(song_id)
        return True

    def _on_session_change(self, session: Optional[Session]) -> None:
        if session is None:
            # Playlists belong to the user who just left
            self.playlists.clear()
            logger.info("Session ended")
        else:
            logger.info(f"Session active for {session.user.email}")

    def shutdown(self) -> None:
        self._unsubscribe_session()
        self.player.close()
        if self.watcher is not None:
            self.watcher.stop()
        close_audio = getattr(self.audio, "close", None)
        if close_audio is not None:
            close_audio()
        self.client.close()
        logger.info("Application shut down")
