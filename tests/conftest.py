"""Shared fixtures: an in-memory audio output and a small track catalog."""

from typing import Optional

import pytest
from loguru import logger

from tunestream.core.output import set_notice_handler
from tunestream.domain.library.models import Track
from tunestream.domain.playback.audio import (
    ENDED,
    LOADEDMETADATA,
    TIMEUPDATE,
    AudioEvents,
    MediaError,
)


class FakeAudioOutput(AudioEvents):
    """Records what the coordinator asks of it; events are fired by the test."""

    def __init__(self) -> None:
        super().__init__()
        self._source: Optional[str] = None
        self.current_time = 0.0
        self.volume = 1.0
        self.duration = 0.0
        self.playing = False
        self.loads: list[Optional[str]] = []
        self.play_calls = 0
        self.fail_load = False
        self.fail_play = False

    @property
    def source(self) -> Optional[str]:
        return self._source

    @source.setter
    def source(self, url: Optional[str]) -> None:
        self.loads.append(url)
        if self.fail_load:
            raise MediaError(f"cannot load {url}")
        self._source = url
        self.current_time = 0.0
        self.playing = False

    def play(self) -> None:
        self.play_calls += 1
        if self.fail_play:
            raise MediaError("playback refused")
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    # Test helpers

    def finish(self) -> None:
        self.emit(ENDED)

    def report_time(self, seconds: float) -> None:
        self.current_time = seconds
        self.emit(TIMEUPDATE, seconds)

    def report_duration(self, seconds: float) -> None:
        self.duration = seconds
        self.emit(LOADEDMETADATA, seconds)


class FakeCatalog:
    """Stands in for the song store."""

    def __init__(self, songs: list[Track]):
        self._songs = list(songs)

    @property
    def songs(self) -> tuple[Track, ...]:
        return tuple(self._songs)

    def get(self, song_id: str) -> Optional[Track]:
        return next((s for s in self._songs if s.id == song_id), None)


def make_track(track_id: str, **overrides) -> Track:
    fields = {
        "title": f"Song {track_id}",
        "artist": "Test Artist",
        "album": "Test Album",
        "audio_url": f"http://localhost:5000/uploads/{track_id}.mp3",
        "duration": 200.0,
    }
    fields.update(overrides)
    return Track(id=track_id, **fields)


@pytest.fixture
def new_track():
    """Factory for tracks with sensible defaults."""
    return make_track


@pytest.fixture
def catalog_of():
    """Factory for catalogs over arbitrary tracks."""
    return FakeCatalog


@pytest.fixture
def track_a() -> Track:
    return make_track("a")


@pytest.fixture
def track_b() -> Track:
    return make_track("b")


@pytest.fixture
def track_c() -> Track:
    return make_track("c")


@pytest.fixture
def tracks(track_a, track_b, track_c) -> list[Track]:
    return [track_a, track_b, track_c]


@pytest.fixture
def audio() -> FakeAudioOutput:
    return FakeAudioOutput()


@pytest.fixture
def catalog(tracks) -> FakeCatalog:
    return FakeCatalog(tracks)


@pytest.fixture
def notices():
    """Capture user-facing notices instead of printing them."""
    received: list[tuple[str, str]] = []
    set_notice_handler(lambda message, level: received.append((message, level)))
    yield received
    set_notice_handler(None)


@pytest.fixture
def log_messages():
    """Capture loguru output for assertions."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
