"""
Playback coordinator - the single authority for what is playing and how.

Owns the queue, the player state and the liked songs, and is the only code
allowed to command the audio output. Views read state through ``subscribe``.

Shuffle picks a uniformly random queue index (the current one included) on
every advance. There is no persistent shuffled order and the queue itself is
never reordered.
"""

import random
from typing import Callable, Iterable, Optional, Protocol, Sequence, Union

from loguru import logger

from tunestream.core.output import log
from tunestream.domain.library.models import Track, TrackRef

from .audio import ENDED, ERROR, LOADEDMETADATA, TIMEUPDATE, AudioListener, AudioOutput, MediaError
from .likes import LikeSet
from .state import (
    PlaybackState,
    PlaybackStatus,
    Preferences,
    Queue,
    RepeatMode,
    clamp,
    clamp_position,
)

StateListener = Callable[[PlaybackState, Optional[Track]], None]


class TrackCatalog(Protocol):
    """Where the coordinator borrows tracks from (the song store)."""

    @property
    def songs(self) -> Sequence[Track]: ...

    def get(self, song_id: str) -> Optional[Track]: ...


class PlaybackCoordinator:
    """Queue, transport, volume and likes over one audio output."""

    def __init__(
        self,
        audio: AudioOutput,
        catalog: Optional[TrackCatalog] = None,
        volume: float = 1.0,
        shuffle: bool = False,
        repeat_mode: Union[RepeatMode, str] = RepeatMode.NONE,
        preferences: Optional[Preferences] = None,
        rng: Optional[random.Random] = None,
    ):
        self._audio = audio
        self._catalog = catalog
        self._random = rng or random.Random()
        self._queue = Queue()
        self._state = PlaybackState(
            volume=clamp(volume, 0.0, 1.0),
            shuffle=shuffle,
            repeat_mode=RepeatMode(repeat_mode),
        )
        self._preferences = preferences or Preferences()
        self._likes = LikeSet()
        self._listeners: list[StateListener] = []

        # Listeners registered on the audio output for the loaded track
        self._bound: list[tuple[str, AudioListener]] = []
        self._generation = 0
        self._loaded: Optional[tuple[str, Optional[str]]] = None  # (id, audio_url)

        self._audio.volume = self._state.effective_volume

    # Read-only state

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def queue(self) -> tuple[Track, ...]:
        return self._queue.tracks

    @property
    def current_index(self) -> int:
        return self._queue.index

    @property
    def current_track(self) -> Optional[Track]:
        return self._queue.current

    @property
    def effective_volume(self) -> float:
        return self._state.effective_volume

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def liked_tracks(self) -> list[Track]:
        """Liked tracks in the order they were liked."""
        return list(self._likes)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener(state, current_track)`` after every change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state, self._queue.current)

    # Starting playback

    def load_and_play(self, track: Track, queue: Optional[Iterable[TrackRef]] = None) -> None:
        """Play ``track`` with ``queue`` as the navigation list.

        Without a queue the whole catalog is used, or just ``[track]`` when
        the catalog does not contain it. Calling this for the track that is
        already loaded restarts it instead of duplicating anything; an edited
        track with a new media URL is reloaded.
        """
        if queue is None:
            tracks = self._catalog_songs()
            if not any(t.id == track.id for t in tracks):
                tracks = [track]
        else:
            tracks = self._resolve(queue) or [track]

        index = next((i for i, t in enumerate(tracks) if t.id == track.id), 0)
        self._queue = Queue(tuple(tracks), index)
        logger.info(f"Playing '{self._queue.current.title}' ({index + 1}/{len(tracks)})")
        self._start_current()

    def play_playlist(self, songs: Iterable[TrackRef], start_index: int = 0) -> None:
        """Replace the queue with ``songs`` and play from ``start_index``.

        Songs may be Track records or track ids; ids are looked up in the
        catalog and unknown ones dropped. An empty list does nothing.
        """
        tracks = self._resolve(songs)
        if not tracks:
            return
        self._queue = Queue(tuple(tracks)).at(start_index)
        logger.info(f"Playing list of {len(tracks)} from position {self._queue.index + 1}")
        self._start_current()

    # Transport

    def toggle_play_pause(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.resume()

    def pause(self) -> None:
        if not self._state.is_playing:
            return
        self._audio.pause()
        self._state = self._state._replace(status=PlaybackStatus.PAUSED)
        self._notify()

    def resume(self) -> None:
        if self._queue.is_empty or self._state.is_playing:
            return
        self._state = self._state._replace(status=PlaybackStatus.PLAYING)
        self._play_audio()
        self._notify()

    def stop(self) -> None:
        """Stop and rewind; the queue and current index are kept."""
        if self._queue.is_empty:
            return
        self._audio.pause()
        self._audio.current_time = 0.0
        self._state = self._state._replace(status=PlaybackStatus.STOPPED, position=0.0)
        self._notify()

    def seek(self, seconds: float) -> None:
        """Jump within the current track. Out-of-range targets are clamped."""
        if self._queue.is_empty:
            return
        duration = self._state.duration or self._audio.duration or 0.0
        target = clamp_position(seconds, duration)
        self._audio.current_time = target
        self._state = self._state._replace(position=target)
        self._notify()

    def next(self) -> None:
        if self._queue.is_empty:
            return
        if self._state.shuffle:
            self._jump(self._random_index())
        elif not self._queue.is_last:
            self._jump(self._queue.index + 1)
        elif self._state.repeat_mode is RepeatMode.ALL:
            self._jump(0)
        else:
            self.stop()

    def previous(self) -> None:
        if self._queue.is_empty:
            return
        if self._state.shuffle:
            self._jump(self._random_index())
        elif self._queue.index > 0:
            self._jump(self._queue.index - 1)
        elif self._state.repeat_mode is RepeatMode.ALL:
            self._jump(len(self._queue.tracks) - 1)

    # Volume

    def set_volume(self, volume: float) -> None:
        """Set volume (0.0-1.0, clamped). Any audible level unmutes."""
        volume = clamp(volume, 0.0, 1.0)
        muted = False if volume > 0 else self._state.muted
        self._state = self._state._replace(volume=volume, muted=muted)
        self._audio.volume = self._state.effective_volume
        self._notify()

    def toggle_mute(self) -> None:
        self._state = self._state._replace(muted=not self._state.muted)
        self._audio.volume = self._state.effective_volume
        self._notify()

    # Modes

    def toggle_shuffle(self) -> None:
        self._state = self._state._replace(shuffle=not self._state.shuffle)
        self._notify()

    def cycle_repeat_mode(self) -> RepeatMode:
        """Rotate none -> all -> one -> none."""
        self._state = self._state._replace(repeat_mode=self._state.repeat_mode.cycled())
        self._notify()
        return self._state.repeat_mode

    def set_repeat_mode(self, mode: Union[RepeatMode, str]) -> None:
        self._state = self._state._replace(repeat_mode=RepeatMode(mode))
        self._notify()

    def toggle_high_quality(self) -> bool:
        self._preferences = self._preferences._replace(
            high_quality=not self._preferences.high_quality
        )
        return self._preferences.high_quality

    def toggle_show_unplayable(self) -> bool:
        self._preferences = self._preferences._replace(
            show_unplayable=not self._preferences.show_unplayable
        )
        return self._preferences.show_unplayable

    # Likes

    def toggle_like(self, track: Track) -> bool:
        """Like or unlike a track. Returns True if it is liked afterwards."""
        liked = self._likes.toggle(track)
        logger.debug(f"{'Liked' if liked else 'Unliked'} '{track.title}'")
        return liked

    def is_liked(self, track: Union[Track, str]) -> bool:
        return track in self._likes

    def forget_track(self, track_id: str) -> None:
        """Drop a deleted song from the liked songs."""
        self._likes.discard(track_id)

    def close(self) -> None:
        """Detach from the audio output."""
        self._detach()
        self._audio.pause()

    # Internals

    def _catalog_songs(self) -> list[Track]:
        return list(self._catalog.songs) if self._catalog is not None else []

    def _resolve(self, songs: Iterable[TrackRef]) -> list[Track]:
        tracks: list[Track] = []
        for song in songs:
            if isinstance(song, Track):
                tracks.append(song)
                continue
            found = self._catalog.get(song) if self._catalog is not None else None
            if found is None:
                logger.warning(f"Dropping unknown track id from queue: {song}")
            else:
                tracks.append(found)
        return tracks

    def _random_index(self) -> int:
        return self._random.randrange(len(self._queue.tracks))

    def _jump(self, index: int) -> None:
        self._queue = self._queue.at(index)
        self._start_current()

    def _start_current(self) -> None:
        """Play the current queue entry from the top."""
        track = self._queue.current
        if track is None:
            return

        if (track.id, track.audio_url) == self._loaded:
            self._audio.current_time = 0.0
            duration = self._state.duration
        else:
            self._load(track)
            duration = track.duration or 0.0

        self._state = self._state._replace(
            status=PlaybackStatus.PLAYING, position=0.0, duration=max(0.0, duration)
        )
        self._play_audio()
        self._notify()

    def _load(self, track: Track) -> None:
        """Point the audio output at a new track.

        Listeners from the previous track are removed first so a late
        ``ended`` for the old source cannot advance the new queue.
        """
        self._detach()
        self._generation += 1
        self._loaded = (track.id, track.audio_url)

        if not track.playable:
            log(f"'{track.title}' has no playable media", "warning")
        try:
            self._audio.source = track.audio_url
        except MediaError as e:
            # Not loaded, so playing this track again retries the load
            self._loaded = None
            self._media_failed(track, e)

        self._attach(self._generation)

    def _play_audio(self) -> None:
        track = self._queue.current
        if track is None or not track.playable:
            return
        try:
            self._audio.play()
        except MediaError as e:
            self._media_failed(track, e)

    def _media_failed(self, track: Track, error: object) -> None:
        log(f"Could not play '{track.title}': {error}", "warning")

    def _attach(self, generation: int) -> None:
        def on_timeupdate(position: Optional[float] = None, *_) -> None:
            if generation == self._generation:
                self._handle_timeupdate(position)

        def on_metadata(duration: Optional[float] = None, *_) -> None:
            if generation == self._generation:
                self._handle_metadata(duration)

        def on_ended(*_) -> None:
            if generation == self._generation:
                self._handle_ended()

        def on_error(error: object = None, *_) -> None:
            if generation == self._generation and self._queue.current is not None:
                self._media_failed(self._queue.current, error or "media error")

        self._bound = [
            (TIMEUPDATE, on_timeupdate),
            (LOADEDMETADATA, on_metadata),
            (ENDED, on_ended),
            (ERROR, on_error),
        ]
        for event, listener in self._bound:
            self._audio.add_listener(event, listener)

    def _detach(self) -> None:
        for event, listener in self._bound:
            self._audio.remove_listener(event, listener)
        self._bound = []

    def _handle_timeupdate(self, position: Optional[float]) -> None:
        if position is None:
            position = self._audio.current_time
        self._state = self._state._replace(
            position=clamp_position(position, self._state.duration)
        )
        self._notify()

    def _handle_metadata(self, duration: Optional[float]) -> None:
        if duration is None:
            duration = self._audio.duration
        duration = max(0.0, duration or 0.0)
        self._state = self._state._replace(
            duration=duration, position=clamp_position(self._state.position, duration)
        )
        self._notify()

    def _handle_ended(self) -> None:
        """Auto-advance when the current track finishes on its own."""
        if self._queue.is_empty:
            return

        if self._state.repeat_mode is RepeatMode.ONE:
            self._start_current()
        elif self._state.shuffle:
            self._jump(self._random_index())
        elif not self._queue.is_last:
            self._jump(self._queue.index + 1)
        elif self._state.repeat_mode is RepeatMode.ALL:
            self._jump(0)
        else:
            logger.info("Reached end of queue")
            self.stop()
