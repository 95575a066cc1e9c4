"""Liked songs, kept in the order they were liked."""

from typing import Iterator, Union

from tunestream.domain.library.models import Track


def _track_id(track: Union[Track, str]) -> str:
    return track.id if isinstance(track, Track) else track


class LikeSet:
    """Set of liked tracks keyed by id, iterating in like order."""

    def __init__(self) -> None:
        self._tracks: dict[str, Track] = {}

    def __contains__(self, track: object) -> bool:
        if not isinstance(track, (Track, str)):
            return False
        return _track_id(track) in self._tracks

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks.values())

    @property
    def ids(self) -> list[str]:
        return list(self._tracks)

    def toggle(self, track: Track) -> bool:
        """Like or unlike a track.

        Returns:
            True if the track is liked afterwards
        """
        if track.id in self._tracks:
            del self._tracks[track.id]
            return False
        self._tracks[track.id] = track
        return True

    def discard(self, track: Union[Track, str]) -> None:
        self._tracks.pop(_track_id(track), None)
