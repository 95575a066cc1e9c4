"""
MPV audio output over JSON IPC.

Implements the AudioOutput contract on top of an ``mpv --idle`` process.
mpv does not push events to us; ``poll()`` reads its properties and emits
``timeupdate``/``loadedmetadata``/``ended``/``error`` and must be called
regularly from the main loop.
"""

import json
import os
import socket
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .audio import ENDED, ERROR, LOADEDMETADATA, TIMEUPDATE, AudioEvents, MediaError

# Minimum valid duration (seconds) - durations below this indicate metadata errors
MIN_VALID_DURATION = 10.0

# Minimum playback time before allowing "track finished" (seconds)
MIN_PLAYBACK_TIME = 3.0


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def default_socket_path() -> str:
    return str(Path(tempfile.gettempdir()) / f"tunestream-mpv-{os.getpid()}")


class MpvAudioOutput(AudioEvents):
    """Audio output backed by an mpv child process."""

    def __init__(self, socket_path: Optional[str] = None, volume: float = 1.0):
        super().__init__()
        self.socket_path = socket_path or default_socket_path()
        self.process: Optional[subprocess.Popen] = None
        self._source: Optional[str] = None
        self._volume = volume
        self._position = 0.0
        self._duration = 0.0
        self._metadata_sent = False
        self._ended_sent = False
        self._error_sent = False
        self._unpaused_at: Optional[float] = None

    # Process lifecycle

    def start(self) -> bool:
        """Start MPV with JSON IPC. Returns False if it could not be started."""
        logger.info(f"Starting MPV player with socket: {self.socket_path}")

        try:
            if os.path.exists(self.socket_path):
                logger.debug(f"Removing existing socket: {self.socket_path}")
                os.unlink(self.socket_path)

            cmd = [
                "mpv",
                "--idle=yes",
                "--no-video",
                "--no-terminal",
                f"--input-ipc-server={self.socket_path}",
                f"--volume={round(self._volume * 100)}",
                "--keep-open=yes",
                "--load-scripts=no",
            ]

            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )

            timeout = 5.0
            start_time = time.time()
            while not os.path.exists(self.socket_path):
                if time.time() - start_time > timeout:
                    logger.error(f"MPV socket creation timeout after {timeout}s")
                    self.close()
                    return False
                time.sleep(0.1)

            if self._command("get_property", "idle-active") is None:
                logger.error("MPV socket connection test failed")
                self.close()
                return False

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start MPV: {e}")
            self.process = None
            return False

        logger.info("MPV started successfully")
        return True

    def close(self) -> None:
        """Stop MPV process and remove its socket."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass  # Already gone
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    def is_running(self) -> bool:
        """Check if MPV process is alive and its socket exists."""
        if not self.process or self.process.poll() is not None:
            return False
        return os.path.exists(self.socket_path)

    # IPC

    def _command(self, *args: Any) -> Optional[dict[str, Any]]:
        """Send a JSON IPC command; returns mpv's reply, or None on failure."""
        if not os.path.exists(self.socket_path):
            return None

        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(2.0)
                sock.connect(self.socket_path)
                sock.sendall((json.dumps({"command": list(args)}) + "\n").encode("utf-8"))
                response = sock.recv(4096).decode("utf-8")
        except OSError:
            return None

        # mpv may interleave event lines; the reply is the line carrying "error"
        for line in response.splitlines():
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if "error" in data:
                return data if data["error"] == "success" else None
        return None

    def _get_property(self, name: str) -> Any:
        reply = self._command("get_property", name)
        return reply.get("data") if reply else None

    def _set_property(self, name: str, value: Any) -> bool:
        return self._command("set_property", name, value) is not None

    # AudioOutput contract

    @property
    def source(self) -> Optional[str]:
        return self._source

    @source.setter
    def source(self, url: Optional[str]) -> None:
        self._source = url
        self._position = 0.0
        self._duration = 0.0
        self._metadata_sent = False
        self._ended_sent = False
        self._error_sent = False
        self._unpaused_at = None

        if not self.is_running():
            raise MediaError("mpv is not running")

        if url is None:
            self._command("stop")
            return

        # Load paused; play() decides when sound starts
        self._set_property("pause", True)
        if self._command("loadfile", url, "replace") is None:
            raise MediaError(f"mpv could not load {url}")
        logger.debug(f"Loaded source: {url}")

    def play(self) -> None:
        if self._source is None:
            return
        if not self.is_running() or not self._set_property("pause", False):
            raise MediaError("mpv did not start playback")
        self._unpaused_at = time.time()

    def pause(self) -> None:
        if self.is_running():
            self._set_property("pause", True)

    @property
    def current_time(self) -> float:
        return self._position

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        self._position = seconds
        self._ended_sent = False
        if self.is_running() and self._source is not None:
            self._command("seek", seconds, "absolute")

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, level: float) -> None:
        self._volume = max(0.0, min(1.0, level))
        if self.is_running():
            self._set_property("volume", round(self._volume * 100))

    # Event pump

    def poll(self) -> None:
        """Read mpv state and emit events for the current source."""
        if self._source is None:
            return

        if not self.is_running():
            if not self._error_sent:
                self._error_sent = True
                self.emit(ERROR, "mpv stopped responding")
            return

        position = self._get_property("time-pos")
        duration = self._get_property("duration")
        eof = self._get_property("eof-reached")

        if position is not None:
            self._position = position
            self.emit(TIMEUPDATE, position)

        if duration and duration > 0:
            self._duration = duration
            if not self._metadata_sent:
                self._metadata_sent = True
                self.emit(LOADEDMETADATA, duration)

        if not self._ended_sent and self._is_finished(position or 0.0, duration or 0.0, eof):
            self._ended_sent = True
            self.emit(ENDED)

    def _is_finished(self, position: float, duration: float, eof: Any) -> bool:
        """Check if the track finished with multiple validation layers.

        Safeguards:
        1. Minimum playback time (prevents incomplete metadata issues)
        2. Duration sanity check (detects corrupted/incomplete metadata)
        3. Position-based completion check
        4. EOF flag validation (with position confirmation)
        """
        if self._unpaused_at is not None:
            if time.time() - self._unpaused_at < MIN_PLAYBACK_TIME:
                return False

        if 0 < duration < MIN_VALID_DURATION:
            logger.warning(
                f"Suspicious duration={duration:.2f}s, ignoring position-based checks"
            )
            return eof is True and position >= duration - 0.1

        finished_by_position = duration > 0 and position >= duration - 0.5
        finished_by_eof = eof is True and duration > 0 and position >= duration - 1.0

        return finished_by_position or finished_by_eof
