"""
Configuration management for tunestream
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

VALID_REPEAT_MODES = ("none", "all", "one")


@dataclass
class ApiConfig:
    """Configuration for the remote music API."""

    base_url: str = "http://localhost:5000"
    timeout: float = 30.0


@dataclass
class PlayerConfig:
    """Configuration for music player settings."""

    mpv_socket_path: Optional[str] = None
    volume: float = 1.0  # 0.0 - 1.0
    shuffle_on_start: bool = False
    repeat_mode: str = "none"  # none, all, one
    high_quality: bool = False
    show_unplayable: bool = True
    poll_interval: float = 0.1  # seconds between audio/session polls

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0.0 <= self.volume <= 1.0:
            raise ValueError(f"Invalid volume: {self.volume}. Must be within 0.0-1.0")
        if self.repeat_mode not in VALID_REPEAT_MODES:
            raise ValueError(
                f"Invalid repeat mode: {self.repeat_mode!r}. "
                f"Valid modes are: {VALID_REPEAT_MODES}"
            )
        if self.poll_interval <= 0:
            raise ValueError(f"Invalid poll interval: {self.poll_interval}")


@dataclass
class SessionConfig:
    """Configuration for the persisted login session."""

    session_file: Optional[str] = (
        None  # Default: ~/.local/share/tunestream/session.json
    )
    watch_changes: bool = True  # Pick up logins/logouts made by other processes
    debounce_ms: int = 100


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/tunestream/tunestream.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of rotated files to keep
    console_output: bool = False  # Also output to console (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    api: ApiConfig = field(default_factory=ApiConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "tunestream"
    return Path.home() / ".config" / "tunestream"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "tunestream"
    return Path.home() / ".local" / "share" / "tunestream"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Lets a development checkout use its own config file regardless of the
    working directory the app was started from.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/tunestream (or ~/.config/tunestream)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_session_file(config: Config) -> Path:
    """Resolve where the login session is persisted."""
    if config.session.session_file:
        return Path(config.session.session_file).expanduser().resolve()
    return (get_data_dir() / "session.json").resolve()


def get_log_file(config: Config) -> Path:
    """Resolve the log file path."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "tunestream.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# tunestream configuration

[api]
# Base URL of the music API
base_url = "http://localhost:5000"

# Request timeout in seconds
timeout = 30.0

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/tunestream-mpv"

# Default volume (0.0 - 1.0)
volume = 1.0

# Start in shuffle mode
shuffle_on_start = false

# Repeat mode on start: none, all, one
repeat_mode = "none"

# Prefer high quality streams
high_quality = false

# List songs that have no playable media
show_unplayable = true

# Seconds between player/session polls
poll_interval = 0.1

[session]
# Custom session file (default: ~/.local/share/tunestream/session.json)
# session_file = "/path/to/session.json"

# Reflect logins/logouts made by other tunestream processes
watch_changes = true

# Debounce for session file changes in milliseconds
debounce_ms = 100

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/tunestream/tunestream.log)
# log_file = "/path/to/custom/tunestream.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, section by section."""
    config = Config()

    if "api" in toml_data:
        api_data = toml_data["api"]
        try:
            config.api = ApiConfig(
                base_url=str(api_data.get("base_url", config.api.base_url)).rstrip("/"),
                timeout=float(api_data.get("timeout", config.api.timeout)),
            )
        except (TypeError, ValueError) as e:
            print(f"Warning: Invalid api configuration: {e}")
            print("Using default api configuration.")
            config.api = ApiConfig()

    if "player" in toml_data:
        player_data = toml_data["player"]
        try:
            config.player = PlayerConfig(
                mpv_socket_path=player_data.get("mpv_socket_path"),
                volume=float(player_data.get("volume", config.player.volume)),
                shuffle_on_start=player_data.get(
                    "shuffle_on_start", config.player.shuffle_on_start
                ),
                repeat_mode=player_data.get("repeat_mode", config.player.repeat_mode),
                high_quality=player_data.get("high_quality", config.player.high_quality),
                show_unplayable=player_data.get(
                    "show_unplayable", config.player.show_unplayable
                ),
                poll_interval=float(
                    player_data.get("poll_interval", config.player.poll_interval)
                ),
            )
            config.player.validate()
        except (TypeError, ValueError) as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "session" in toml_data:
        session_data = toml_data["session"]
        session_file = session_data.get("session_file")
        if session_file:
            session_file = str(Path(session_file).expanduser())
        config.session = SessionConfig(
            session_file=session_file,
            watch_changes=session_data.get(
                "watch_changes", config.session.watch_changes
            ),
            debounce_ms=session_data.get("debounce_ms", config.session.debounce_ms),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def apply_env_overrides(config: Config) -> Config:
    """Environment variables override TOML values.

    - TUNESTREAM_API_URL
    - TUNESTREAM_LOG_LEVEL
    """
    api_url = os.environ.get("TUNESTREAM_API_URL")
    if api_url:
        config.api.base_url = api_url.rstrip("/")

    log_level = os.environ.get("TUNESTREAM_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default."""
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return apply_env_overrides(Config())

    return apply_env_overrides(parse_config(toml_data))


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
