"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging and user notices (Loguru)
- Console management (Rich)
"""

from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file,
    get_session_file,
    create_default_config,
    ensure_directories,
)
from .console import get_console, safe_print
from .output import log, set_notice_handler, setup_loguru

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file",
    "get_session_file",
    "create_default_config",
    "ensure_directories",
    # Console
    "get_console",
    "safe_print",
    # Output
    "log",
    "set_notice_handler",
    "setup_loguru",
]
