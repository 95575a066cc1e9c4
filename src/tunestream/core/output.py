"""
Unified output system using Loguru.

Every message goes to the log file; user-facing notices are additionally
routed to whichever front end registered a notice handler, or printed.
"""

import sys
import threading
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

NoticeHandler = Callable[[str, str], None]

_notice_handler: Optional[NoticeHandler] = None
_notice_lock = threading.Lock()


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru with a rotating file sink.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Size at which the log file is rotated
        backup_count: Number of rotated files to keep
        console_output: Also log to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_notice_handler(handler: Optional[NoticeHandler]) -> None:
    """
    Route user-facing notices to a front end instead of stdout.

    Args:
        handler: Called with (message, level); None restores printing
    """
    global _notice_handler
    with _notice_lock:
        _notice_handler = handler
    logger.debug(f"Notice handler {'set' if handler else 'cleared'}")


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the log file AND shows the message to the user.

    Use this instead of print() for transient notices (failed requests,
    playback problems) that the user should see.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    with _notice_lock:
        handler = _notice_handler

    if handler is not None:
        handler(message, level)
    elif level != "debug":
        print(message)
