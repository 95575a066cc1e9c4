"""Centralized Rich Console management.

A single Console instance shared by the CLI commands.
"""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Get or create the shared Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)
