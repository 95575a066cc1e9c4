"""tunestream - a streaming music client with a queue-aware player."""

__version__ = "0.1.0"
