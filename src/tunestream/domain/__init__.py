"""Domain layer - library, session and playback."""
