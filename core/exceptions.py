"""
Defines custom exceptions for the player to allow for more specific error handling.
"""


class SoundtrackError(Exception):
    """Base exception for all application-specific errors."""


class TagReadError(SoundtrackError):
    """Raised when a file's tags cannot be read."""

    def __init__(self, relative_path: str, reason: str):
        super().__init__(f"Could not read tags from {relative_path}: {reason}")
        self.relative_path = relative_path
        self.reason = reason


class PlaybackError(SoundtrackError):
    """Raised when the audio backend cannot load or decode a track."""


class UnknownActionError(SoundtrackError):
    """Raised when a transport action name is not registered."""
