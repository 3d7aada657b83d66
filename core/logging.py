"""
Logging configuration for the soundtrack player using eliot.

This module provides structured logging throughout the application using eliot,
which provides context-aware logging with support for nested actions and
structured data.
"""

import eliot
import logging
import sys
from eliot import log_message, start_action, write_traceback
from eliot.stdlib import EliotHandler
from pathlib import Path

# Message types that only show up on stdout at DEBUG level
DEBUG_MESSAGES = {
    "entry_ignored",
    "cover_registered",
    "cover_missing",
    "stale_completion_discarded",
    "track_end_ignored",
    "playlist_operation",
}


class HumanReadableDestination:
    """Destination that formats logs in a human-readable format."""

    def __init__(self, file, verbose: bool = False):
        self.file = file
        self.verbose = verbose

    def __call__(self, message):
        """Format and write log message."""
        # Skip internal Eliot messages (action start/status messages)
        if message.get("action_type") and not message.get("message_type"):
            return

        msg_type = message.get("message_type", "")
        if msg_type in DEBUG_MESSAGES and not self.verbose:
            return

        action = message.get("action", msg_type)
        description = message.get("description", "")
        trigger = message.get("trigger_source", "")

        if msg_type == "player_action":
            track = message.get("track", message.get("current_track", ""))
            old_state = message.get("old_state", "")
            new_state = message.get("new_state", "")
            prefix = f"[{trigger.upper()}] " if trigger else ""

            if track and old_state and new_state:
                output = f"{prefix}{action}: {track} ({old_state} → {new_state})"
            elif description:
                output = f"{prefix}{description}"
            elif track:
                output = f"{prefix}{action}: {track}"
            else:
                output = f"{prefix}{action}"
        elif msg_type == "error_occurred":
            output = f"[ERROR] {message.get('error_type', '')}: {message.get('error_message', '')}"
        elif description:
            output = description
        elif "message" in message:
            output = message["message"]
        else:
            return

        if output and output.strip():
            self.file.write(output + "\n")
            self.file.flush()


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    """
    Set up eliot logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to (always logs to stdout as well)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    eliot.add_destination(HumanReadableDestination(sys.stdout, verbose=level <= logging.DEBUG))

    # Raw JSON format for machine parsing
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        eliot.to_file(open(log_path, "a"))

    # Route stdlib logging (mutagen, asyncio) through eliot
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.addHandler(EliotHandler())

    log_message(
        message_type="logging_setup", log_level=log_level, log_file=log_file or "stdout", message="Eliot logging configured"
    )


def get_logger(name: str):
    """
    Get an eliot logger instance for a specific component.

    The returned Logger is meant for start_action() contexts; use
    eliot.log_message() for individual messages.
    """
    from eliot import Logger

    return Logger()


# Global logger instances for different components
app_logger = get_logger("soundtrack_app")
playlist_logger = get_logger("soundtrack_playlist")
player_logger = get_logger("soundtrack_player")
library_logger = get_logger("soundtrack_library")
controls_logger = get_logger("soundtrack_controls")


def log_player_action(action: str, **context):
    """
    Log player actions with context.

    Args:
        action: Player action (play, pause, next, previous, etc.)
        **context: Additional context data
    """
    log_message(message_type="player_action", action=action, **context)


def log_playlist_operation(operation: str, **context):
    """
    Log playlist operations (filter, sort, shuffle) with context.

    Args:
        operation: Playlist operation name
        **context: Additional context data
    """
    log_message(message_type="playlist_operation", operation=operation, **context)


def log_file_operation(operation: str, filepath: str, **context):
    """
    Log file operations with context.

    Args:
        operation: File operation type (read, scan, tag_read, etc.)
        filepath: Path to the file
        **context: Additional context data
    """
    log_message(message_type="file_operation", operation=operation, filepath=filepath, **context)


def log_error(logger: eliot.Logger, error: Exception, **context):
    """
    Log errors with full context and traceback.

    Args:
        logger: Eliot logger instance
        error: Exception that occurred
        **context: Additional context data
    """
    if sys.exc_info()[0] is not None:
        write_traceback(logger, exc_info=sys.exc_info())
    log_message(message_type="error_occurred", error_message=str(error), error_type=type(error).__name__, **context)


__all__ = [
    "app_logger",
    "controls_logger",
    "library_logger",
    "log_error",
    "log_file_operation",
    "log_player_action",
    "log_playlist_operation",
    "player_logger",
    "playlist_logger",
    "setup_logging",
    "start_action",
]
