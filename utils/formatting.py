import math
from config import UNKNOWN_DURATION


def format_seconds(seconds: float | None) -> str:
    """Format a playback position as MM:SS, or HH:MM:SS past the hour.

    Unknown values (None, NaN, negative) render as a placeholder instead of 00:00.

    Examples:
        >>> format_seconds(75.9)
        '01:15'
        >>> format_seconds(3725)
        '01:02:05'
        >>> format_seconds(None)
        '--:--'
    """
    if seconds is None or math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return UNKNOWN_DURATION

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_progress(current: float | None, duration: float | None) -> str:
    """Format the "current/total" overview shown next to the progress bar."""
    return f"{format_seconds(current)}/{format_seconds(duration)}"
