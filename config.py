from decouple import Csv, config
from pathlib import Path


def get_version():
    """Get version from pyproject.toml"""
    import tomllib

    pyproject_path = Path(__file__).parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, 'rb') as f:
            data = tomllib.load(f)
            return data.get("project", {}).get("version", "unknown")
    return "unknown"


__version__ = get_version()

# App Configuration
APP_NAME = config('SOUNDTRACK_APP_NAME', default="soundtrack")

# Logging Configuration
LOG_LEVEL = config('SOUNDTRACK_LOG_LEVEL', default="INFO")
LOG_FILE = config('SOUNDTRACK_LOG_FILE', default="") or None

# Audio Configuration
DEFAULT_AUDIO_EXTENSIONS = (
    '.aac',
    '.aif',
    '.aiff',
    '.ape',
    '.flac',
    '.m4a',
    '.mp3',
    '.mpc',
    '.ogg',
    '.opus',
    '.wav',
    '.wma',
    '.wv',
)


def _normalize_extensions(extensions) -> frozenset[str]:
    """Lowercase extensions and make sure each one starts with a dot.

    Examples:
        >>> sorted(_normalize_extensions(["MP3", ".flac"]))
        ['.flac', '.mp3']
    """
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith('.') else f".{ext}")
    return frozenset(normalized)


AUDIO_EXTENSIONS = _normalize_extensions(
    config('SOUNDTRACK_AUDIO_EXTENSIONS', default=','.join(DEFAULT_AUDIO_EXTENSIONS), cast=Csv())
)

# Cover art: files with these names register as the cover of their folder
COVER_FILENAMES = frozenset(
    name.lower() for name in config('SOUNDTRACK_COVER_FILENAMES', default='folder.jpg', cast=Csv())
)
PLACEHOLDER_COVER = Path(config('SOUNDTRACK_PLACEHOLDER_COVER', default='Initial Cover.jpg'))

# File System
MAX_SCAN_DEPTH = config('SOUNDTRACK_MAX_SCAN_DEPTH', default=10, cast=int)
TAG_READ_CONCURRENCY = config('SOUNDTRACK_TAG_READ_CONCURRENCY', default=8, cast=int)

# Player Configuration
# previous() restarts the current track instead once playback is this far in (seconds)
RESTART_THRESHOLD = config('SOUNDTRACK_RESTART_THRESHOLD', default=1.0, cast=float)
DEFAULT_SEARCH_FIELD = config('SOUNDTRACK_DEFAULT_SEARCH_FIELD', default='artist')

# Track labels
STATE_GLYPHS = {
    'stopped': '',
    'playing': '⏵︎ ',
    'paused': '⏸︎ ',
}
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_SONG = "Unknown Song"
UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_DURATION = "--:--"

# Transport button symbols used by the console presenter
BUTTON_SYMBOLS = {
    'play': '▶',
    'pause': '⏸',
    'prev': '⏮',
    'next': '⏭',
    'stop': '⏹',
    'shuffle': '🔀',
}
