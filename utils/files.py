import asyncio
import mimetypes
import os
import sys
from config import MAX_SCAN_DEPTH
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath


@dataclass(frozen=True)
class SourceEntry:
    """One file handed over by the directory picker.

    `relative_path` always uses forward slashes and starts with the name of the
    picked directory (``"Music/Album/01 Song.mp3"``). `source` is either a path
    on disk or the raw bytes of an in-memory entry.
    """

    relative_path: str
    source: Path | bytes = field(repr=False)
    mime_hint: str | None = None

    @property
    def name(self) -> str:
        return PurePosixPath(self.relative_path).name

    @property
    def parent(self) -> str:
        """Directory part of the relative path ("" for top-level entries)."""
        parent = str(PurePosixPath(self.relative_path).parent)
        return "" if parent == "." else parent

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.relative_path).suffix.lower()

    @property
    def path(self) -> Path | None:
        return self.source if isinstance(self.source, Path) else None

    async def read_bytes(self) -> bytes:
        """Read the entry's bytes without blocking the event loop."""
        if isinstance(self.source, bytes):
            return self.source
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.source.read_bytes)


def normalize_path(path_str):
    if isinstance(path_str, Path):
        return path_str

    path_str = path_str.strip().strip('{}').strip('"')

    if sys.platform == 'darwin' and '/Volumes/' in path_str:
        try:
            real_path = os.path.realpath(os.path.abspath(path_str))
            if os.path.exists(real_path):
                return Path(real_path)
        except (OSError, ValueError):
            pass

    return Path(path_str).expanduser()


def scan_directory(directory, max_depth=MAX_SCAN_DEPTH) -> list[SourceEntry]:
    """List every file below `directory` as a SourceEntry.

    Nothing is filtered here; ingestion decides what is a cover and what is
    audio. Symlinked directories are not followed and unreadable directories
    are skipped.
    """
    found = []
    base_path = normalize_path(directory)
    root_name = base_path.resolve().name

    def walk(path, prefix, current_depth):
        if current_depth > max_depth:
            return

        try:
            items = sorted(path.iterdir())
        except (PermissionError, OSError):
            return

        for item in items:
            relative = f"{prefix}/{item.name}"
            try:
                if item.is_file():
                    mime_hint, _ = mimetypes.guess_type(item.name)
                    found.append(SourceEntry(relative, item, mime_hint))
                elif item.is_dir() and not item.is_symlink():
                    walk(item, relative, current_depth + 1)
            except OSError:
                continue

    walk(base_path, root_name, 1)
    return found
