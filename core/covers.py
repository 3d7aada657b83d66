"""Folder-based cover art lookup.

Covers are registered while a directory is ingested and looked up when a track
starts playing, so cover files and audio files can arrive in any order.
"""

import asyncio
import config
from eliot import log_message
from pathlib import PurePosixPath
from pydantic import BaseModel, ConfigDict
from utils.files import SourceEntry


def parent_of(relative_path: str) -> str:
    parent = str(PurePosixPath(relative_path).parent)
    return "" if parent == "." else parent


def mime_type_for(name: str) -> str:
    suffix = PurePosixPath(name).suffix.lower()
    return "image/png" if suffix == ".png" else "image/jpeg"


class CoverArt(BaseModel):
    """A cover image reference handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    directory: str
    mime_type: str
    source: str  # "folder" or "placeholder"
    relative_path: str | None = None
    filepath: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.source == "placeholder"


class CoverArtIndex:
    """Maps a directory path to the cover image found in it."""

    def __init__(self):
        self._covers: dict[str, SourceEntry] = {}

    def __len__(self) -> int:
        return len(self._covers)

    def __contains__(self, directory: str) -> bool:
        return directory in self._covers

    @staticmethod
    def is_cover(entry: SourceEntry) -> bool:
        return entry.name.lower() in config.COVER_FILENAMES

    def register(self, entry: SourceEntry) -> None:
        """Add or replace the cover for the entry's directory."""
        self._covers[entry.parent] = entry
        log_message(message_type="cover_registered", directory=entry.parent, filepath=entry.relative_path)

    def update(self, other: "CoverArtIndex") -> None:
        """Upsert every cover of another index into this one."""
        self._covers.update(other._covers)

    def clear(self) -> None:
        self._covers.clear()

    def directories(self) -> list[str]:
        return list(self._covers)

    def get_entry(self, directory: str) -> SourceEntry | None:
        return self._covers.get(directory)

    def resolve(self, relative_path: str) -> CoverArt:
        """Cover for the folder containing `relative_path`, or the placeholder."""
        directory = parent_of(relative_path)
        entry = self.get_entry(directory)
        if entry is None:
            log_message(message_type="cover_missing", directory=directory, message=f"No cover art for {directory or '/'}")
            return CoverArt(
                directory=directory,
                mime_type=mime_type_for(config.PLACEHOLDER_COVER.name),
                source="placeholder",
                filepath=str(config.PLACEHOLDER_COVER),
            )

        return CoverArt(
            directory=directory,
            mime_type=entry.mime_hint or mime_type_for(entry.name),
            source="folder",
            relative_path=entry.relative_path,
            filepath=str(entry.path) if entry.path else None,
        )

    async def read_bytes(self, cover: CoverArt) -> bytes | None:
        """Load the image data for a resolved cover.

        Returns None when the placeholder file is not available on disk.
        """
        if cover.is_placeholder:
            placeholder = config.PLACEHOLDER_COVER
            if not placeholder.exists():
                return None
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, placeholder.read_bytes)

        entry = self._covers.get(cover.directory)
        if entry is None:
            return None
        return await entry.read_bytes()
