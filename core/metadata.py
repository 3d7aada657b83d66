"""Track metadata model and tag extraction for the soundtrack player.

Tags are read once at ingestion time with mutagen. Every field is optional;
blank values are stored as None so display and sorting code only has one
"absent" case to handle.
"""

import asyncio
import io
import mutagen
import mutagen.id3
import mutagen.mp4
from concurrent.futures import ThreadPoolExecutor
from core.exceptions import TagReadError
from core.logging import log_file_operation
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Protocol
from utils.files import SourceEntry


class Metadata(BaseModel):
    """Tags read from one audio file."""

    model_config = ConfigDict(frozen=True)

    artist: str | None = None
    album: str | None = None
    year: str | None = None
    disc_number: str | None = None
    track_number: str | None = None
    title: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class TagExtractor(Protocol):
    """Anything that turns a source entry into Metadata."""

    async def extract(self, entry: SourceEntry) -> Metadata:
        """Read tags, raising TagReadError when the file has none or is unreadable."""
        ...


def _first(tags, key: str) -> str | None:
    if key not in tags:
        return None
    value = tags[key]
    if hasattr(value, "text"):
        value = value.text
    if isinstance(value, list):
        if not value:
            return None
        value = value[0]
    return str(value)


def _mp4_pair(tags, key: str) -> str | None:
    """MP4 stores track/disc numbers as (number, total) tuples."""
    if key not in tags or not tags[key]:
        return None
    number, _total = tags[key][0]
    return str(number) if number else None


def extract_tags(audio: mutagen.FileType) -> dict[str, str | None]:
    """Map the tag layout of an ID3, MP4 or Vorbis style file onto Metadata fields."""
    tags = audio.tags
    if not tags:
        return {}

    # MP3 (ID3)
    if isinstance(tags, mutagen.id3.ID3):
        return {
            "artist": _first(tags, "TPE1"),
            "album": _first(tags, "TALB"),
            "year": _first(tags, "TDRC"),
            "disc_number": _first(tags, "TPOS"),
            "track_number": _first(tags, "TRCK"),
            "title": _first(tags, "TIT2"),
        }

    # MP4/M4A
    if isinstance(tags, mutagen.mp4.MP4Tags):
        return {
            "artist": _first(tags, "\xa9ART"),
            "album": _first(tags, "\xa9alb"),
            "year": _first(tags, "\xa9day"),
            "disc_number": _mp4_pair(tags, "disk"),
            "track_number": _mp4_pair(tags, "trkn"),
            "title": _first(tags, "\xa9nam"),
        }

    # FLAC, OGG, etc.
    return {
        "artist": _first(tags, "artist"),
        "album": _first(tags, "album"),
        "year": _first(tags, "date"),
        "disc_number": _first(tags, "discnumber"),
        "track_number": _first(tags, "tracknumber"),
        "title": _first(tags, "title"),
    }


class MutagenTagExtractor:
    """TagExtractor backed by mutagen, run in a thread pool."""

    def __init__(self, max_workers: int = 4):
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tag-reader")

    async def extract(self, entry: SourceEntry) -> Metadata:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.read, entry)

    def read(self, entry: SourceEntry) -> Metadata:
        """Blocking tag read for a single entry."""
        log_file_operation("tag_read", entry.relative_path)
        try:
            if isinstance(entry.source, bytes):
                audio = mutagen.File(io.BytesIO(entry.source))
            else:
                audio = mutagen.File(str(entry.source))
        except (mutagen.MutagenError, OSError) as e:
            raise TagReadError(entry.relative_path, str(e)) from e

        if audio is None:
            raise TagReadError(entry.relative_path, "unrecognized audio format")
        if not audio.tags:
            raise TagReadError(entry.relative_path, "no tags found")

        return Metadata(**extract_tags(audio))

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)
