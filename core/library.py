import asyncio
import config
from collections.abc import Callable, Iterable
from core.covers import CoverArtIndex
from core.exceptions import TagReadError
from core.logging import library_logger, log_error, log_file_operation
from core.metadata import Metadata, TagExtractor
from core.track import Track
from dataclasses import dataclass, field
from eliot import log_message, start_action
from utils.files import SourceEntry

TrackFactory = Callable[[SourceEntry, Metadata | None], Track]
ProgressCallback = Callable[[int, int], None]


def is_audio(entry: SourceEntry) -> bool:
    return entry.suffix in config.AUDIO_EXTENSIONS


@dataclass
class IngestionResult:
    """Outcome of one ingestion batch."""

    tracks: list[Track] = field(default_factory=list)
    covers: CoverArtIndex = field(default_factory=CoverArtIndex)
    failed: int = 0
    ignored: int = 0


def classify_entries(entries: Iterable[SourceEntry]) -> tuple[CoverArtIndex, list[SourceEntry], int]:
    """Split a picked directory into covers, audio candidates and ignored files."""
    covers = CoverArtIndex()
    candidates = []
    ignored = 0

    for entry in entries:
        if CoverArtIndex.is_cover(entry):
            covers.register(entry)
        elif is_audio(entry):
            candidates.append(entry)
        else:
            ignored += 1
            log_message(message_type="entry_ignored", filepath=entry.relative_path)

    return covers, candidates, ignored


class LibraryIngestor:
    """Reads tags for a batch of entries concurrently and turns them into Tracks.

    Tag reads complete in any order. Each completion, successful or not,
    produces exactly one Track through `make_track`.
    """

    def __init__(self, extractor: TagExtractor, concurrency: int = config.TAG_READ_CONCURRENCY):
        self.extractor = extractor
        self.concurrency = max(1, concurrency)

    async def ingest(
        self,
        entries: Iterable[SourceEntry],
        make_track: TrackFactory,
        on_progress: ProgressCallback | None = None,
    ) -> IngestionResult:
        covers, candidates, ignored = classify_entries(entries)
        result = IngestionResult(covers=covers, ignored=ignored)
        total = len(candidates)
        semaphore = asyncio.Semaphore(self.concurrency)

        log_message(
            message_type="library_scan_start",
            file_count=total,
            cover_count=len(covers),
            message=f"Reading tags of {total} files",
        )

        async def read_one(entry: SourceEntry) -> None:
            async with semaphore:
                metadata = await self._read_tags(entry)
            if metadata is None:
                result.failed += 1
            result.tracks.append(make_track(entry, metadata))
            if on_progress:
                on_progress(len(result.tracks), total)

        with start_action(library_logger, "ingest_batch", file_count=total):
            await asyncio.gather(*(read_one(entry) for entry in candidates))

        log_message(
            message_type="library_scan_complete",
            added=len(result.tracks),
            failed=result.failed,
            ignored=result.ignored,
            message=f"Added {len(result.tracks)} tracks ({result.failed} without tags), {len(covers)} covers",
        )
        return result

    async def _read_tags(self, entry: SourceEntry) -> Metadata | None:
        try:
            return await self.extractor.extract(entry)
        except TagReadError as e:
            log_file_operation("tag_read_failed", entry.relative_path, reason=e.reason)
        except Exception as e:
            # Any extractor failure still yields a track
            log_error(library_logger, e, filepath=entry.relative_path)
        return None
