import asyncio
import config
import random
from collections.abc import Iterable
from core.covers import CoverArt, CoverArtIndex
from core.events import (
    CurrentTrackChanged,
    EventBus,
    IngestionCompleted,
    IngestionProgress,
    NowPlaying,
    PlaybackFailed,
    ShuffleChanged,
    TrackSummary,
    ViewChanged,
)
from core.exceptions import PlaybackError
from core.library import IngestionResult, LibraryIngestor
from core.logging import log_error, log_player_action, log_playlist_operation, playlist_logger
from core.metadata import Metadata, MutagenTagExtractor, TagExtractor
from core.ordering import SearchField, build_view
from core.session import PlaybackSession
from core.track import Track, TrackState
from eliot import start_action
from utils.files import SourceEntry, scan_directory


class Playlist:
    """The library, its filtered and sorted view, and the navigation pointer.

    All state changes happen on the event loop thread. The view only ever holds
    references to tracks owned by the library.
    """

    def __init__(
        self,
        session: PlaybackSession,
        extractor: TagExtractor | None = None,
        events: EventBus | None = None,
        rng: random.Random | None = None,
        restart_threshold: float = config.RESTART_THRESHOLD,
    ):
        self.session = session
        self.events = events or session.events
        self.ingestor = LibraryIngestor(extractor or MutagenTagExtractor())
        self.random = rng or random.Random()
        self.restart_threshold = restart_threshold

        self.library: list[Track] = []
        self.view: list[Track] = []
        self.covers = CoverArtIndex()
        self.current_track: Track | None = None
        self.current_cover: CoverArt | None = None
        self.shuffling = False
        self.search_term = ""
        self.search_field = SearchField.parse(config.DEFAULT_SEARCH_FIELD)

        self._next_id = 0
        self._positions: dict[int, int] = {}

        session.on_ended(self.handle_ended)
        session.on_error(self.handle_playback_error)

    def __len__(self) -> int:
        return len(self.library)

    # Ingestion

    def _add_track(self, entry: SourceEntry, metadata: Metadata | None) -> Track:
        track = Track(self._next_id, entry, metadata)
        self._next_id += 1
        self.library.append(track)
        return track

    def _publish_progress(self, done: int, total: int) -> None:
        self.events.publish(IngestionProgress(done=done, total=total))

    async def ingest(self, entries: Iterable[SourceEntry]) -> IngestionResult:
        """Add a batch of picked files; the view is rebuilt once, after every tag read settled."""
        with start_action(playlist_logger, "ingest"):
            result = await self.ingestor.ingest(entries, self._add_track, self._publish_progress)
            self.covers.update(result.covers)
            self.refresh_view()
            self.events.publish(
                IngestionCompleted(
                    added=len(result.tracks),
                    failed=result.failed,
                    covers=len(result.covers),
                    total=len(self.library),
                )
            )
            return result

    async def add_directory(self, directory) -> IngestionResult:
        loop = asyncio.get_running_loop()
        entries = await loop.run_in_executor(None, scan_directory, directory)
        return await self.ingest(entries)

    def clear(self) -> None:
        """Stop playback and forget every track and cover."""
        if self.current_track is not None:
            self.current_track.stop(self.session)
        self.session.supersede()
        log_playlist_operation("clear", count=len(self.library))

        self.library = []
        self.covers.clear()
        self.current_track = None
        self.current_cover = None
        self.refresh_view()
        self._publish_current()

    # Filtering and sorting

    def refresh_view(self) -> None:
        self.view = build_view(self.library, self.search_term, self.search_field)
        self._positions = {track.id: index for index, track in enumerate(self.view)}
        log_playlist_operation(
            "refresh_view",
            term=self.search_term,
            field=self.search_field.value,
            view_size=len(self.view),
            library_size=len(self.library),
        )
        self.events.publish(
            ViewChanged(
                tracks=self.summaries(),
                current_index=self.position_of(self.current_track),
                search_term=self.search_term,
                search_field=self.search_field.value,
            )
        )

    def set_filter(self, term: str, field: str | SearchField | None = None) -> None:
        self.search_term = term or ""
        if field is not None:
            self.search_field = SearchField.parse(field)
        self.refresh_view()

    def filter(self, term: str) -> None:
        """Change the search term, keeping the selected field."""
        self.set_filter(term)

    def clear_filter(self) -> None:
        self.set_filter("")

    def filter_by_current(self, field: str | SearchField) -> None:
        """Show everything sharing the current track's artist or album."""
        if self.current_track is None:
            return
        field = SearchField.parse(field)
        self.set_filter(getattr(self.current_track.metadata, field.value) or "", field)

    def position_of(self, track: Track | None) -> int | None:
        """Index of `track` in the view, None when absent or filtered out."""
        if track is None:
            return None
        return self._positions.get(track.id)

    def get_track(self, track_id: int) -> Track | None:
        for track in self.library:
            if track.id == track_id:
                return track
        return None

    def get_track_by_path(self, relative_path: str) -> Track | None:
        for track in self.library:
            if track.relative_path == relative_path:
                return track
        return None

    def summaries(self) -> list[TrackSummary]:
        return [TrackSummary.from_track(track) for track in self.view]

    # Transport

    async def play_track(self, track: Track, trigger_source: str = "gui") -> bool:
        """Make `track` current and play it, stopping whatever played before."""
        with start_action(playlist_logger, "play_track", track_id=track.id, trigger_source=trigger_source):
            previous = self.current_track
            if previous is not None and previous is not track:
                previous.stop(self.session)
            self.current_track = track

            try:
                started = await track.play(self.session)
            except PlaybackError as e:
                self._report_failure(track, str(e))
                return False

            if not started:
                return False

            self.current_cover = self.covers.resolve(track.relative_path)
            self._publish_current(previous if previous is not track else None)
            return True

    async def play(self) -> bool:
        """Play/pause toggle: start the first track, resume, or pause."""
        current = self.current_track
        if current is None:
            if not self.view:
                log_player_action("play_no_tracks", trigger_source="gui", reason="view_empty")
                return False
            return await self.play_track(self.view[0])

        if current.state is TrackState.PAUSED:
            try:
                current.resume(self.session)
            except PlaybackError as e:
                current.mark_stopped()
                self._report_failure(current, str(e))
                return False
            self._publish_current()
            return True

        if current.state is TrackState.PLAYING:
            self.pause()
            return True

        return await self.play_track(current)

    def _cancel_load(self, reason: str) -> bool:
        """Drop a load still in flight so it cannot start playing afterwards."""
        if self.current_track is None or not self.session.loading:
            return False
        self.session.supersede()
        log_player_action("load_cancelled", trigger_source="gui", reason=reason, track=self.current_track.base_label)
        self._publish_current()
        return True

    def pause(self) -> None:
        if self._cancel_load("pause"):
            return
        current = self.current_track
        if current is None or current.state is not TrackState.PLAYING:
            return
        current.pause(self.session)
        self._publish_current()

    def stop(self) -> None:
        if self._cancel_load("stop"):
            return
        current = self.current_track
        if current is None or current.state is TrackState.STOPPED:
            return
        current.stop(self.session)
        self._publish_current()

    async def next(self, trigger_source: str = "gui") -> bool:
        """Advance in view order, or to a random view track when shuffling. Never wraps."""
        current = self.current_track

        if self.shuffling:
            if not self.view:
                log_player_action("next_song_no_queue", trigger_source=trigger_source, reason="view_empty")
                return False
            target = self.random.choice(self.view)
        else:
            position = self.position_of(current)
            if position is None:
                log_player_action("next_song_no_position", trigger_source=trigger_source, reason="current_not_in_view")
                return False
            if position + 1 >= len(self.view):
                log_player_action("next_song_stopped", trigger_source=trigger_source, reason="end_of_view")
                return False
            target = self.view[position + 1]

        if current is not None:
            current.stop(self.session)
        log_player_action("next_track_selected", trigger_source=trigger_source, next_track=target.base_label)
        return await self.play_track(target, trigger_source=trigger_source)

    async def previous(self, trigger_source: str = "gui") -> bool:
        """Restart the current track once it is past the threshold, else go one back in view order."""
        current = self.current_track
        if current is None:
            return False

        if current.state is not TrackState.STOPPED and self.session.current_time >= self.restart_threshold:
            self.session.seek(0)
            log_player_action("previous_restart", trigger_source=trigger_source, track=current.base_label)
            return True

        position = self.position_of(current)
        if position is None or position == 0:
            log_player_action("previous_song_no_filepath", trigger_source=trigger_source, reason="start_of_view")
            return False

        target = self.view[position - 1]
        current.stop(self.session)
        log_player_action("previous_track_selected", trigger_source=trigger_source, previous_track=target.base_label)
        return await self.play_track(target, trigger_source=trigger_source)

    def toggle_shuffle(self) -> bool:
        return self.set_shuffle(not self.shuffling)

    def set_shuffle(self, enabled: bool) -> bool:
        old_state = self.shuffling
        self.shuffling = enabled
        log_player_action(
            "toggle_shuffle",
            trigger_source="gui",
            old_state=old_state,
            new_state=enabled,
            description=f"Shuffle mode {'enabled' if enabled else 'disabled'}",
        )
        self.events.publish(ShuffleChanged(enabled=enabled))
        return enabled

    def seek(self, seconds: float) -> None:
        if self.current_track is None or self.current_track.state is TrackState.STOPPED:
            return
        self.session.seek(seconds)

    def seek_fraction(self, fraction: float) -> bool:
        if self.current_track is None or self.current_track.state is TrackState.STOPPED:
            return False
        return self.session.seek_fraction(fraction)

    # Session callbacks

    async def handle_ended(self) -> None:
        """End of audio: the track stops and playback advances under the active shuffle policy."""
        current = self.current_track
        if current is None or current.state is not TrackState.PLAYING:
            log_player_action("track_end_ignored", trigger_source="automatic", reason="not_playing")
            return

        current.mark_stopped()
        self._publish_current()
        await self.next(trigger_source="automatic")

    def handle_playback_error(self, message: str) -> None:
        """Decode failure reported mid-playback; the track stops, nothing advances."""
        current = self.current_track
        if current is None:
            return
        current.mark_stopped()
        self._report_failure(current, message)

    def _report_failure(self, track: Track, message: str) -> None:
        log_error(playlist_logger, PlaybackError(message), track_id=track.id, filepath=track.relative_path)
        self.events.publish(PlaybackFailed(track_id=track.id, label=track.base_label, message=message))
        self._publish_current()

    # Notifications

    def now_playing(self) -> NowPlaying | None:
        track = self.current_track
        if track is None:
            return None
        metadata = track.metadata
        fallback_title = config.UNKNOWN_TITLE if track.tags_read else track.source.name
        return NowPlaying(
            artist=metadata.artist or config.UNKNOWN_ARTIST,
            album=metadata.album or config.UNKNOWN_ALBUM,
            disc=metadata.disc_number,
            track=metadata.track_number,
            title=metadata.title or fallback_title,
        )

    def _publish_current(self, previous: Track | None = None) -> None:
        track = self.current_track
        self.events.publish(
            CurrentTrackChanged(
                track_id=track.id if track else None,
                state=track.state if track else TrackState.STOPPED,
                label=track.label if track else None,
                now_playing=self.now_playing(),
                cover=self.current_cover if track else None,
                view_index=self.position_of(track),
                previous=TrackSummary.from_track(previous) if previous is not None else None,
            )
        )
