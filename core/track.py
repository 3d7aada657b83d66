"""Track entity and its playback state machine."""

from __future__ import annotations

from config import STATE_GLYPHS, UNKNOWN_ALBUM, UNKNOWN_ARTIST, UNKNOWN_SONG
from core.logging import log_player_action
from core.metadata import Metadata
from enum import Enum
from typing import TYPE_CHECKING
from utils.files import SourceEntry

if TYPE_CHECKING:
    from core.session import PlaybackSession


class TrackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


def make_label(metadata: Metadata) -> str:
    """Compose the list label: artist - album - disc - track - title.

    Artist, album and title fall back to placeholders; disc and track are
    simply left out when absent.
    """
    parts = [metadata.artist or UNKNOWN_ARTIST, metadata.album or UNKNOWN_ALBUM]
    parts.extend(part for part in (metadata.disc_number, metadata.track_number) if part)
    parts.append(metadata.title or UNKNOWN_SONG)
    return " - ".join(parts)


def make_labels(base: str) -> dict[TrackState, str]:
    return {state: f"{STATE_GLYPHS[state.value]}{base}" for state in TrackState}


class Track:
    """One playable file in the library.

    Tracks are created by ingestion and only change state through play(),
    pause(), resume() and stop(); the Playlist decides which track those are
    called on.
    """

    def __init__(self, track_id: int, source: SourceEntry, metadata: Metadata | None = None):
        self.id = track_id
        self.source = source
        self.tags_read = metadata is not None
        self.metadata = metadata or Metadata()
        self._state = TrackState.STOPPED
        # Labels are built once; only the state prefix differs between them
        base = make_label(self.metadata) if self.tags_read else source.name
        self._labels = make_labels(base)

    def __repr__(self) -> str:
        return f"<Track {self.id} {self.relative_path!r} {self._state.value}>"

    @property
    def relative_path(self) -> str:
        return self.source.relative_path

    @property
    def state(self) -> TrackState:
        return self._state

    @property
    def label(self) -> str:
        return self._labels[self._state]

    @property
    def base_label(self) -> str:
        return self._labels[TrackState.STOPPED]

    def _set_state(self, new_state: TrackState, trigger_source: str = "playlist") -> None:
        old_state = self._state
        self._state = new_state
        log_player_action(
            f"track_{new_state.value}",
            trigger_source=trigger_source,
            track=self.base_label,
            old_state=old_state.value,
            new_state=new_state.value,
        )

    async def play(self, session: PlaybackSession) -> bool:
        """Start playback from zero, or resume when paused.

        Returns False when a newer playback request superseded this one while
        the audio was loading; the track then stays stopped. Raises
        PlaybackError when the backend cannot load the file.
        """
        if self._state is TrackState.PAUSED:
            self.resume(session)
            return True
        if self._state is TrackState.PLAYING:
            return True

        if not await session.start(self):
            return False
        self._set_state(TrackState.PLAYING)
        return True

    def pause(self, session: PlaybackSession) -> None:
        if self._state is not TrackState.PLAYING:
            return
        session.pause()
        self._set_state(TrackState.PAUSED)

    def resume(self, session: PlaybackSession) -> None:
        if self._state is not TrackState.PAUSED:
            return
        session.resume()
        self._set_state(TrackState.PLAYING)

    def stop(self, session: PlaybackSession) -> None:
        if self._state is TrackState.STOPPED:
            return
        session.stop()
        self._set_state(TrackState.STOPPED)

    def mark_stopped(self, trigger_source: str = "automatic") -> None:
        """Record that the backend stopped on its own (end of file, decode error)."""
        if self._state is not TrackState.STOPPED:
            self._set_state(TrackState.STOPPED, trigger_source=trigger_source)
