"""Notification models sent from the engine to the presentation layer.

Everything published here is plain data; listeners never get a reference to
a Track or to the playlist itself.
"""

from collections.abc import Callable
from core.covers import CoverArt
from core.track import Track, TrackState
from pydantic import BaseModel


class EventTypes:
    """Event names as they appear in the `event` field."""

    VIEW_CHANGED = "view_changed"
    CURRENT_TRACK_CHANGED = "current_track_changed"
    TIME_UPDATE = "time_update"
    SHUFFLE_CHANGED = "shuffle_changed"
    INGESTION_PROGRESS = "ingestion_progress"
    INGESTION_COMPLETED = "ingestion_completed"
    PLAYBACK_FAILED = "playback_failed"


class TrackSummary(BaseModel):
    """One row of the visible list."""

    id: int
    label: str
    state: TrackState
    relative_path: str
    artist: str | None = None
    album: str | None = None
    title: str | None = None

    @classmethod
    def from_track(cls, track: Track) -> "TrackSummary":
        return cls(
            id=track.id,
            label=track.label,
            state=track.state,
            relative_path=track.relative_path,
            artist=track.metadata.artist,
            album=track.metadata.album,
            title=track.metadata.title,
        )


class NowPlaying(BaseModel):
    """Now-playing details, with display fallbacks already applied."""

    artist: str
    album: str
    disc: str | None = None
    track: str | None = None
    title: str


class ViewChanged(BaseModel):
    event: str = EventTypes.VIEW_CHANGED
    tracks: list[TrackSummary]
    current_index: int | None = None
    search_term: str = ""
    search_field: str = "artist"


class CurrentTrackChanged(BaseModel):
    event: str = EventTypes.CURRENT_TRACK_CHANGED
    track_id: int | None
    state: TrackState
    label: str | None = None
    now_playing: NowPlaying | None = None
    cover: CoverArt | None = None
    view_index: int | None = None
    previous: TrackSummary | None = None


class TimeUpdate(BaseModel):
    event: str = EventTypes.TIME_UPDATE
    current: float
    duration: float | None = None
    formatted: str


class ShuffleChanged(BaseModel):
    event: str = EventTypes.SHUFFLE_CHANGED
    enabled: bool


class IngestionProgress(BaseModel):
    event: str = EventTypes.INGESTION_PROGRESS
    done: int
    total: int


class IngestionCompleted(BaseModel):
    event: str = EventTypes.INGESTION_COMPLETED
    added: int
    failed: int
    covers: int
    total: int


class PlaybackFailed(BaseModel):
    event: str = EventTypes.PLAYBACK_FAILED
    track_id: int
    label: str
    message: str


Event = (
    ViewChanged
    | CurrentTrackChanged
    | TimeUpdate
    | ShuffleChanged
    | IngestionProgress
    | IngestionCompleted
    | PlaybackFailed
)
Listener = Callable[[Event], None]


class EventBus:
    """Fan-out of engine notifications to registered listeners."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)

