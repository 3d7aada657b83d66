"""Audio output backends.

The engine only talks to the PlayerBackend protocol. VLCBackend drives libVLC
through python-vlc; its callbacks fire on VLC's own thread, which is why the
PlaybackSession re-enters the event loop before touching playlist state.
"""

import asyncio
import importlib
from collections.abc import Callable
from core.exceptions import PlaybackError
from core.logging import log_player_action
from typing import Any, Protocol
from utils.files import SourceEntry

TimeListener = Callable[[float, float | None], None]
EndedListener = Callable[[], None]
ErrorListener = Callable[[str], None]


class PlayerBackend(Protocol):
    """Decode/output device contract consumed by PlaybackSession."""

    async def load(self, source: SourceEntry) -> Any:
        """Prepare media for `source`; raises PlaybackError when it cannot be loaded."""
        ...

    def set_media(self, media: Any) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> float | None:
        """Length in seconds, None while unknown."""
        ...

    def set_listeners(self, on_time_update: TimeListener, on_ended: EndedListener, on_error: ErrorListener) -> None: ...

    def release(self) -> None: ...


class VLCBackend:
    """PlayerBackend on top of a libVLC media player."""

    def __init__(self, vlc_module=None, instance_args: tuple[str, ...] = ("--no-video", "--quiet")):
        # Imported lazily: python-vlc loads libvlc at import time
        self.vlc = vlc_module or importlib.import_module("vlc")
        self.instance = self.vlc.Instance(*instance_args)
        self.media_player = self.instance.media_player_new()
        self._on_time_update: TimeListener | None = None
        self._on_ended: EndedListener | None = None
        self._on_error: ErrorListener | None = None

        events = self.media_player.event_manager()
        event_type = self.vlc.EventType
        events.event_attach(event_type.MediaPlayerEndReached, self._handle_end_reached)
        events.event_attach(event_type.MediaPlayerTimeChanged, self._handle_time_changed)
        events.event_attach(event_type.MediaPlayerEncounteredError, self._handle_error)

    def set_listeners(self, on_time_update: TimeListener, on_ended: EndedListener, on_error: ErrorListener) -> None:
        self._on_time_update = on_time_update
        self._on_ended = on_ended
        self._on_error = on_error

    async def load(self, source: SourceEntry):
        path = source.path
        if path is None:
            raise PlaybackError(f"{source.relative_path} has no file on disk; the VLC backend plays files only")

        loop = asyncio.get_running_loop()
        exists = await loop.run_in_executor(None, path.is_file)
        if not exists:
            raise PlaybackError(f"File not found: {path}")

        media = self.instance.media_new(str(path))
        if media is None:
            raise PlaybackError(f"VLC could not open {path}")
        return media

    def set_media(self, media) -> None:
        self.media_player.set_media(media)

    def play(self) -> None:
        if self.media_player.play() == -1:
            raise PlaybackError("VLC failed to start playback")

    def pause(self) -> None:
        # set_pause is idempotent, pause() toggles
        self.media_player.set_pause(1)

    def seek(self, seconds: float) -> None:
        self.media_player.set_time(max(0, int(seconds * 1000)))

    @property
    def current_time(self) -> float:
        return max(0, self.media_player.get_time()) / 1000

    @property
    def duration(self) -> float | None:
        length_ms = self.media_player.get_length()
        if length_ms is None or length_ms <= 0:
            return None
        return length_ms / 1000

    def release(self) -> None:
        """Release VLC media player and instance resources."""
        self.media_player.stop()
        self.media_player.set_media(None)
        self.media_player.release()
        self.instance.release()
        log_player_action("vlc_cleanup", trigger_source="cleanup", description="VLC resources released")

    def _handle_end_reached(self, event) -> None:
        if self._on_ended:
            self._on_ended()

    def _handle_time_changed(self, event) -> None:
        if self._on_time_update:
            self._on_time_update(self.current_time, self.duration)

    def _handle_error(self, event) -> None:
        if self._on_error:
            self._on_error("VLC could not decode the current track")
