"""PlaybackSession: binds one track at a time to the audio backend."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from core.backend import PlayerBackend
from core.events import EventBus, TimeUpdate
from core.exceptions import PlaybackError
from core.logging import log_error, log_player_action, player_logger
from eliot import log_message, start_action
from typing import TYPE_CHECKING
from utils.formatting import format_progress

if TYPE_CHECKING:
    from core.track import Track


class PlaybackSession:
    """Relays transport commands to the backend and backend events to the engine.

    Every start() takes a new generation number. A load that finishes after a
    newer start() is discarded, so a slow file can never take over playback
    from the track the user asked for afterwards. Backend callbacks may come
    from another thread; they are re-scheduled on the event loop that ran the
    last start().
    """

    def __init__(self, backend: PlayerBackend, events: EventBus | None = None):
        self.backend = backend
        self.events = events or EventBus()
        self._generation = 0
        self._active_generation: int | None = None
        self._loading_generation: int | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._ended_handler: Callable[[], Awaitable[None]] | None = None
        self._error_handler: Callable[[str], None] | None = None
        self._tasks: set[asyncio.Task] = set()

        backend.set_listeners(self._on_backend_time_update, self._on_backend_ended, self._on_backend_error)

    def on_ended(self, handler: Callable[[], Awaitable[None]]) -> None:
        self._ended_handler = handler

    def on_error(self, handler: Callable[[str], None]) -> None:
        self._error_handler = handler

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loading(self) -> bool:
        """True while the latest start() is still waiting on the backend."""
        return self._loading_generation is not None and self._loading_generation == self._generation

    @property
    def current_time(self) -> float:
        return self.backend.current_time

    @property
    def duration(self) -> float | None:
        return self.backend.duration

    async def start(self, track: Track) -> bool:
        """Load `track` and start it from the beginning.

        Returns False when another start() (or supersede()) happened while the
        file was loading. Load failures of a superseded request are dropped too.
        """
        self._loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation

        with start_action(player_logger, "load_track", track_id=track.id, generation=generation):
            self._loading_generation = generation
            try:
                media = await self.backend.load(track.source)
            except PlaybackError:
                if generation != self._generation:
                    self._discard_stale(track, generation)
                    return False
                raise
            finally:
                if self._loading_generation == generation:
                    self._loading_generation = None

            if generation != self._generation:
                self._discard_stale(track, generation)
                return False

            self.backend.set_media(media)
            self.backend.play()
            self._active_generation = generation
            return True

    def supersede(self) -> None:
        """Invalidate any load still in flight and detach the active media."""
        self._generation += 1
        self._active_generation = None

    def pause(self) -> None:
        self.backend.pause()

    def resume(self) -> None:
        self.backend.play()

    def stop(self) -> None:
        self.backend.pause()
        self.backend.seek(0)

    def seek(self, seconds: float) -> None:
        duration = self.backend.duration
        seconds = max(0.0, seconds)
        if duration is not None:
            seconds = min(seconds, duration)
        self.backend.seek(seconds)

    def seek_fraction(self, fraction: float) -> bool:
        """Seek to a fraction of the track length; False while the length is unknown."""
        duration = self.backend.duration
        if duration is None:
            log_player_action("seek_operation_failed", trigger_source="gui", reason="no_duration")
            return False
        fraction = min(max(fraction, 0.0), 1.0)
        log_player_action(
            "seek_operation",
            trigger_source="gui",
            seek_percentage=f"{fraction:.1%}",
            description=f"Seeked to {fraction:.1%}",
        )
        self.backend.seek(duration * fraction)
        return True

    def _discard_stale(self, track: Track, generation: int) -> None:
        log_message(
            message_type="stale_completion_discarded",
            track_id=track.id,
            generation=generation,
            latest_generation=self._generation,
        )

    def _call_in_loop(self, callback, *args) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    # Backend callbacks; may run on the backend's own thread

    def _on_backend_time_update(self, current: float, duration: float | None) -> None:
        self._call_in_loop(self._dispatch_time_update, current, duration)

    def _on_backend_ended(self) -> None:
        self._call_in_loop(self._dispatch_ended, self._active_generation)

    def _on_backend_error(self, message: str) -> None:
        self._call_in_loop(self._dispatch_error, self._active_generation, message)

    # Event loop side

    def _dispatch_time_update(self, current: float, duration: float | None) -> None:
        self.events.publish(TimeUpdate(current=current, duration=duration, formatted=format_progress(current, duration)))

    def _is_current(self, generation: int | None) -> bool:
        return generation is not None and generation == self._active_generation == self._generation

    def _dispatch_ended(self, generation: int | None) -> None:
        if not self._is_current(generation):
            log_message(message_type="track_end_ignored", generation=generation, reason="stale")
            return
        if self._ended_handler is None:
            return
        task = asyncio.ensure_future(self._ended_handler())
        self._tasks.add(task)
        task.add_done_callback(self._finish_task)

    def _finish_task(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log_error(player_logger, task.exception(), context="track_end")

    def _dispatch_error(self, generation: int | None, message: str) -> None:
        if not self._is_current(generation):
            log_message(message_type="stale_completion_discarded", generation=generation, reason=message)
            return
        if self._error_handler is not None:
            self._error_handler(message)
