from collections.abc import Awaitable, Callable
from core.exceptions import UnknownActionError
from core.logging import controls_logger, log_player_action
from core.playlist import Playlist
from eliot import start_action


class TransportControls:
    """Named transport actions for media keys and other host integrations."""

    def __init__(self, playlist: Playlist):
        self.playlist = playlist
        self._actions: dict[str, Callable[[], Awaitable[object]]] = {
            'previous': self.previous,
            'play': self.play_pause,
            'pause': self.pause,
            'next': self.next,
            'stop': self.stop,
            'shuffle': self.shuffle,
        }

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(self._actions)

    async def dispatch(self, name: str, trigger_source: str = "media_key"):
        """Run the action registered under `name`.

        Raises UnknownActionError for names that are not registered.
        """
        action = self._actions.get(name)
        if action is None:
            log_player_action("unknown_action", trigger_source=trigger_source, key_type=name)
            raise UnknownActionError(f"Unknown transport action: {name}")

        with start_action(controls_logger, "transport_action", action=name):
            log_player_action(
                name,
                trigger_source=trigger_source,
                key_type=name,
                message=f"Transport action: {name}",
            )
            return await action()

    async def previous(self) -> bool:
        return await self.playlist.previous(trigger_source="media_key")

    async def play_pause(self) -> bool:
        return await self.playlist.play()

    async def pause(self) -> None:
        self.playlist.pause()

    async def next(self) -> bool:
        return await self.playlist.next(trigger_source="media_key")

    async def stop(self) -> None:
        self.playlist.stop()

    async def shuffle(self) -> bool:
        return self.playlist.toggle_shuffle()
