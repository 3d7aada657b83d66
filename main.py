#!/usr/bin/env python

import argparse
import asyncio
import config
import sys
from core.backend import VLCBackend
from core.controls import TransportControls
from core.events import (
    CurrentTrackChanged,
    Event,
    EventBus,
    IngestionCompleted,
    IngestionProgress,
    PlaybackFailed,
    ShuffleChanged,
    ViewChanged,
)
from core.exceptions import UnknownActionError
from core.logging import app_logger, setup_logging
from core.ordering import SearchField
from core.playlist import Playlist
from core.session import PlaybackSession
from eliot import log_message, start_action, write_traceback

HELP = (
    "commands: play, pause, stop, next, prev, shuffle, seek SECONDS, "
    "search FIELD TERM, clear, list, open DIRECTORY, quit"
)


class ConsolePresenter:
    """Prints engine notifications; holds no references into the engine."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self.tracks = []

    def __call__(self, event: Event) -> None:
        if isinstance(event, ViewChanged):
            self.tracks = event.tracks
            self.print_view(event.current_index)
        elif isinstance(event, CurrentTrackChanged):
            if event.now_playing is not None:
                np = event.now_playing
                self.write(f"{config.BUTTON_SYMBOLS['play']} {np.artist} / {np.album} / {np.title} [{event.state.value}]")
                if event.cover is not None:
                    self.write(f"  cover: {event.cover.filepath or event.cover.relative_path}")
        elif isinstance(event, ShuffleChanged):
            self.write(f"{config.BUTTON_SYMBOLS['shuffle']} shuffle {'on' if event.enabled else 'off'}")
        elif isinstance(event, IngestionProgress):
            self.out.write(f"\r{event.done}/{event.total}")
            self.out.flush()
        elif isinstance(event, IngestionCompleted):
            self.write(f"\nadded {event.added} tracks ({event.failed} without tags), {event.covers} covers")
        elif isinstance(event, PlaybackFailed):
            self.write(f"cannot play {event.label}: {event.message}")

    def print_view(self, current_index=None) -> None:
        for index, track in enumerate(self.tracks):
            marker = ">" if index == current_index else " "
            self.write(f"{marker} {index:4d}  {track.label}")

    def write(self, line: str) -> None:
        self.out.write(line + "\n")
        self.out.flush()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog=config.APP_NAME, description="Play a local music library")
    parser.add_argument("directory", help="directory to load")
    parser.add_argument("--shuffle", action="store_true", help="start with shuffle enabled")
    parser.add_argument("--search", default="", help="initial search term")
    parser.add_argument("--field", default=config.DEFAULT_SEARCH_FIELD, choices=[f.value for f in SearchField])
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    parser.add_argument("--log-file", default=config.LOG_FILE)
    return parser.parse_args(argv)


async def run_commands(playlist: Playlist, controls: TransportControls, presenter: ConsolePresenter) -> None:
    loop = asyncio.get_running_loop()
    aliases = {'prev': 'previous'}

    while True:
        try:
            line = await loop.run_in_executor(None, input, "> ")
        except EOFError:
            break

        command, _, rest = line.strip().partition(" ")
        if not command:
            continue
        if command == "quit":
            break

        if command in ("play", "pause", "stop", "next", "prev", "shuffle"):
            try:
                await controls.dispatch(aliases.get(command, command), trigger_source="console")
            except UnknownActionError as e:
                presenter.write(str(e))
        elif command == "seek":
            try:
                playlist.seek(float(rest))
            except ValueError:
                presenter.write("seek expects a number of seconds")
        elif command == "search":
            field, _, term = rest.partition(" ")
            try:
                playlist.set_filter(term, field)
            except ValueError:
                playlist.filter(rest)
        elif command == "clear":
            playlist.clear_filter()
        elif command == "list":
            presenter.print_view(playlist.position_of(playlist.current_track))
        elif command == "open":
            await playlist.add_directory(rest)
        elif command.isdigit() and int(command) < len(playlist.view):
            await playlist.play_track(playlist.view[int(command)], trigger_source="console")
        else:
            presenter.write(HELP)


async def run(args) -> None:
    events = EventBus()
    presenter = ConsolePresenter()
    events.subscribe(presenter)

    backend = VLCBackend()
    session = PlaybackSession(backend, events)
    playlist = Playlist(session, events=events)
    controls = TransportControls(playlist)
    try:
        if args.shuffle:
            playlist.set_shuffle(True)
        playlist.search_term = args.search
        playlist.search_field = SearchField.parse(args.field)
        await playlist.add_directory(args.directory)
        presenter.write(HELP)
        await run_commands(playlist, controls, presenter)
    finally:
        playlist.stop()
        backend.release()


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    with start_action(app_logger, "application_startup"):
        try:
            log_message(message_type="application_init", message=f"Starting {config.APP_NAME} {config.__version__}")
            asyncio.run(run(args))
        except KeyboardInterrupt:
            log_message(message_type="application_exit", message="Interrupted")
        except Exception as e:
            write_traceback()
            log_message(
                message_type="error_occurred",
                error_message=str(e),
                error_type=type(e).__name__,
                context="application_startup",
            )
            print(f"Error in main: {e}")
            sys.exit(1)


if __name__ == "__main__":
    main()
