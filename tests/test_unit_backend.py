"""Unit tests for VLCBackend against the mocked vlc module."""

import asyncio
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.backend import VLCBackend
from core.exceptions import PlaybackError
from tests.mocks import MockEventType, MockMedia, make_entry, mock_vlc_module
from utils.files import SourceEntry


@pytest.fixture
def vlc_backend():
    return VLCBackend(vlc_module=mock_vlc_module)


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(b"\x00")
    return SourceEntry("Music/song.mp3", path)


class TestLoad:
    def test_load_file(self, vlc_backend, audio_file):
        media = asyncio.run(vlc_backend.load(audio_file))
        assert isinstance(media, MockMedia)
        assert media.filepath == str(audio_file.path)

    def test_load_missing_file(self, vlc_backend, tmp_path):
        with pytest.raises(PlaybackError, match="File not found"):
            asyncio.run(vlc_backend.load(SourceEntry("Music/gone.mp3", tmp_path / "gone.mp3")))

    def test_load_in_memory_entry(self, vlc_backend):
        with pytest.raises(PlaybackError):
            asyncio.run(vlc_backend.load(make_entry("Music/song.mp3", b"\x00")))


class TestTransport:
    def test_play_pause_seek(self, vlc_backend, audio_file):
        player = vlc_backend.media_player
        vlc_backend.set_media(asyncio.run(vlc_backend.load(audio_file)))

        vlc_backend.play()
        assert player.is_playing()

        vlc_backend.seek(61.5)
        assert vlc_backend.current_time == 61.5

        vlc_backend.pause()
        vlc_backend.pause()
        assert not player.is_playing()
        assert vlc_backend.current_time == 61.5

    def test_play_failure_raises(self, vlc_backend, audio_file):
        vlc_backend.set_media(asyncio.run(vlc_backend.load(audio_file)))
        vlc_backend.media_player.play_result = -1
        with pytest.raises(PlaybackError):
            vlc_backend.play()

    def test_duration_unknown_without_media(self, vlc_backend):
        assert vlc_backend.duration is None
        assert vlc_backend.current_time == 0

    def test_duration_in_seconds(self, vlc_backend, audio_file):
        vlc_backend.set_media(asyncio.run(vlc_backend.load(audio_file)))
        vlc_backend.media_player._set_length(90500)
        assert vlc_backend.duration == 90.5

    def test_release(self, vlc_backend):
        vlc_backend.release()
        assert vlc_backend.media_player.released
        assert vlc_backend.instance.released
        assert vlc_backend.media_player.get_media() is None


class TestEvents:
    def test_listeners_receive_vlc_events(self, vlc_backend, audio_file):
        times, ended, errors = [], [], []
        vlc_backend.set_listeners(lambda c, d: times.append((c, d)), lambda: ended.append(True), errors.append)
        player = vlc_backend.media_player
        vlc_backend.set_media(asyncio.run(vlc_backend.load(audio_file)))
        player._set_length(2000)
        vlc_backend.play()

        player._simulate_playback(1000)
        player._simulate_playback(1000)
        player.event_manager().trigger_event(MockEventType.MediaPlayerEncounteredError, None)

        assert times == [(1.0, 2.0), (2.0, 2.0)]
        assert ended == [True]
        assert len(errors) == 1

    def test_events_without_listeners_are_ignored(self, vlc_backend):
        vlc_backend.media_player.event_manager().trigger_event(MockEventType.MediaPlayerEndReached, None)

    def test_instance_arguments(self):
        backend = VLCBackend(vlc_module=mock_vlc_module, instance_args=("--no-video",))
        assert backend.instance.args == ("--no-video",)
