"""Unit tests for tag extraction.

Tags are built in memory with mutagen's own tag containers, so no audio
fixtures are needed.
"""

import asyncio
import pytest
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.exceptions import TagReadError
from core.metadata import Metadata, MutagenTagExtractor, extract_tags
from mutagen.id3 import ID3, TALB, TDRC, TIT2, TPE1, TPOS, TRCK
from mutagen.mp4 import MP4Tags
from tests.mocks import make_entry
from utils.files import SourceEntry


@pytest.fixture
def id3_audio():
    tags = ID3()
    tags.add(TPE1(encoding=3, text=["Test Artist"]))
    tags.add(TALB(encoding=3, text=["Test Album"]))
    tags.add(TDRC(encoding=3, text=["1990-05-01"]))
    tags.add(TPOS(encoding=3, text=["1/2"]))
    tags.add(TRCK(encoding=3, text=["7/12"]))
    tags.add(TIT2(encoding=3, text=["Test Title"]))
    return SimpleNamespace(tags=tags)


@pytest.fixture
def mp4_audio():
    tags = MP4Tags()
    tags["\xa9ART"] = ["Test Artist"]
    tags["\xa9alb"] = ["Test Album"]
    tags["\xa9day"] = ["1990"]
    tags["disk"] = [(1, 2)]
    tags["trkn"] = [(7, 12)]
    tags["\xa9nam"] = ["Test Title"]
    return SimpleNamespace(tags=tags)


@pytest.fixture
def vorbis_audio():
    return SimpleNamespace(
        tags={
            "artist": ["Test Artist"],
            "album": ["Test Album"],
            "date": ["1990"],
            "tracknumber": ["7"],
            "title": ["Test Title"],
        }
    )


class TestMetadataModel:
    def test_blank_values_become_none(self):
        metadata = Metadata(artist="", album="   ", title=" Song ")
        assert metadata.artist is None
        assert metadata.album is None
        assert metadata.title == "Song"

    def test_frozen(self):
        with pytest.raises(Exception):
            Metadata().artist = "x"


class TestExtractTags:
    def test_id3(self, id3_audio):
        assert Metadata(**extract_tags(id3_audio)) == Metadata(
            artist="Test Artist",
            album="Test Album",
            year="1990-05-01",
            disc_number="1/2",
            track_number="7/12",
            title="Test Title",
        )

    def test_mp4(self, mp4_audio):
        assert Metadata(**extract_tags(mp4_audio)) == Metadata(
            artist="Test Artist",
            album="Test Album",
            year="1990",
            disc_number="1",
            track_number="7",
            title="Test Title",
        )

    def test_vorbis(self, vorbis_audio):
        metadata = Metadata(**extract_tags(vorbis_audio))
        assert metadata.artist == "Test Artist"
        assert metadata.track_number == "7"
        assert metadata.disc_number is None

    def test_no_tags(self):
        assert extract_tags(SimpleNamespace(tags=None)) == {}


class TestMutagenTagExtractor:
    def test_unrecognized_bytes(self):
        extractor = MutagenTagExtractor()
        with pytest.raises(TagReadError, match="unrecognized audio format"):
            extractor.read(make_entry("Music/a.mp3", b"definitely not audio"))

    def test_missing_file(self, tmp_path):
        extractor = MutagenTagExtractor()
        with pytest.raises(TagReadError) as exc_info:
            extractor.read(SourceEntry("Music/gone.mp3", tmp_path / "gone.mp3"))
        assert exc_info.value.relative_path == "Music/gone.mp3"

    def test_file_without_tags(self):
        extractor = MutagenTagExtractor()
        with patch("mutagen.File", return_value=SimpleNamespace(tags=None)):
            with pytest.raises(TagReadError, match="no tags found"):
                extractor.read(make_entry("Music/a.mp3", b"\x00"))

    def test_extract_runs_in_executor(self, vorbis_audio):
        extractor = MutagenTagExtractor(max_workers=1)
        with patch("mutagen.File", return_value=vorbis_audio):
            metadata = asyncio.run(extractor.extract(make_entry("Music/a.flac", b"\x00")))
        extractor.shutdown()
        assert metadata.title == "Test Title"
