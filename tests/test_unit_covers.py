"""Unit tests for folder cover art lookup."""

import asyncio
import config
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.covers import CoverArtIndex, mime_type_for, parent_of
from tests.mocks import make_entry
from utils.files import SourceEntry


def test_parent_of():
    assert parent_of("Music/Album/01.mp3") == "Music/Album"
    assert parent_of("01.mp3") == ""


def test_mime_type_for():
    assert mime_type_for("folder.jpg") == "image/jpeg"
    assert mime_type_for("folder.PNG") == "image/png"


class TestCoverDetection:
    def test_cover_name_is_case_insensitive(self):
        assert CoverArtIndex.is_cover(make_entry("Music/Album/Folder.JPG"))

    def test_other_images_are_not_covers(self):
        assert not CoverArtIndex.is_cover(make_entry("Music/Album/back.jpg"))

    def test_configured_names(self, monkeypatch):
        monkeypatch.setattr(config, "COVER_FILENAMES", frozenset({"cover.png"}))
        assert CoverArtIndex.is_cover(make_entry("Music/Album/Cover.png"))
        assert not CoverArtIndex.is_cover(make_entry("Music/Album/folder.jpg"))


class TestResolve:
    def test_cover_in_same_folder(self):
        covers = CoverArtIndex()
        covers.register(make_entry("Music/Album/folder.jpg", b"jpeg"))

        cover = covers.resolve("Music/Album/01 Song.mp3")

        assert cover.source == "folder"
        assert cover.relative_path == "Music/Album/folder.jpg"
        assert cover.directory == "Music/Album"
        assert cover.mime_type == "image/jpeg"
        assert not cover.is_placeholder

    def test_cover_of_parent_folder_does_not_apply_to_subfolders(self):
        covers = CoverArtIndex()
        covers.register(make_entry("Album/folder.jpg"))

        cover = covers.resolve("Album/Disc1/song.mp3")

        assert cover.is_placeholder
        assert cover.directory == "Album/Disc1"
        assert cover.filepath == str(config.PLACEHOLDER_COVER)

    def test_empty_index_resolves_placeholder(self):
        assert CoverArtIndex().resolve("song.mp3").is_placeholder

    def test_last_registration_wins(self):
        covers = CoverArtIndex()
        covers.register(make_entry("Music/Album/folder.jpg", b"first"))
        covers.register(make_entry("Music/Album/FOLDER.JPG", b"second"))

        assert len(covers) == 1
        assert covers.get_entry("Music/Album").source == b"second"

    def test_update_upserts(self):
        covers = CoverArtIndex()
        covers.register(make_entry("A/folder.jpg", b"a"))
        covers.register(make_entry("B/folder.jpg", b"b-old"))
        batch = CoverArtIndex()
        batch.register(make_entry("B/folder.jpg", b"b-new"))
        batch.register(make_entry("C/folder.jpg", b"c"))

        covers.update(batch)

        assert sorted(covers.directories()) == ["A", "B", "C"]
        assert covers.get_entry("B").source == b"b-new"
        assert "C" in covers

    def test_disk_cover_carries_filepath(self, tmp_path):
        image = tmp_path / "folder.jpg"
        image.write_bytes(b"jpeg")
        covers = CoverArtIndex()
        covers.register(SourceEntry("Music/folder.jpg", image, "image/jpeg"))

        assert covers.resolve("Music/song.mp3").filepath == str(image)


class TestReadBytes:
    def test_folder_cover_bytes(self):
        covers = CoverArtIndex()
        covers.register(make_entry("Music/folder.jpg", b"jpeg-bytes"))
        cover = covers.resolve("Music/song.mp3")

        assert asyncio.run(covers.read_bytes(cover)) == b"jpeg-bytes"

    def test_placeholder_bytes(self, tmp_path, monkeypatch):
        placeholder = tmp_path / "Initial Cover.jpg"
        placeholder.write_bytes(b"placeholder")
        monkeypatch.setattr(config, "PLACEHOLDER_COVER", placeholder)
        covers = CoverArtIndex()

        assert asyncio.run(covers.read_bytes(covers.resolve("Music/song.mp3"))) == b"placeholder"

    def test_missing_placeholder_reads_none(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "PLACEHOLDER_COVER", tmp_path / "missing.jpg")
        covers = CoverArtIndex()

        assert asyncio.run(covers.read_bytes(covers.resolve("Music/song.mp3"))) is None
