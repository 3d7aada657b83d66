import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Hypothesis configuration for property-based testing
from hypothesis import HealthCheck, settings
from tests.mocks import FakeBackend

# Register Hypothesis profiles
settings.register_profile("fast", max_examples=50, deadline=None)
settings.register_profile(
    "thorough", max_examples=1000, deadline=None, suppress_health_check=[HealthCheck.too_slow]
)
settings.load_profile("fast")  # Default to fast profile


def pytest_collection_modifyitems(items):
    """Automatically order tests: unit tests first, then property tests.

    Individual tests marked with @pytest.mark.order("last") will run at the very end.
    """
    for item in items:
        # Skip if item already has explicit order marker
        if hasattr(item, 'get_closest_marker') and item.get_closest_marker('order'):
            continue

        test_file = str(item.fspath)
        if 'test_unit_' in test_file:
            item.add_marker(pytest.mark.order(1))
        elif 'test_props_' in test_file:
            item.add_marker(pytest.mark.order(2))


@pytest.fixture
def backend():
    """Fake audio backend that loads instantly."""
    return FakeBackend()


@pytest.fixture
def music_dir(tmp_path):
    """A small library on disk: two albums, one with a cover, plus a stray text file."""
    root = tmp_path / "Music"
    (root / "Artist A" / "Album One").mkdir(parents=True)
    (root / "Artist B" / "Album Two").mkdir(parents=True)
    (root / "Artist A" / "Album One" / "01 intro.mp3").write_bytes(b"\x00")
    (root / "Artist A" / "Album One" / "02 song.mp3").write_bytes(b"\x00")
    (root / "Artist A" / "Album One" / "Folder.JPG").write_bytes(b"\xff\xd8\xff")
    (root / "Artist B" / "Album Two" / "01 other.flac").write_bytes(b"\x00")
    (root / "notes.txt").write_text("not music")
    return root
