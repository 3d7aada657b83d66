from tests.mocks.backend import FakeBackend, FakeMedia, FakeTagExtractor, make_entry, settle
from tests.mocks.vlc_mock import (
    MockEventManager,
    MockEventType,
    MockInstance,
    MockMedia,
    MockMediaPlayer,
    mock_vlc_module,
)

__all__ = [
    'FakeBackend',
    'FakeMedia',
    'FakeTagExtractor',
    'MockEventManager',
    'MockEventType',
    'MockInstance',
    'MockMedia',
    'MockMediaPlayer',
    'make_entry',
    'settle',
    'mock_vlc_module',
]
