"""Filtering and sorting of the track library.

The view shown to the user is always ``sort_tracks(filter_tracks(library, term, field))``.

Sort policy, in priority order:

1. artist, case-insensitive
2. year, numeric on the leading integer; a missing year sorts first
3. album, case-sensitive
4. disc number, numeric when both sides parse, otherwise lexicographic
5. track number, same rule as disc number
6. title, case-sensitive

Missing text fields compare as the empty string. The sort is stable, so full
ties keep ingestion order.
"""

import re
from collections.abc import Iterable
from core.track import Track
from enum import Enum
from functools import cmp_to_key

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class SearchField(str, Enum):
    ARTIST = "artist"
    ALBUM = "album"
    TITLE = "title"

    @classmethod
    def parse(cls, value: "str | SearchField") -> "SearchField":
        """Accept enum members, their values, and "song" as an alias for title."""
        if isinstance(value, cls):
            return value
        value = value.strip().lower()
        if value == "song":
            return cls.TITLE
        return cls(value)


def parse_leading_int(value: str | None) -> int | None:
    """Integer prefix of a tag value, like JavaScript's parseInt.

    Examples:
        >>> parse_leading_int("3/12")
        3
        >>> parse_leading_int("2012-02-10")
        2012
        >>> parse_leading_int("A1") is None
        True
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _cmp_text(a: str | None, b: str | None, fold_case: bool = False) -> int:
    a = a or ""
    b = b or ""
    if fold_case:
        a, b = a.casefold(), b.casefold()
    return _cmp(a, b)


def _cmp_year(a: str | None, b: str | None) -> int:
    year_a = parse_leading_int(a)
    year_b = parse_leading_int(b)
    if year_a is None and year_b is None:
        return 0
    if year_a is None:
        return -1
    if year_b is None:
        return 1
    return _cmp(year_a, year_b)


def _cmp_number(a: str | None, b: str | None) -> int:
    num_a = parse_leading_int(a)
    num_b = parse_leading_int(b)
    if num_a is not None and num_b is not None:
        return _cmp(num_a, num_b)
    return _cmp_text(a, b)


def compare_tracks(a: Track, b: Track) -> int:
    """Three-way comparison of two tracks by their metadata."""
    ma, mb = a.metadata, b.metadata
    return (
        _cmp_text(ma.artist, mb.artist, fold_case=True)
        or _cmp_year(ma.year, mb.year)
        or _cmp_text(ma.album, mb.album)
        or _cmp_number(ma.disc_number, mb.disc_number)
        or _cmp_number(ma.track_number, mb.track_number)
        or _cmp_text(ma.title, mb.title)
    )


track_sort_key = cmp_to_key(compare_tracks)


def matches(track: Track, term: str, field: SearchField) -> bool:
    """Case-insensitive substring match of `term` against one metadata field."""
    if not term:
        return True
    value = getattr(track.metadata, field.value)
    if value is None:
        return False
    return term.casefold() in value.casefold()


def filter_tracks(tracks: Iterable[Track], term: str, field: SearchField) -> list[Track]:
    return [track for track in tracks if matches(track, term, field)]


def sort_tracks(tracks: Iterable[Track]) -> list[Track]:
    return sorted(tracks, key=track_sort_key)


def build_view(library: Iterable[Track], term: str, field: SearchField) -> list[Track]:
    return sort_tracks(filter_tracks(library, term, field))
