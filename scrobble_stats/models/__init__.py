"""Data models for scrobble-stats."""

from .album import UNKNOWN_ALBUM, Album
from .artist import Artist
from .scrobble import UNKNOWN_ARTIST, UNKNOWN_TRACK, Play, Scrobble, format_timestamp
from .track import Track

__all__ = [
    "Album",
    "Artist",
    "Play",
    "Scrobble",
    "Track",
    "UNKNOWN_ALBUM",
    "UNKNOWN_ARTIST",
    "UNKNOWN_TRACK",
    "format_timestamp",
]
