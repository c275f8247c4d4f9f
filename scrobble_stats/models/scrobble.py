"""Scrobble (play event) models."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_TRACK = "Unknown Track"


def format_timestamp(value: datetime) -> str:
    """Format an instant as an ISO-8601 UTC string with a Z suffix.

    Example: 2001-09-09T01:46:40.000Z
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"


@dataclass
class Scrobble:
    """Canonical play event extracted from one raw export record."""

    artist_name: str
    track_name: str
    album_name: str
    timestamp: datetime
    artist_mbid: str = ""
    track_mbid: str = ""
    album_mbid: str = ""
    date_text: str = ""
    image_url: str = ""
    streamable: bool = False
    url: str = ""


@dataclass
class Play:
    """Stored scrobble row."""

    id: Optional[int] = None
    track_id: Optional[int] = None
    timestamp: Optional[datetime] = None
    date_text: str = ""

    def to_row(self) -> dict:
        """Column values for insertion."""
        return {
            'track_id': self.track_id,
            'timestamp': format_timestamp(self.timestamp),
            'date_text': self.date_text
        }
