"""Field extraction from raw Last.fm-style scrobble records.

Extraction is total: every field has a default, so any JSON value yields a
Scrobble. Empty strings count as missing.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from ..models.album import UNKNOWN_ALBUM
from ..models.scrobble import UNKNOWN_ARTIST, UNKNOWN_TRACK, Scrobble

IMAGE_SIZE = "extralarge"


def _text(value: Any) -> Optional[str]:
    """Return a non-empty string form of a scalar, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _field(value: Any, key: str) -> Optional[str]:
    if isinstance(value, Mapping):
        return _text(value.get(key))
    return None


def _named(value: Any) -> Optional[str]:
    """Name of an artist/album given as {"#text": ...}, {"name": ...} or a string."""
    if isinstance(value, Mapping):
        return _text(value.get('#text')) or _text(value.get('name'))
    return _text(value)


def _timestamp(date: Any, now: datetime) -> datetime:
    uts = date.get('uts') if isinstance(date, Mapping) else None
    if isinstance(uts, bool) or uts is None:
        return now
    try:
        seconds = int(uts.strip() if isinstance(uts, str) else uts)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return now


def _image_url(images: Any) -> str:
    if not isinstance(images, list):
        return ""
    for image in images:
        if isinstance(image, Mapping) and image.get('size') == IMAGE_SIZE:
            return _text(image.get('#text')) or ""
    return ""


def extract_scrobble(record: Any, now: Optional[datetime] = None) -> Scrobble:
    """Map one raw export record to a canonical Scrobble.

    Args:
        record: Raw record (anything that is not an object is treated as {})
        now: Timestamp used when the record has no usable ``date.uts``;
            defaults to the current UTC time

    Returns:
        Scrobble with every field populated
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if not isinstance(record, Mapping):
        record = {}

    artist = record.get('artist')
    album = record.get('album')
    date = record.get('date')

    return Scrobble(
        artist_name=_named(artist) or UNKNOWN_ARTIST,
        artist_mbid=_field(artist, 'mbid') or "",
        track_name=_text(record.get('name')) or _text(record.get('track')) or UNKNOWN_TRACK,
        track_mbid=_text(record.get('mbid')) or "",
        album_name=_named(album) or UNKNOWN_ALBUM,
        album_mbid=_field(album, 'mbid') or "",
        timestamp=_timestamp(date, now),
        date_text=_field(date, '#text') or "",
        image_url=_image_url(record.get('image')),
        streamable=record.get('streamable') == "1",
        url=_text(record.get('url')) or "",
    )
