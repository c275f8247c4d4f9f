"""Track data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Track:
    """Track row model. Identity key is (title, artist_id, album_id)."""

    id: Optional[int] = None
    title: str = ""
    artist_id: Optional[int] = None
    album_id: Optional[int] = None  # Synthetic "Unknown Album" when absent
    mbid: str = ""
    streamable: bool = False
    url: str = ""

    def to_row(self) -> dict:
        """Column values for insertion."""
        return {
            'title': self.title,
            'artist_id': self.artist_id,
            'album_id': self.album_id,
            'mbid': self.mbid,
            'streamable': int(self.streamable),
            'url': self.url
        }

    @classmethod
    def from_row(cls, row) -> 'Track':
        return cls(
            id=row['id'],
            title=row['title'],
            artist_id=row['artist_id'],
            album_id=row['album_id'],
            mbid=row['mbid'] or "",
            streamable=bool(row['streamable']),
            url=row['url'] or ""
        )
