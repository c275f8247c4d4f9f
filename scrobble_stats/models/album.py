"""Album data models."""

from dataclasses import dataclass
from typing import Optional

UNKNOWN_ALBUM = "Unknown Album"


@dataclass
class Album:
    """Album row model. Identity key is (title, artist_id)."""

    id: Optional[int] = None
    title: str = UNKNOWN_ALBUM
    artist_id: Optional[int] = None
    mbid: str = ""
    image_url: str = ""

    def to_row(self) -> dict:
        """Column values for insertion."""
        return {
            'title': self.title,
            'artist_id': self.artist_id,
            'mbid': self.mbid,
            'image_url': self.image_url
        }

    @classmethod
    def from_row(cls, row) -> 'Album':
        return cls(
            id=row['id'],
            title=row['title'],
            artist_id=row['artist_id'],
            mbid=row['mbid'] or "",
            image_url=row['image_url'] or ""
        )
