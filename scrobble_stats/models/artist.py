"""Artist data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Artist:
    """Artist row model. Identity key is the exact name."""

    id: Optional[int] = None
    name: str = ""
    mbid: str = ""
    image_url: str = ""

    def to_row(self) -> dict:
        """Column values for insertion."""
        return {'name': self.name, 'mbid': self.mbid, 'image_url': self.image_url}

    @classmethod
    def from_row(cls, row) -> 'Artist':
        return cls(
            id=row['id'],
            name=row['name'],
            mbid=row['mbid'] or "",
            image_url=row['image_url'] or ""
        )
