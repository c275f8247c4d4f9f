"""Artist/album/track resolution for a single scrobble."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, TypeVar

from ..config.store import InsertOutcome, SQLiteStore
from ..models.album import Album
from ..models.artist import Artist
from ..models.scrobble import Play, Scrobble
from ..models.track import Track

Entity = TypeVar("Entity", Artist, Album, Track)


@dataclass
class Resolution:
    """Result of resolving one scrobble: the stored play, or why it was skipped."""

    track_id: Optional[int] = None
    scrobble_id: Optional[int] = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.skip_reason is None

    @classmethod
    def skipped(cls, reason: str) -> 'Resolution':
        return cls(skip_reason=reason)


class EntityResolver:
    """Resolves or lazily creates the entities a scrobble references.

    Each entity goes through the same insert-or-ignore then look-up step, so
    the first sighting of a key creates the row and every later sighting
    reuses it. Metadata of existing rows is never updated.
    """

    def __init__(self, store: SQLiteStore, logger: logging.Logger):
        """Initialize resolver.

        Args:
            store: Store with an open transaction
            logger: Logger instance
        """
        self.store = store
        self.logger = logger

    def _resolve(
        self,
        entity: Entity,
        table: str,
        key_columns: Sequence[str]
    ) -> Tuple[Optional[Entity], Optional[str]]:
        """Insert-or-ignore an entity, then look it up by key.

        Returns:
            (stored entity, None), or (None, reason) if the insert failed or
            the row cannot be found
        """
        kind = type(entity).__name__
        row = entity.to_row()
        key_values = [row[column] for column in key_columns]

        result = self.store.insert_or_ignore(table, key_columns, row)
        if result.outcome is InsertOutcome.FAILED:
            self.logger.error(f"{kind} insert failed: {result.reason}")
            return None, f"{kind.lower()} {key_values[0]!r} insert failed: {result.reason}"
        if result.outcome is InsertOutcome.INSERTED:
            self.logger.debug(f"Created {kind.lower()} {key_values!r} (id {result.row_id})")

        found = self.store.select_one(table, key_columns, key_values)
        if found is None:
            self.logger.error(f"{kind} lookup found no row for {key_values!r}")
            return None, f"{kind.lower()} {key_values[0]!r} unresolved"

        return type(entity).from_row(found), None

    def resolve(self, scrobble: Scrobble) -> Resolution:
        """Resolve artist, album and track, then record the play.

        Args:
            scrobble: Extracted scrobble

        Returns:
            Resolution with the track and scrobble ids, or a skip reason

        Raises:
            sqlite3.Error: On unexpected storage errors outside an insert
        """
        artist, reason = self._resolve(
            Artist(
                name=scrobble.artist_name,
                mbid=scrobble.artist_mbid,
                image_url=scrobble.image_url
            ),
            'artists',
            ('name',)
        )
        if artist is None:
            return Resolution.skipped(reason)

        album, reason = self._resolve(
            Album(
                title=scrobble.album_name,
                artist_id=artist.id,
                mbid=scrobble.album_mbid,
                image_url=scrobble.image_url
            ),
            'albums',
            ('title', 'artist_id')
        )
        if album is None:
            return Resolution.skipped(reason)

        track, reason = self._resolve(
            Track(
                title=scrobble.track_name,
                artist_id=artist.id,
                album_id=album.id,
                mbid=scrobble.track_mbid,
                streamable=scrobble.streamable,
                url=scrobble.url
            ),
            'tracks',
            ('title', 'artist_id', 'album_id')
        )
        if track is None:
            return Resolution.skipped(reason)

        play = Play(track_id=track.id, timestamp=scrobble.timestamp, date_text=scrobble.date_text)
        play.id = self.store.insert('scrobbles', play.to_row())

        return Resolution(track_id=track.id, scrobble_id=play.id)
