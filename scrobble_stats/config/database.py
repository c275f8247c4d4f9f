"""Database management for scrobble-stats."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from .store import SQLiteStore

# Plays dated before this are treated as bogus (epoch-zero exports)
MIN_VALID_TIMESTAMP = '1990-01-01'

# Children before parents
CLEAR_ORDER = ('scrobbles', 'tracks', 'albums', 'artists')

_SEARCH_CLAUSE = "(a.name LIKE ? OR t.title LIKE ? OR al.title LIKE ?)"


def _search_params(search: str) -> List[str]:
    pattern = f"%{search}%"
    return [pattern, pattern, pattern]


class DatabaseHandler:
    """SQLite database handler for scrobble history."""

    def __init__(self, db_path: Path, timeout: float = 30.0):
        """Initialize database handler.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a locked database
        """
        self.db_path = db_path
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_database()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections.

        Yields:
            sqlite3.Connection: Database connection
        """
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def open_store(self) -> Iterator[SQLiteStore]:
        """Acquire a transactional store for one import run.

        The store is closed (and any open transaction rolled back) on exit.

        Yields:
            SQLiteStore: Store bound to a fresh connection
        """
        store = SQLiteStore.connect(self.db_path, timeout=self.timeout)
        try:
            yield store
        finally:
            store.close()

    def init_database(self) -> None:
        """Initialize database schema."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS artists (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL CHECK (name <> ''),
                    mbid TEXT,
                    image_url TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(name)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS albums (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    artist_id INTEGER NOT NULL,
                    mbid TEXT,
                    image_url TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (artist_id) REFERENCES artists(id),
                    UNIQUE(title, artist_id)
                )
            """)

            # album_id is never NULL: albumless plays use the artist's "Unknown Album"
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tracks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    artist_id INTEGER NOT NULL,
                    album_id INTEGER NOT NULL,
                    mbid TEXT,
                    streamable BOOLEAN DEFAULT 0,
                    url TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (artist_id) REFERENCES artists(id),
                    FOREIGN KEY (album_id) REFERENCES albums(id),
                    UNIQUE(title, artist_id, album_id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS scrobbles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    track_id INTEGER NOT NULL,
                    timestamp TIMESTAMP NOT NULL,
                    date_text TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (track_id) REFERENCES tracks(id)
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_scrobbles_timestamp ON scrobbles(timestamp)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_scrobbles_track_id ON scrobbles(track_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_artists_name ON artists(name)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_albums_artist_id ON albums(artist_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_tracks_artist_id ON tracks(artist_id)")

    # Maintenance methods

    def clear_all(self) -> Dict[str, int]:
        """Delete every scrobble, track, album and artist.

        Returns:
            Dictionary mapping table name to deleted row count
        """
        deleted = {}
        with self.get_connection() as conn:
            cursor = conn.cursor()
            for table in CLEAR_ORDER:
                cursor.execute(f"DELETE FROM {table}")
                deleted[table] = cursor.rowcount
        return deleted

    def get_table_counts(self) -> Dict[str, int]:
        """Get row counts for every table.

        Returns:
            Dictionary mapping table name to row count
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            counts = {}
            for table in reversed(CLEAR_ORDER):
                cursor.execute(f"SELECT COUNT(*) AS count FROM {table}")
                counts[table] = cursor.fetchone()['count']
            return counts

    # Statistics methods

    def get_overview(self) -> Dict[str, Any]:
        """Get headline listening statistics.

        Returns:
            Dictionary with total_scrobbles, unique_artists, unique_albums,
            first_scrobble and last_scrobble
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    COUNT(s.id) AS total_scrobbles,
                    COUNT(DISTINCT t.artist_id) AS unique_artists,
                    COUNT(DISTINCT t.album_id) AS unique_albums,
                    MIN(s.timestamp) AS first_scrobble,
                    MAX(s.timestamp) AS last_scrobble
                FROM scrobbles s
                JOIN tracks t ON s.track_id = t.id
                WHERE s.timestamp > ?
            """, (MIN_VALID_TIMESTAMP,))
            return dict(cursor.fetchone())

    def get_top_artists(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get the most played artists.

        Args:
            limit: Maximum number of artists

        Returns:
            List of dicts ordered by play count
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    a.name AS artist,
                    COUNT(s.id) AS count,
                    COUNT(DISTINCT t.id) AS tracks,
                    COUNT(DISTINCT t.album_id) AS albums,
                    MIN(s.timestamp) AS first_play,
                    MAX(s.timestamp) AS last_play,
                    a.image_url AS image
                FROM artists a
                JOIN tracks t ON a.id = t.artist_id
                JOIN scrobbles s ON t.id = s.track_id
                GROUP BY a.id, a.name
                ORDER BY count DESC, a.name
                LIMIT ?
            """, (limit,))
            return [dict(row) for row in cursor.fetchall()]

    def get_top_albums(self, limit: int = 30) -> List[Dict[str, Any]]:
        """Get the most played albums.

        Args:
            limit: Maximum number of albums

        Returns:
            List of dicts ordered by play count
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    al.title AS album,
                    a.name AS artist,
                    COUNT(s.id) AS count,
                    al.image_url AS image
                FROM albums al
                JOIN artists a ON al.artist_id = a.id
                JOIN tracks t ON al.id = t.album_id
                JOIN scrobbles s ON t.id = s.track_id
                GROUP BY al.id, al.title, a.name
                ORDER BY count DESC, al.title
                LIMIT ?
            """, (limit,))
            return [dict(row) for row in cursor.fetchall()]

    def get_loved_albums(self, limit: int = 30, min_unique_tracks: int = 9) -> List[Dict[str, Any]]:
        """Get albums listened through most thoroughly.

        Only albums with at least ``min_unique_tracks`` distinct tracks played
        qualify; they are ranked by average plays per track.

        Args:
            limit: Maximum number of albums
            min_unique_tracks: Minimum distinct tracks played

        Returns:
            List of dicts ordered by avg_plays_per_track
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    al.title AS album,
                    a.name AS artist,
                    COUNT(DISTINCT t.id) AS unique_tracks_played,
                    COUNT(s.id) AS total_plays,
                    al.image_url AS image,
                    ROUND(CAST(COUNT(s.id) AS FLOAT) / COUNT(DISTINCT t.id), 1) AS avg_plays_per_track
                FROM albums al
                JOIN artists a ON al.artist_id = a.id
                JOIN tracks t ON al.id = t.album_id
                JOIN scrobbles s ON t.id = s.track_id
                WHERE s.timestamp > ?
                GROUP BY al.id, al.title, a.name
                HAVING unique_tracks_played >= ?
                ORDER BY avg_plays_per_track DESC, unique_tracks_played DESC
                LIMIT ?
            """, (MIN_VALID_TIMESTAMP, min_unique_tracks, limit))
            return [dict(row) for row in cursor.fetchall()]

    def get_recent_tracks(self, limit: int = 100, search: str = "") -> List[Dict[str, Any]]:
        """Get the latest plays, optionally filtered by a search term.

        Args:
            limit: Maximum number of plays
            search: Substring matched against artist, track and album titles

        Returns:
            List of dicts, newest first
        """
        query = """
            SELECT
                t.title AS track,
                a.name AS artist,
                al.title AS album,
                s.timestamp,
                t.url,
                t.streamable
            FROM scrobbles s
            JOIN tracks t ON s.track_id = t.id
            JOIN artists a ON t.artist_id = a.id
            LEFT JOIN albums al ON t.album_id = al.id
        """
        params: List[Any] = []
        if search:
            query += f" WHERE {_SEARCH_CLAUSE}"
            params.extend(_search_params(search))

        query += " ORDER BY s.timestamp DESC, s.id DESC LIMIT ?"
        params.append(limit)

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def get_top_tracks(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Get the most played tracks.

        Args:
            limit: Maximum number of tracks

        Returns:
            List of dicts ordered by play count, then recency
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    t.title AS track,
                    a.name AS artist,
                    al.title AS album,
                    COUNT(s.id) AS play_count,
                    MAX(s.timestamp) AS last_played,
                    t.url,
                    t.streamable
                FROM tracks t
                JOIN artists a ON t.artist_id = a.id
                LEFT JOIN albums al ON t.album_id = al.id
                JOIN scrobbles s ON t.id = s.track_id
                GROUP BY t.id, t.title, a.name, al.title
                ORDER BY play_count DESC, last_played DESC
                LIMIT ?
            """, (limit,))
            return [dict(row) for row in cursor.fetchall()]

    def get_all_tracks(self, limit: int = 500, search: str = "") -> Dict[str, Any]:
        """Get every played track ranked by play count, with paging totals.

        Args:
            limit: Maximum number of tracks returned
            search: Substring matched against artist, track and album titles

        Returns:
            Dictionary with tracks, total_count, showing_count and has_more
        """
        where = "WHERE s.timestamp > ?"
        params: List[Any] = [MIN_VALID_TIMESTAMP]
        if search:
            where += f" AND {_SEARCH_CLAUSE}"
            params.extend(_search_params(search))

        joins = """
            FROM tracks t
            JOIN artists a ON t.artist_id = a.id
            LEFT JOIN albums al ON t.album_id = al.id
            JOIN scrobbles s ON t.id = s.track_id
        """

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT COUNT(DISTINCT t.id) AS total_count {joins} {where}",
                params
            )
            total_count = cursor.fetchone()['total_count']

            cursor.execute(f"""
                SELECT
                    t.title AS track,
                    a.name AS artist,
                    al.title AS album,
                    COUNT(s.id) AS play_count,
                    MAX(s.timestamp) AS last_played,
                    t.url,
                    t.streamable
                {joins}
                {where}
                GROUP BY t.id, t.title, a.name, al.title
                ORDER BY play_count DESC, last_played DESC
                LIMIT ?
            """, params + [limit])
            tracks = [dict(row) for row in cursor.fetchall()]

        return {
            'tracks': tracks,
            'total_count': total_count,
            'showing_count': len(tracks),
            'has_more': total_count > len(tracks)
        }

    def get_monthly_stats(self) -> List[Dict[str, Any]]:
        """Get play counts per calendar month (UTC).

        Returns:
            List of {month: 'YYYY-MM', count} in chronological order
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    strftime('%Y-%m', timestamp) AS month,
                    COUNT(*) AS count
                FROM scrobbles
                WHERE timestamp > ?
                GROUP BY strftime('%Y-%m', timestamp)
                ORDER BY month
            """, (MIN_VALID_TIMESTAMP,))
            return [dict(row) for row in cursor.fetchall()]

    def get_hourly_stats(self) -> List[Dict[str, Any]]:
        """Get play counts per hour of day (UTC).

        Returns:
            24 entries {hour: 'HH:00', count}, hours without plays at zero
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT
                    CAST(strftime('%H', timestamp) AS INTEGER) AS hour,
                    COUNT(*) AS count
                FROM scrobbles
                WHERE timestamp > ?
                GROUP BY strftime('%H', timestamp)
                ORDER BY hour
            """, (MIN_VALID_TIMESTAMP,))
            rows = cursor.fetchall()

        hourly_stats = [{'hour': f"{hour:02d}:00", 'count': 0} for hour in range(24)]
        for row in rows:
            hourly_stats[row['hour']]['count'] = row['count']

        return hourly_stats
