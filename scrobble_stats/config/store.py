"""Transactional SQLite handle used by the import pipeline."""

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple

from ..errors import StorageCommitError

# Writable tables and their columns; names are interpolated into SQL
SCHEMA_COLUMNS: Dict[str, Tuple[str, ...]] = {
    'artists': ('id', 'name', 'mbid', 'image_url', 'created_at'),
    'albums': ('id', 'title', 'artist_id', 'mbid', 'image_url', 'created_at'),
    'tracks': ('id', 'title', 'artist_id', 'album_id', 'mbid', 'streamable', 'url', 'created_at'),
    'scrobbles': ('id', 'track_id', 'timestamp', 'date_text', 'created_at'),
}


class InsertOutcome(str, Enum):
    """Result tag of an insert-or-ignore."""

    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


@dataclass
class InsertResult:
    """Outcome of an insert-or-ignore, with the new row id when inserted."""

    outcome: InsertOutcome
    row_id: Optional[int] = None
    reason: Optional[str] = None


def _check_columns(table: str, columns: Sequence[str]) -> None:
    if table not in SCHEMA_COLUMNS:
        raise ValueError(f"Unknown table: {table}")
    unknown = [column for column in columns if column not in SCHEMA_COLUMNS[table]]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


class SQLiteStore:
    """A single connection with explicit transaction control.

    The connection runs with ``isolation_level=None`` so that sqlite3 never
    opens transactions implicitly; ``begin``/``commit``/``rollback`` are the
    only transaction boundaries.
    """

    def __init__(self, conn: sqlite3.Connection):
        """Initialize store.

        Args:
            conn: Connection opened with isolation_level=None
        """
        self.conn = conn

    @classmethod
    def connect(cls, db_path, timeout: float = 30.0) -> 'SQLiteStore':
        """Open a connection to the database file.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for another writer's lock

        Returns:
            SQLiteStore instance
        """
        conn = sqlite3.connect(
            db_path,
            timeout=timeout,
            isolation_level=None
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return cls(conn)

    @property
    def in_transaction(self) -> bool:
        return self.conn.in_transaction

    def _run(self, sql: str) -> None:
        self.conn.execute(sql)

    # Transaction control

    def begin(self) -> None:
        """Open a write transaction, waiting for other writers to finish."""
        self._run("BEGIN IMMEDIATE")

    def commit(self) -> None:
        """Commit the open transaction.

        Raises:
            StorageCommitError: If the commit fails; the transaction is
                rolled back before raising.
        """
        try:
            self._run("COMMIT")
        except sqlite3.Error as e:
            self.rollback()
            raise StorageCommitError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        """Roll back the open transaction, if any."""
        if self.conn.in_transaction:
            self.conn.execute("ROLLBACK")

    def savepoint(self, name: str) -> None:
        self._run(f"SAVEPOINT {name}")

    def release(self, name: str) -> None:
        self._run(f"RELEASE SAVEPOINT {name}")

    def rollback_to(self, name: str) -> None:
        """Undo everything since the savepoint and discard it."""
        self._run(f"ROLLBACK TO SAVEPOINT {name}")
        self._run(f"RELEASE SAVEPOINT {name}")

    # Row operations

    def insert_or_ignore(
        self,
        table: str,
        unique_columns: Sequence[str],
        row: Mapping[str, object]
    ) -> InsertResult:
        """Insert a row unless it collides on the given unique key.

        Only a conflict on ``unique_columns`` is ignored; any other failure
        (NOT NULL, foreign key, trigger abort, I/O) is reported as FAILED.

        Args:
            table: Table name
            unique_columns: Columns of the table's uniqueness constraint
            row: Column values

        Returns:
            InsertResult tagged INSERTED, ALREADY_EXISTS or FAILED
        """
        columns = list(row)
        _check_columns(table, columns)
        _check_columns(table, unique_columns)

        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT ({', '.join(unique_columns)}) DO NOTHING"
        )

        try:
            cursor = self.conn.execute(sql, [row[column] for column in columns])
        except sqlite3.Error as e:
            return InsertResult(InsertOutcome.FAILED, reason=str(e))

        if cursor.rowcount == 0:
            return InsertResult(InsertOutcome.ALREADY_EXISTS)
        return InsertResult(InsertOutcome.INSERTED, row_id=cursor.lastrowid)

    def insert(self, table: str, row: Mapping[str, object]) -> int:
        """Insert a row unconditionally.

        Returns:
            New row id

        Raises:
            sqlite3.Error: If the insert fails
        """
        columns = list(row)
        _check_columns(table, columns)

        cursor = self.conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            [row[column] for column in columns]
        )
        return cursor.lastrowid

    def select_one(
        self,
        table: str,
        key_columns: Sequence[str],
        key_values: Sequence[object]
    ) -> Optional[sqlite3.Row]:
        """Fetch the first row matching the key, or None."""
        if len(key_columns) != len(key_values):
            raise ValueError("key_columns and key_values must have the same length")
        _check_columns(table, key_columns)

        where = " AND ".join(f"{column} = ?" for column in key_columns)
        cursor = self.conn.execute(
            f"SELECT * FROM {table} WHERE {where} LIMIT 1",
            list(key_values)
        )
        return cursor.fetchone()

    def close(self) -> None:
        """Roll back anything still open and close the connection."""
        try:
            self.rollback()
        finally:
            self.conn.close()
