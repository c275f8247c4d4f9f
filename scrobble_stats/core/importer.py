"""Batch import of scrobble exports."""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from ..config.store import SQLiteStore
from ..errors import StorageCommitError
from .extractor import extract_scrobble
from .normalizer import detect_shape, normalize, parse_payload
from .resolver import EntityResolver

RECORD_SAVEPOINT = "scrobble_record"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ImportState(str, Enum):
    """Lifecycle of an import batch."""

    IDLE = "idle"
    TRANSACTION_OPEN = "transaction_open"
    COMMITTING = "committing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class ImportResult:
    """Outcome of a committed batch."""

    processed_count: int = 0
    total_count: int = 0

    @property
    def skipped_count(self) -> int:
        return self.total_count - self.processed_count


class ImportCoordinator:
    """Runs a batch of raw records through extraction and resolution.

    The whole batch shares one transaction and is committed at the end; a
    record that fails to resolve is rolled back to its savepoint and skipped
    without affecting the rest of the batch.
    """

    def __init__(
        self,
        store: SQLiteStore,
        logger: logging.Logger,
        progress_interval: int = 1000,
        progress_callback: Optional[Callable[[int], None]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize coordinator.

        Args:
            store: Store without an open transaction
            logger: Logger instance
            progress_interval: Report progress every N processed records
            progress_callback: Called with the processed count at each report
            clock: Source of the fallback timestamp for undated records
        """
        if progress_interval < 1:
            raise ValueError("progress_interval must be >= 1")

        self.store = store
        self.logger = logger
        self.progress_interval = progress_interval
        self.progress_callback = progress_callback
        self.clock = clock or _utc_now
        self.state = ImportState.IDLE

    def _import_record(
        self,
        resolver: EntityResolver,
        index: int,
        record: Any,
        now: datetime
    ) -> bool:
        """Resolve one record inside its own savepoint.

        Returns:
            True if a scrobble row was written

        Raises:
            StorageCommitError: If the batch transaction did not survive
                the record
        """
        self._savepoint_op(self.store.savepoint, index)
        try:
            resolution = resolver.resolve(extract_scrobble(record, now))
        except Exception as e:
            self._discard_record(index, f"{type(e).__name__}: {e}", e)
            self.logger.error(f"Skipping record {index}: {type(e).__name__}: {e}")
            return False

        if not resolution.ok:
            self._discard_record(index, resolution.skip_reason)
            self.logger.warning(f"Skipping record {index}: {resolution.skip_reason}")
            return False

        self._savepoint_op(self.store.release, index)
        return True

    def _savepoint_op(self, operation: Callable[[str], None], index: int) -> None:
        try:
            operation(RECORD_SAVEPOINT)
        except sqlite3.Error as e:
            raise StorageCommitError(f"Savepoint failed at record {index}: {e}") from e

    def _discard_record(
        self,
        index: int,
        reason: str,
        cause: Optional[BaseException] = None
    ) -> None:
        """Roll one record back to its savepoint.

        Some storage failures (ROLLBACK triggers, full disk, I/O errors) end
        the whole transaction, taking the savepoint with it.
        """
        if not self.store.in_transaction:
            raise StorageCommitError(
                f"Import transaction aborted at record {index}: {reason}"
            ) from cause
        self._savepoint_op(self.store.rollback_to, index)

    def _report_progress(self, processed: int) -> None:
        self.logger.info(f"Processed {processed} scrobbles...")
        if self.progress_callback:
            self.progress_callback(processed)

    def import_batch(self, records: Iterable[Any]) -> ImportResult:
        """Import raw records in order as one transaction.

        Args:
            records: Raw play records

        Returns:
            ImportResult with processed and total counts

        Raises:
            StorageCommitError: If the transaction cannot be opened or
                committed; nothing from the batch is persisted
        """
        if self.state in (ImportState.TRANSACTION_OPEN, ImportState.COMMITTING):
            raise RuntimeError("An import batch is already in progress")

        result = ImportResult()
        now = self.clock()
        resolver = EntityResolver(self.store, self.logger)

        try:
            self.store.begin()
        except sqlite3.Error as e:
            self.state = ImportState.ABORTED
            raise StorageCommitError(f"Could not open import transaction: {e}") from e
        self.state = ImportState.TRANSACTION_OPEN

        try:
            for index, record in enumerate(records):
                result.total_count += 1
                if not self._import_record(resolver, index, record, now):
                    continue

                result.processed_count += 1
                if result.processed_count % self.progress_interval == 0:
                    self._report_progress(result.processed_count)
        except BaseException:
            self.state = ImportState.ABORTED
            self.store.rollback()
            raise

        self.state = ImportState.COMMITTING
        try:
            self.store.commit()
        except StorageCommitError as e:
            self.state = ImportState.ABORTED
            self.logger.error(f"Import of {result.total_count} records rolled back: {e}")
            raise

        self.state = ImportState.DONE
        self.logger.info(
            f"Successfully imported {result.processed_count} scrobbles "
            f"({result.skipped_count} skipped)"
        )
        return result


def read_payload(data: bytes, logger: logging.Logger) -> List[Any]:
    """Parse a raw export buffer into its ordered play records.

    Touches no storage, so a bad export fails before a database is opened.

    Raises:
        MalformedInputError: If the buffer is not UTF-8 JSON
        UnsupportedShapeError: If the JSON is not a known export shape
    """
    payload = parse_payload(data)
    shape = detect_shape(payload)
    records = normalize(payload)

    logger.info(f"Found {len(records)} tracks to import ({shape.value} export)")
    return records


def import_payload(
    store: SQLiteStore,
    data: bytes,
    logger: logging.Logger,
    progress_interval: int = 1000,
    progress_callback: Optional[Callable[[int], None]] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> ImportResult:
    """Parse a raw export buffer and import every play in it.

    Args:
        store: Store without an open transaction
        data: Raw export bytes
        logger: Logger instance
        progress_interval: Report progress every N processed records
        progress_callback: Called with the processed count at each report
        clock: Source of the fallback timestamp for undated records

    Returns:
        ImportResult

    Raises:
        MalformedInputError: If the buffer is not UTF-8 JSON
        UnsupportedShapeError: If the JSON is not a known export shape
        StorageCommitError: If the batch cannot be committed
    """
    records = read_payload(data, logger)

    coordinator = ImportCoordinator(
        store,
        logger,
        progress_interval=progress_interval,
        progress_callback=progress_callback,
        clock=clock
    )
    return coordinator.import_batch(records)
