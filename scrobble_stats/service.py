"""Application service wiring settings, logging and storage together."""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from .config.database import DatabaseHandler
from .config.settings import Settings
from .core.importer import ImportCoordinator, ImportResult, read_payload
from .utils import setup_logger


class ScrobbleStatsService:
    """Entry point for imports and maintenance on one scrobble database."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config_path: Optional[Path] = None,
        logger: Optional[logging.Logger] = None
    ):
        """Initialize the service.

        Args:
            settings: Settings to use (loaded from config_path if omitted)
            config_path: Path to configuration file (optional)
            logger: Logger to use (configured from settings if omitted)
        """
        self.settings = settings or Settings.from_file_or_default(config_path)

        if logger is None:
            logger = setup_logger(
                log_file=self.settings.logging.path,
                level=self.settings.logging.level,
                max_size_mb=self.settings.logging.max_size_mb,
                backup_count=self.settings.logging.backup_count,
                console=True,
                console_level=self.settings.logging.console_level
            )
        self.logger = logger

        self.db = DatabaseHandler(
            self.settings.database.path,
            timeout=self.settings.database.timeout_seconds
        )

    def import_bytes(
        self,
        data: bytes,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> ImportResult:
        """Import a raw export buffer as one batch.

        Args:
            data: Raw export bytes
            progress_callback: Called with the processed count periodically

        Returns:
            ImportResult

        Raises:
            ScrobbleImportError: If the import fails as a whole
        """
        records = read_payload(data, self.logger)

        with self.db.open_store() as store:
            coordinator = ImportCoordinator(
                store,
                self.logger,
                progress_interval=self.settings.importer.progress_interval,
                progress_callback=progress_callback
            )
            return coordinator.import_batch(records)

    def import_file(
        self,
        file_path: Path,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> ImportResult:
        """Import an export file.

        Args:
            file_path: Path to a JSON export
            progress_callback: Called with the processed count periodically

        Returns:
            ImportResult

        Raises:
            FileNotFoundError: If the file doesn't exist
            ScrobbleImportError: If the import fails as a whole
        """
        self.logger.info(f"Importing data from {file_path}...")
        data = Path(file_path).read_bytes()
        return self.import_bytes(data, progress_callback=progress_callback)

    def clear(self) -> Dict[str, int]:
        """Delete all imported data.

        Returns:
            Dictionary mapping table name to deleted row count
        """
        deleted = self.db.clear_all()
        self.logger.info(
            "Cleared all data: " + ", ".join(f"{count} {table}" for table, count in deleted.items())
        )
        return deleted
