"""Configuration management for scrobble-stats."""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from ..utils.platform import get_config_dir, get_data_dir


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Optional[Path] = None
    timeout_seconds: float = 30.0

    def __post_init__(self):
        """Set default database path if not specified."""
        if self.path is None:
            self.path = get_data_dir() / 'scrobbles.db'
        elif isinstance(self.path, str):
            self.path = Path(self.path).expanduser()

        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


@dataclass
class ImporterConfig:
    """Import pipeline configuration."""

    progress_interval: int = 1000

    def __post_init__(self):
        """Validate configuration."""
        if self.progress_interval < 1:
            raise ValueError("progress_interval must be >= 1")


@dataclass
class StatsConfig:
    """Default row limits for statistics queries."""

    top_artists: int = 50
    top_albums: int = 30
    loved_albums: int = 30
    loved_min_tracks: int = 9
    top_tracks: int = 20
    recent_tracks: int = 100
    all_tracks: int = 500

    def __post_init__(self):
        """Validate configuration."""
        for name, value in asdict(self).items():
            if value < 1:
                raise ValueError(f"{name} must be >= 1")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    path: Optional[Path] = None
    level: str = "INFO"
    console_level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5

    def __post_init__(self):
        """Validate configuration and set defaults."""
        if self.path is None:
            self.path = get_data_dir() / 'scrobble-stats.log'
        elif isinstance(self.path, str):
            self.path = Path(self.path).expanduser()

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        if self.console_level.upper() not in valid_levels:
            raise ValueError(f"console_level must be one of {valid_levels}")


@dataclass
class Settings:
    """Main settings container."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    importer: ImporterConfig = field(default_factory=ImporterConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> 'Settings':
        """Load settings from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Settings instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping: {config_path}")

        try:
            return cls(
                database=DatabaseConfig(**(data.get('database') or {})),
                importer=ImporterConfig(**(data.get('importer') or {})),
                stats=StatsConfig(**(data.get('stats') or {})),
                logging=LoggingConfig(**(data.get('logging') or {})),
            )
        except TypeError as e:
            # Unknown keys in a section
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

    @classmethod
    def from_file_or_default(cls, config_path: Optional[Path] = None) -> 'Settings':
        """Load settings from file or return defaults.

        Args:
            config_path: Path to configuration file (optional)

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = get_config_dir() / 'config.yaml'

        if config_path.exists():
            try:
                return cls.from_file(config_path)
            except (ValueError, yaml.YAMLError) as e:
                logging.warning(f"Failed to load config from {config_path}: {e}")
                logging.warning("Using default configuration")
                return cls()
        else:
            logging.info(f"Config file not found at {config_path}, using defaults")
            return cls()

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save settings to YAML file.

        Args:
            config_path: Path to save configuration (default: config.yaml in config dir)
        """
        if config_path is None:
            config_path = get_config_dir() / 'config.yaml'

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'database': {
                'path': str(self.database.path) if self.database.path else None,
                'timeout_seconds': self.database.timeout_seconds
            },
            'importer': {
                'progress_interval': self.importer.progress_interval
            },
            'stats': asdict(self.stats),
            'logging': {
                'path': str(self.logging.path) if self.logging.path else None,
                'level': self.logging.level,
                'console_level': self.logging.console_level,
                'max_size_mb': self.logging.max_size_mb,
                'backup_count': self.logging.backup_count
            }
        }

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
