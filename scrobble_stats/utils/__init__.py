"""Utility modules for scrobble-stats."""

from .logger import setup_logger
from .platform import get_config_dir

__all__ = ["setup_logger", "get_config_dir"]
