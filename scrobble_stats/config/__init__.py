"""Configuration module for scrobble-stats."""

from .database import DatabaseHandler
from .settings import Settings
from .store import InsertOutcome, InsertResult, SQLiteStore

__all__ = ["DatabaseHandler", "InsertOutcome", "InsertResult", "SQLiteStore", "Settings"]
