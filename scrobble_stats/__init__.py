"""Scrobble history import and listening statistics."""

__version__ = "0.1.0"
