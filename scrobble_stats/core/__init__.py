"""Core import pipeline for scrobble-stats."""

from .extractor import extract_scrobble
from .importer import ImportCoordinator, ImportResult, ImportState, import_payload, read_payload
from .normalizer import PayloadShape, detect_shape, normalize, parse_payload
from .resolver import EntityResolver, Resolution

__all__ = [
    "EntityResolver",
    "ImportCoordinator",
    "ImportResult",
    "ImportState",
    "PayloadShape",
    "Resolution",
    "detect_shape",
    "extract_scrobble",
    "import_payload",
    "normalize",
    "parse_payload",
    "read_payload",
]
