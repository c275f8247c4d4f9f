"""Export parsing and envelope shape detection."""

import json
from enum import Enum
from typing import Any, List

from ..errors import MalformedInputError, UnsupportedShapeError


class PayloadShape(str, Enum):
    """Known scrobble export envelopes, in detection priority order."""

    PAGES = "pages"                  # [{"track": [...]}, {"track": [...]}]
    FLAT = "flat"                    # [{...}, {...}]
    RECENT_TRACKS = "recenttracks"   # {"recenttracks": {"track": [...]}}
    TRACK_LIST = "track"             # {"track": [...]}


def _has_track_list(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get('track'), list)


def parse_payload(data: bytes) -> Any:
    """Decode and parse a raw export buffer.

    Args:
        data: Bytes believed to hold UTF-8 JSON (a leading BOM is allowed)

    Returns:
        Parsed JSON document

    Raises:
        MalformedInputError: If the bytes are not UTF-8 or not valid JSON
    """
    try:
        text = data.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"Input is not valid UTF-8: {e}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Input is not valid JSON: {e}") from e


def detect_shape(payload: Any) -> PayloadShape:
    """Work out which export envelope a parsed document uses.

    An array counts as pages only when its first element carries a ``track``
    array; any other array is taken as a flat list of plays.

    Raises:
        UnsupportedShapeError: If no known envelope matches
    """
    if isinstance(payload, list):
        if payload and _has_track_list(payload[0]):
            return PayloadShape.PAGES
        return PayloadShape.FLAT

    if isinstance(payload, dict):
        if _has_track_list(payload.get('recenttracks')):
            return PayloadShape.RECENT_TRACKS
        if _has_track_list(payload):
            return PayloadShape.TRACK_LIST

    raise UnsupportedShapeError(
        f"Unsupported JSON structure: top-level {type(payload).__name__} "
        "is not a play list, a page list, {recenttracks: {track: [...]}} or {track: [...]}"
    )


def normalize(payload: Any) -> List[Any]:
    """Flatten a parsed export into its raw play records, in order.

    Args:
        payload: Parsed JSON document

    Returns:
        List of raw records

    Raises:
        UnsupportedShapeError: If no known envelope matches
    """
    shape = detect_shape(payload)

    if shape is PayloadShape.PAGES:
        records = []
        for page in payload:
            # Pages without a track array contribute nothing
            if _has_track_list(page):
                records.extend(page['track'])
        return records

    if shape is PayloadShape.FLAT:
        return list(payload)

    if shape is PayloadShape.RECENT_TRACKS:
        return list(payload['recenttracks']['track'])

    return list(payload['track'])
