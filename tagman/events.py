"""
Scan events — what a reader reports and how reader messages are parsed.

Readers emit one JSON object per line:

    {"action": "entry", "uid": "a1b2c3d4"}
    {"action": "remove", "uid": "a1b2c3d4"}
    {"status": "ready"}
    {"error": "antenna disconnected"}

Only action messages become ScanEvents. Status and error messages are
logged and dropped.
"""

import itertools
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime

from django.utils import timezone

from tagman.models.enums import Direction

logger = logging.getLogger('tagman')

READER_ACTIONS = {
    'entry': Direction.ENTRY,
    'remove': Direction.EXIT,
    'exit': Direction.EXIT,
}

_arrivals = itertools.count(1)


@dataclass(frozen=True)
class ScanEvent:
    """A single tag read. Consumed exactly once by a scan session."""

    tag: str
    direction: Direction
    sequence: int = field(default_factory=lambda: next(_arrivals))
    received_at: datetime = field(default_factory=timezone.now)


def parse_reader_message(line: str) -> ScanEvent | None:
    """
    Parse one reader line into a ScanEvent.

    Returns:
        ScanEvent, or None for blank, malformed, status or error lines
    """
    message = line.strip()
    if not message:
        return None

    try:
        data = json.loads(message)
    except ValueError:
        logger.warning("tagman.reader.malformed", extra={"line": message[:200]})
        return None

    if not isinstance(data, dict):
        logger.warning("tagman.reader.malformed", extra={"line": message[:200]})
        return None

    direction = READER_ACTIONS.get(str(data.get('action', '')).lower())
    uid = data.get('uid')
    if direction is not None and uid:
        return ScanEvent(tag=str(uid), direction=direction)

    if 'status' in data:
        logger.info("tagman.reader.status", extra={"status": data['status']})
    elif 'error' in data:
        logger.error("tagman.reader.error", extra={"error": data['error']})
    else:
        logger.warning("tagman.reader.unrecognized", extra={"payload": data})
    return None
