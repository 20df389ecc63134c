"""
Tag identifiers — normalization and format rules.

Readers report UIDs with inconsistent case and stray whitespace. Every
lookup goes through normalize_tag() so the same physical tag always maps
to the same key.
"""

import re

from tagman.exceptions import TagError

TAG_MIN_LENGTH = 4
TAG_MAX_LENGTH = 50
TAG_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def is_valid_tag(tag) -> bool:
    """Does the raw value look like a tag identifier?"""
    if not isinstance(tag, str):
        return False
    trimmed = tag.strip()
    if not TAG_MIN_LENGTH <= len(trimmed) <= TAG_MAX_LENGTH:
        return False
    return bool(TAG_PATTERN.match(trimmed))


def canonical_tag(tag: str) -> str:
    """Stored form of a tag, without format checks."""
    return tag.strip().upper()


def normalize_tag(tag) -> str:
    """
    Canonical form of a tag: trimmed and upper-cased.

    Raises:
        TagError('INVALID_TAG'): If the value is not a valid tag
    """
    if not is_valid_tag(tag):
        raise TagError('INVALID_TAG', tag=tag)
    return canonical_tag(tag)
