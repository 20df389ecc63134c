"""
Webhook signing — keyed digest over outgoing payloads.

The signed message is ``timestamp + "." + body`` and the header value is
``sha256=<hex digest>``, so receivers can check authenticity and recency
with nothing but the shared secret:

    from tagman.signing import verify_signature

    ok = verify_signature(
        secret,
        request.headers["X-Webhook-Timestamp"],
        request.body,
        request.headers["X-Webhook-Signature"],
        max_age=300,
    )
"""

import hashlib
import hmac
from datetime import timedelta, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_datetime

SIGNATURE_PREFIX = 'sha256='


def _as_bytes(value) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode('utf-8')


def compute_signature(secret, timestamp: str, body) -> str:
    """HMAC-SHA256 hex digest of ``timestamp.body``."""
    message = _as_bytes(timestamp) + b'.' + _as_bytes(body)
    return hmac.new(_as_bytes(secret), message, hashlib.sha256).hexdigest()


def signature_header(secret, timestamp: str, body) -> str:
    """Value for the X-Webhook-Signature header."""
    return f"{SIGNATURE_PREFIX}{compute_signature(secret, timestamp, body)}"


def verify_signature(secret, timestamp: str, body, header: str,
                     max_age: float | None = None) -> bool:
    """
    Check a received signature header.

    Args:
        secret: Shared secret
        timestamp: X-Webhook-Timestamp value (ISO-8601)
        body: Raw request body
        header: X-Webhook-Signature value
        max_age: Reject timestamps older than this many seconds (None = no check)

    Returns:
        True if the header matches and the timestamp is recent enough
    """
    if not header or not header.startswith(SIGNATURE_PREFIX):
        return False

    expected = signature_header(secret, timestamp, body)
    if not hmac.compare_digest(expected, header):
        return False

    if max_age is not None:
        sent_at = parse_datetime(str(timestamp))
        if sent_at is None:
            return False
        if timezone.is_naive(sent_at):
            sent_at = timezone.make_aware(sent_at, dt_timezone.utc)
        if abs(timezone.now() - sent_at) > timedelta(seconds=max_age):
            return False

    return True
