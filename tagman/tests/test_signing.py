"""
Tests for webhook signing.
"""

import hashlib
import hmac
from datetime import timedelta

from django.utils import timezone

from tagman.signing import compute_signature, signature_header, verify_signature

SECRET = 'webhook-secret'
TIMESTAMP = '2026-03-01T10:00:00+00:00'
BODY = '{"event": "stock.exit", "data": {"quantity": 1}}'


class TestComputeSignature:
    """Tests for compute_signature()."""

    def test_matches_hmac_sha256_over_timestamp_dot_body(self):
        expected = hmac.new(
            SECRET.encode(), f'{TIMESTAMP}.{BODY}'.encode(), hashlib.sha256
        ).hexdigest()

        assert compute_signature(SECRET, TIMESTAMP, BODY) == expected

    def test_deterministic(self):
        assert compute_signature(SECRET, TIMESTAMP, BODY) == compute_signature(SECRET, TIMESTAMP, BODY)

    def test_bytes_and_str_are_equivalent(self):
        assert compute_signature(SECRET, TIMESTAMP, BODY.encode()) == compute_signature(SECRET, TIMESTAMP, BODY)

    def test_header_prefix(self):
        header = signature_header(SECRET, TIMESTAMP, BODY)

        assert header.startswith('sha256=')
        assert header[len('sha256='):] == compute_signature(SECRET, TIMESTAMP, BODY)


class TestVerifySignature:
    """Tests for verify_signature()."""

    def test_valid(self):
        header = signature_header(SECRET, TIMESTAMP, BODY)

        assert verify_signature(SECRET, TIMESTAMP, BODY, header)

    def test_fails_when_secret_differs(self):
        header = signature_header(SECRET, TIMESTAMP, BODY)

        assert not verify_signature('other-secret', TIMESTAMP, BODY, header)

    def test_fails_when_timestamp_differs(self):
        header = signature_header(SECRET, TIMESTAMP, BODY)

        assert not verify_signature(SECRET, '2026-03-01T10:00:01+00:00', BODY, header)

    def test_fails_when_body_differs(self):
        header = signature_header(SECRET, TIMESTAMP, BODY)

        assert not verify_signature(SECRET, TIMESTAMP, BODY + ' ', header)

    def test_fails_without_prefix(self):
        digest = compute_signature(SECRET, TIMESTAMP, BODY)

        assert not verify_signature(SECRET, TIMESTAMP, BODY, digest)
        assert not verify_signature(SECRET, TIMESTAMP, BODY, '')

    def test_recent_timestamp_within_max_age(self):
        timestamp = timezone.now().isoformat()
        header = signature_header(SECRET, timestamp, BODY)

        assert verify_signature(SECRET, timestamp, BODY, header, max_age=300)

    def test_old_timestamp_rejected_with_max_age(self):
        timestamp = (timezone.now() - timedelta(hours=1)).isoformat()
        header = signature_header(SECRET, timestamp, BODY)

        assert verify_signature(SECRET, timestamp, BODY, header)
        assert not verify_signature(SECRET, timestamp, BODY, header, max_age=300)

    def test_unparseable_timestamp_rejected_with_max_age(self):
        header = signature_header(SECRET, 'yesterday', BODY)

        assert not verify_signature(SECRET, 'yesterday', BODY, header, max_age=300)
