"""
Tests for the scan_feed management command.
"""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from tagman.models import Move

pytestmark = pytest.mark.django_db

FEED = '\n'.join([
    '{"status": "ready"}',
    '{"action": "remove", "uid": "saline01"}',
    '{"action": "entry", "uid": "SALINE01"}',
    '{"action": "remove", "uid": "IBU00001"}',
    '{"action": "remove", "uid": "NOPE0000"}',
    '',
])


@pytest.fixture
def feed(tmp_path):
    path = tmp_path / 'scans.jsonl'
    path.write_text(FEED, encoding='utf-8')
    return path


def run(*args, **options):
    out, err = StringIO(), StringIO()
    call_command('scan_feed', *args, stdout=out, stderr=err, **options)
    return out.getvalue(), err.getvalue()


class TestScanFeed:
    """Replaying reader output."""

    def test_packaged_products_cancelled_without_quantity(self, feed, db_batch, db_boxed_batch):
        out, err = run(direction='exit', input=str(feed))

        db_batch.refresh_from_db()
        db_boxed_batch.refresh_from_db()
        assert db_batch.quantity == 4
        assert db_boxed_batch.quantity == 40
        assert 'IBU00001: packaged product (20 units), cancelled' in out
        assert 'NOPE0000: TAG_NOT_FOUND' in err
        assert '1 committed, 1 cancelled, 1 failed, 1 skipped' in out

    def test_packaged_products_confirmed_with_quantity(self, feed, db_batch, db_boxed_batch, db_area):
        out, _ = run(direction='exit', input=str(feed), quantity=10, area=db_area.pk)

        db_boxed_batch.refresh_from_db()
        assert db_boxed_batch.quantity == 30
        assert Move.objects.filter(area=db_area).count() == 2
        assert '2 committed, 0 cancelled, 1 failed, 1 skipped' in out

    def test_area_rejected_for_entries(self, feed, db_area):
        with pytest.raises(CommandError):
            run(direction='entry', input=str(feed), area=db_area.pk)

    def test_missing_input_file(self, tmp_path):
        with pytest.raises(CommandError, match='Cannot read'):
            run(direction='exit', input=str(tmp_path / 'missing.jsonl'))
