"""
Tests for the ORM inventory store and the Move ledger.
"""

from datetime import timedelta
from unittest import mock

import pytest
from django.db import OperationalError

from tagman import TagError, build_session
from tagman.adapters.orm import OrmInventoryStore, batch_info
from tagman.models import Batch, Direction, Move
from tagman.models.move import InsufficientBatchQuantity
from tagman.protocols import InventoryStore

pytestmark = pytest.mark.django_db


@pytest.fixture
def orm_store():
    return OrmInventoryStore()


class TestReads:
    """Lookups return snapshots."""

    def test_implements_protocol(self, orm_store):
        assert isinstance(orm_store, InventoryStore)

    def test_batches_for_tag(self, orm_store, db_batch):
        batches = orm_store.batches_for_tag('SALINE01')

        assert [b.id for b in batches] == [db_batch.pk]
        assert batches[0].quantity == 5
        assert batches[0].lot_number == 'S-100'

    def test_unknown_tag(self, orm_store, db_batch):
        assert orm_store.batches_for_tag('UNKNOWN1') == []

    def test_get_product(self, orm_store, db_boxed_product):
        product = orm_store.get_product(db_boxed_product.pk)

        assert product.units_per_package == 20
        assert product.is_packaged

    def test_missing_rows(self, orm_store):
        assert orm_store.get_batch(999) is None
        assert orm_store.get_product(999) is None
        assert orm_store.get_area(999) is None

    def test_inactive_area_hidden(self, orm_store, db_area):
        db_area.is_active = False
        db_area.save()

        assert orm_store.get_area(db_area.pk) is None

    def test_product_stock(self, orm_store, db_product, db_batch, today):
        Batch.objects.create(product=db_product, tag='SALINE02', quantity=7, expiry_date=today)

        assert orm_store.product_stock(db_product.pk) == 12

    def test_product_stock_without_batches(self, orm_store, db_product):
        assert orm_store.product_stock(db_product.pk) == 0

    def test_database_failure(self, orm_store):
        with mock.patch.object(Batch.objects, 'tagged', side_effect=OperationalError('database is locked')):
            with pytest.raises(TagError) as exc:
                orm_store.batches_for_tag('SALINE01')

        assert exc.value.code == 'STORE_UNAVAILABLE'


class TestApplyDelta:
    """apply_delta() writes a Move and updates the batch."""

    def test_exit(self, orm_store, db_batch, db_area):
        updated = orm_store.apply_delta(db_batch.pk, -2, direction=Direction.EXIT, area_id=db_area.pk)

        db_batch.refresh_from_db()
        move = Move.objects.get()
        assert updated.quantity == 3
        assert db_batch.quantity == 3
        assert move.delta == -2
        assert move.direction == Direction.EXIT
        assert move.area == db_area
        assert move.reason == 'Exit of 2 units'

    def test_entry(self, orm_store, db_batch):
        updated = orm_store.apply_delta(db_batch.pk, 10, direction=Direction.ENTRY, reason='Delivery')

        assert updated.quantity == 15
        assert Move.objects.get().reason == 'Delivery'

    def test_refuses_negative(self, orm_store, db_batch):
        with pytest.raises(TagError) as exc:
            orm_store.apply_delta(db_batch.pk, -6, direction=Direction.EXIT)

        db_batch.refresh_from_db()
        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == 5
        assert exc.value.requested == 6
        assert db_batch.quantity == 5
        assert not Move.objects.exists()

    def test_missing_batch(self, orm_store):
        with pytest.raises(TagError) as exc:
            orm_store.apply_delta(999, -1, direction=Direction.EXIT)

        assert exc.value.code == 'BATCH_NOT_FOUND'


class TestMove:
    """The ledger is append-only."""

    def test_conditional_update_guards_stock(self, db_batch):
        with pytest.raises(InsufficientBatchQuantity):
            Move.objects.create(batch=db_batch, delta=-10, direction=Direction.EXIT, reason='Dispense')

        db_batch.refresh_from_db()
        assert db_batch.quantity == 5

    def test_immutable(self, db_batch):
        move = Move.objects.create(batch=db_batch, delta=-1, direction=Direction.EXIT, reason='Dispense')

        with pytest.raises(ValueError):
            move.save()
        with pytest.raises(ValueError):
            move.delete()

    def test_requires_reason(self, db_batch):
        with pytest.raises(ValueError):
            Move.objects.create(batch=db_batch, delta=-1, direction=Direction.EXIT, reason='')

    def test_rejects_zero_delta(self, db_batch):
        with pytest.raises(ValueError):
            Move.objects.create(batch=db_batch, delta=0, direction=Direction.EXIT, reason='Noop')


class TestEarlierStock:
    """has_earlier_stock() follows expiry, then entry date."""

    def test_older_expiry_with_stock(self, orm_store, db_product, db_batch, today):
        later = Batch.objects.create(
            product=db_product, tag='SALINE02', quantity=3, expiry_date=today + timedelta(days=400),
        )

        assert orm_store.has_earlier_stock(batch_info(later))
        assert not orm_store.has_earlier_stock(batch_info(db_batch))

    def test_empty_older_batch_ignored(self, orm_store, db_product, db_batch, today):
        db_batch.quantity = 0
        db_batch.save()
        later = Batch.objects.create(
            product=db_product, tag='SALINE02', quantity=3, expiry_date=today + timedelta(days=400),
        )

        assert not orm_store.has_earlier_stock(batch_info(later))

    def test_undated_batch_goes_last(self, orm_store, db_product, db_batch):
        undated = Batch.objects.create(product=db_product, tag='SALINE03', quantity=3)

        assert orm_store.has_earlier_stock(batch_info(undated))


class TestSessionOnDatabase:
    """Full scan flow against the default store."""

    def test_single_unit_exit(self, db_batch):
        session = build_session(name='counter', dispatcher=None, direction=Direction.EXIT)

        outcome = session.handle_scan('saline01')

        db_batch.refresh_from_db()
        assert outcome.committed
        assert db_batch.quantity == 4
        assert Move.objects.filter(batch=db_batch).count() == 1

    def test_packaged_exit_confirmed(self, db_boxed_batch, db_area):
        session = build_session(name='counter', dispatcher=None, direction=Direction.EXIT)

        outcome = session.handle_scan('IBU00001')
        result = session.confirm('IBU00001', 15, area_id=db_area.pk)

        db_boxed_batch.refresh_from_db()
        assert outcome.awaiting_confirmation
        assert result.remaining == 25
        assert result.packages == 1
        assert db_boxed_batch.quantity == 25
        assert Move.objects.get().area == db_area

    def test_packaged_exit_above_stock(self, db_boxed_batch):
        session = build_session(name='counter', dispatcher=None, direction=Direction.EXIT)
        session.handle_scan('IBU00001')

        with pytest.raises(TagError) as exc:
            session.confirm('IBU00001', 50)

        db_boxed_batch.refresh_from_db()
        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert db_boxed_batch.quantity == 40
        assert not Move.objects.exists()

    def test_entry(self, db_batch):
        session = build_session(name='receiving', dispatcher=None, direction=Direction.ENTRY)

        session.handle_scan('SALINE01')

        db_batch.refresh_from_db()
        assert db_batch.quantity == 6


class TestTagStorage:
    """Tags are stored in canonical form."""

    def test_lowercase_tag_saved_upper(self, db_product):
        batch = Batch.objects.create(product=db_product, tag=' abcd1234 ', quantity=5)

        batch.refresh_from_db()
        assert batch.tag == 'ABCD1234'

    def test_tagged_normalizes_lookup(self, db_product):
        batch = Batch.objects.create(product=db_product, tag='abcd1234', quantity=5)

        assert list(Batch.objects.tagged('abcd1234')) == [batch]

    def test_scan_finds_lowercase_tag(self, db_product):
        batch = Batch.objects.create(product=db_product, tag='abcd1234', quantity=5)
        session = build_session(store=OrmInventoryStore(), dispatcher=None, direction=Direction.EXIT)

        outcome = session.handle_scan('abcd1234')

        batch.refresh_from_db()
        assert outcome.committed
        assert batch.quantity == 4
