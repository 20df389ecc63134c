"""
Pytest fixtures for Tagman tests.
"""

from concurrent.futures import Future
from datetime import date, timedelta

import pytest

from tagman.adapters import reset_inventory_store
from tagman.adapters.memory import MemoryInventoryStore
from tagman.models import Area, Batch, Product
from tagman.services import MovementCommitter, QuantityPolicy, ScanSession, TagResolver
from tagman.services.notifications import DeliveryOutcome, reset_dispatcher


class RecordingDispatcher:
    """Dispatcher double: records events and resolves futures immediately."""

    def __init__(self, success=True):
        self.success = success
        self.sent = []

    def dispatch(self, event, payload):
        self.sent.append((event, payload))
        future = Future()
        future.set_result(DeliveryOutcome(
            event=event,
            endpoint='http://hooks.test/stock',
            success=self.success,
            status_code=200 if self.success else 503,
        ))
        return future

    @property
    def events(self):
        return [event for event, _ in self.sent]


@pytest.fixture(autouse=True)
def _reset_caches():
    yield
    reset_inventory_store()
    reset_dispatcher()


@pytest.fixture
def today():
    """Return today's date."""
    return date.today()


# ══════════════════════════════════════════════════════════════
# IN-MEMORY ENGINE
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def store():
    """Empty in-memory store."""
    return MemoryInventoryStore()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def policy():
    return QuantityPolicy(max_quantity=10000)


@pytest.fixture
def committer(store, policy, dispatcher):
    return MovementCommitter(store, policy=policy, dispatcher=dispatcher, allow_expired_exit=False)


@pytest.fixture
def session(store, policy, committer):
    """Idle session wired to the in-memory store."""
    return ScanSession(TagResolver(store), policy, committer, name='test')


@pytest.fixture
def gauze(store):
    """Single-unit product."""
    return store.add_product('Sterile gauze', units_per_package=1)


@pytest.fixture
def amoxicillin(store):
    """Box of 20 capsules."""
    return store.add_product('Amoxicillin 500mg', units_per_package=20)


@pytest.fixture
def gauze_batch(store, gauze, today):
    return store.add_batch(gauze, 'GAUZE001', quantity=5, lot_number='G-1',
                           expiry_date=today + timedelta(days=365))


@pytest.fixture
def amoxicillin_batch(store, amoxicillin, today):
    return store.add_batch(amoxicillin, 'AMOX0001', quantity=40, lot_number='A-1',
                           expiry_date=today + timedelta(days=180))


@pytest.fixture
def icu(store):
    return store.add_area('ICU')


# ══════════════════════════════════════════════════════════════
# ORM
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def db_product(db):
    """Single-unit product row."""
    return Product.objects.create(name='Saline 0.9% 500ml', units_per_package=1, min_stock=0)


@pytest.fixture
def db_boxed_product(db):
    """Packaged product row (20 units per box)."""
    return Product.objects.create(name='Ibuprofen 400mg', units_per_package=20, min_stock=0)


@pytest.fixture
def db_area(db):
    return Area.objects.create(name='Emergency')


@pytest.fixture
def db_batch(db_product, today):
    return Batch.objects.create(
        product=db_product,
        lot_number='S-100',
        tag='SALINE01',
        quantity=5,
        expiry_date=today + timedelta(days=90),
    )


@pytest.fixture
def db_boxed_batch(db_boxed_product, today):
    return Batch.objects.create(
        product=db_boxed_product,
        lot_number='I-200',
        tag='IBU00001',
        quantity=40,
        expiry_date=today + timedelta(days=90),
    )
