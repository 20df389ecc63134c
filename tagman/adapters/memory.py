"""
Memory Inventory Store — InventoryStore kept in process memory.

Useful for:
- Engine tests that don't need a database
- Local development against a reader without a configured catalog
- Demos of the scan workflow

Usage in settings.py:
    TAGMAN = {
        "STORE": "tagman.adapters.memory.MemoryInventoryStore",
    }

WARNING: Nothing is persisted. Every process has its own copy.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import date

from django.utils import timezone

from tagman.exceptions import TagError
from tagman.protocols.store import AreaInfo, BatchInfo, ProductInfo
from tagman.tags import canonical_tag


class MemoryInventoryStore:
    """
    Thread-safe in-memory InventoryStore.

    A single lock guards every read and write, so apply_delta() is atomic
    with respect to all sessions sharing the instance.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._products: dict[int, ProductInfo] = {}
        self._batches: dict[int, BatchInfo] = {}
        self._areas: dict[int, AreaInfo] = {}
        self.moves: list[dict] = []

    # ══════════════════════════════════════════════════════════════
    # SETUP
    # ══════════════════════════════════════════════════════════════

    def add_product(self, name: str, units_per_package: int = 1, min_stock: int = 0) -> ProductInfo:
        with self._lock:
            product = ProductInfo(
                id=next(self._ids),
                name=name,
                units_per_package=units_per_package,
                min_stock=min_stock,
            )
            self._products[product.id] = product
        return product

    def add_batch(self, product: ProductInfo, tag: str, quantity: int = 0,
                  lot_number: str = "", expiry_date: date | None = None,
                  entry_date: date | None = None) -> BatchInfo:
        with self._lock:
            batch = BatchInfo(
                id=next(self._ids),
                product_id=product.id,
                tag=canonical_tag(tag),
                quantity=quantity,
                lot_number=lot_number,
                expiry_date=expiry_date,
                entry_date=entry_date or date.today(),
            )
            self._batches[batch.id] = batch
        return batch

    def add_area(self, name: str) -> AreaInfo:
        with self._lock:
            area = AreaInfo(id=next(self._ids), name=name)
            self._areas[area.id] = area
        return area

    def remove_batch(self, batch_id: int) -> None:
        with self._lock:
            self._batches.pop(batch_id, None)

    def retag_batch(self, batch_id: int, tag: str) -> BatchInfo:
        with self._lock:
            batch = replace(self._batches[batch_id], tag=canonical_tag(tag))
            self._batches[batch_id] = batch
        return batch

    # ══════════════════════════════════════════════════════════════
    # InventoryStore
    # ══════════════════════════════════════════════════════════════

    def batches_for_tag(self, tag: str) -> list[BatchInfo]:
        with self._lock:
            return [b for b in self._batches.values() if b.tag == tag]

    def get_batch(self, batch_id: int) -> BatchInfo | None:
        with self._lock:
            return self._batches.get(batch_id)

    def get_product(self, product_id: int) -> ProductInfo | None:
        with self._lock:
            return self._products.get(product_id)

    def get_area(self, area_id: int) -> AreaInfo | None:
        with self._lock:
            return self._areas.get(area_id)

    def apply_delta(self, batch_id, delta, *, direction, area_id=None, reason=""):
        with self._lock:
            batch = self._batches.get(batch_id)
            if batch is None:
                raise TagError('BATCH_NOT_FOUND', batch_id=batch_id)
            if batch.quantity + delta < 0:
                raise TagError(
                    'INSUFFICIENT_STOCK',
                    available=batch.quantity,
                    requested=-delta,
                )
            batch = replace(batch, quantity=batch.quantity + delta)
            self._batches[batch_id] = batch
            self.moves.append({
                'batch_id': batch_id,
                'delta': delta,
                'direction': str(direction),
                'area_id': area_id,
                'reason': reason,
                'timestamp': timezone.now(),
            })
            return batch

    def product_stock(self, product_id: int) -> int:
        with self._lock:
            return sum(b.quantity for b in self._batches.values() if b.product_id == product_id)

    def has_earlier_stock(self, batch: BatchInfo) -> bool:
        def key(b):
            return (b.expiry_date is None, b.expiry_date or date.max, b.entry_date or date.max)

        with self._lock:
            return any(
                key(other) < key(batch)
                for other in self._batches.values()
                if other.product_id == batch.product_id
                and other.id != batch.id
                and other.quantity > 0
            )
