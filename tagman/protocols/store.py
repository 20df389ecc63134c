"""
Inventory Store Protocol — the engine's only view of persistence.

Tagman defines this protocol; the ORM adapter (default) and the in-memory
adapter implement it. Any other record store can be plugged in through
TAGMAN["STORE"].

Concurrency contract:
    apply_delta() is the lock boundary. It must apply the delta atomically
    and refuse (never clamp) a delta that would make the quantity negative.
    The engine assumes other writers exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol, runtime_checkable


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ProductInfo:
    """Immutable snapshot of a product."""

    id: int
    name: str
    units_per_package: int = 1
    min_stock: int = 0

    @property
    def is_packaged(self) -> bool:
        return self.units_per_package > 1


@dataclass(frozen=True)
class BatchInfo:
    """Immutable snapshot of a batch at read time."""

    id: int
    product_id: int
    tag: str
    quantity: int
    lot_number: str = ""
    expiry_date: date | None = None
    entry_date: date | None = None

    @property
    def is_expired(self) -> bool:
        if self.expiry_date is None:
            return False
        return date.today() > self.expiry_date

    @property
    def days_to_expiry(self) -> int | None:
        """Days until expiry (negative once expired, None if undated)."""
        if self.expiry_date is None:
            return None
        return (self.expiry_date - date.today()).days

    @property
    def has_stock(self) -> bool:
        return self.quantity > 0


@dataclass(frozen=True)
class AreaInfo:
    """Immutable snapshot of a destination area."""

    id: int
    name: str


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class InventoryStore(Protocol):
    """
    Protocol for the record store holding products, batches and areas.

    Read methods return snapshots (or None when the record does not exist).
    Implementations raise TagError('STORE_UNAVAILABLE') for transient
    backend failures.
    """

    def batches_for_tag(self, tag: str) -> list[BatchInfo]:
        """
        All batches carrying a tag, in any order.

        Args:
            tag: Normalized tag identifier

        Returns:
            List of BatchInfo (empty when the tag is unknown)
        """
        ...

    def get_batch(self, batch_id: int) -> BatchInfo | None:
        """Fresh snapshot of a batch."""
        ...

    def get_product(self, product_id: int) -> ProductInfo | None:
        """Snapshot of a product."""
        ...

    def get_area(self, area_id: int) -> AreaInfo | None:
        """Snapshot of an area."""
        ...

    def apply_delta(
        self,
        batch_id: int,
        delta: int,
        *,
        direction: str,
        area_id: int | None = None,
        reason: str = "",
    ) -> BatchInfo:
        """
        Atomically add delta to the batch quantity.

        Args:
            batch_id: Batch to mutate
            delta: Signed, non-zero quantity change
            direction: 'entry' or 'exit' (recorded with the change)
            area_id: Destination area for exits
            reason: Free text recorded with the change

        Returns:
            Snapshot of the batch after the change

        Raises:
            TagError('BATCH_NOT_FOUND'): Batch does not exist
            TagError('INSUFFICIENT_STOCK'): Quantity would become negative
            TagError('STORE_UNAVAILABLE'): Transient backend failure
        """
        ...

    def product_stock(self, product_id: int) -> int:
        """Total quantity of a product across all its batches."""
        ...

    def has_earlier_stock(self, batch: BatchInfo) -> bool:
        """
        Does another batch of the same product with stock expire earlier?

        Used for the FIFO warning after an exit.
        """
        ...
