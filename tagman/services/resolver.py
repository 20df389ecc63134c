"""
Tag resolution — which batch and product a scan refers to.

Tags are reused across shipments, so one tag may match several batches.
The choice is deterministic:

    exit   FEFO among batches with stock: earliest expiry (undated last),
           then earliest entry date, then lowest id. Expired batches are
           skipped unless ALLOW_EXPIRED_EXIT is set.
    entry  The most recently received batch: latest entry date, then
           highest id. That is the shipment the tag currently labels.

Resolution never writes, so resolving the same tag twice without a
movement in between returns the same batch state.
"""

import logging
from datetime import date

from tagman.conf import tagman_settings
from tagman.exceptions import TagError
from tagman.models.enums import Direction
from tagman.protocols.store import BatchInfo, InventoryStore, ProductInfo
from tagman.tags import normalize_tag

logger = logging.getLogger('tagman')


def _fefo_key(batch: BatchInfo):
    return (
        batch.expiry_date is None,
        batch.expiry_date or date.max,
        batch.entry_date or date.max,
        batch.id,
    )


def _latest_entry_key(batch: BatchInfo):
    return (batch.entry_date or date.min, batch.id)


class TagResolver:
    """Resolve a scanned tag to (product, batch) through the store."""

    def __init__(self, store: InventoryStore, allow_expired_exit: bool | None = None):
        self.store = store
        self._allow_expired_exit = allow_expired_exit

    @property
    def allow_expired_exit(self) -> bool:
        if self._allow_expired_exit is not None:
            return self._allow_expired_exit
        return tagman_settings.ALLOW_EXPIRED_EXIT

    def candidates(self, tag: str) -> list[BatchInfo]:
        """All batches carrying the tag, in FEFO order."""
        return sorted(self.store.batches_for_tag(normalize_tag(tag)), key=_fefo_key)

    def select(self, batches: list[BatchInfo], direction) -> BatchInfo:
        """
        Apply the tie-break rule for a direction.

        Raises:
            TagError('INSUFFICIENT_STOCK'): Exit and no candidate has stock
            TagError('BATCH_EXPIRED'): Exit and every stocked candidate is
                expired (unless ALLOW_EXPIRED_EXIT)
        """
        if Direction(direction) == Direction.ENTRY:
            return max(batches, key=_latest_entry_key)

        stocked = [b for b in batches if b.has_stock]
        if not stocked:
            raise TagError(
                'INSUFFICIENT_STOCK',
                available=0,
                requested=1,
                batch_id=min(batches, key=_fefo_key).id,
            )
        if not self.allow_expired_exit:
            valid = [b for b in stocked if not b.is_expired]
            if not valid:
                first = min(stocked, key=_fefo_key)
                raise TagError('BATCH_EXPIRED', batch_id=first.id, expiry_date=first.expiry_date)
            stocked = valid
        return min(stocked, key=_fefo_key)

    def resolve(self, tag: str, direction) -> tuple[ProductInfo, BatchInfo]:
        """
        Find the product and batch for a scanned tag.

        Raises:
            TagError('INVALID_TAG'): Malformed tag
            TagError('TAG_NOT_FOUND'): No batch carries the tag
            TagError('INSUFFICIENT_STOCK'): Exit and every matching batch is empty
            TagError('BATCH_EXPIRED'): Exit and every stocked batch is expired
            TagError('PRODUCT_NOT_FOUND'): Selected batch has no product
        """
        normalized = normalize_tag(tag)
        batches = self.store.batches_for_tag(normalized)
        if not batches:
            raise TagError('TAG_NOT_FOUND', tag=normalized)

        batch = self.select(batches, direction)

        product = self.store.get_product(batch.product_id)
        if product is None:
            raise TagError('PRODUCT_NOT_FOUND', tag=normalized, batch_id=batch.id)

        if len(batches) > 1:
            logger.info(
                "tagman.tag.shared",
                extra={
                    "tag": normalized,
                    "candidates": len(batches),
                    "selected": batch.id,
                    "direction": str(direction),
                },
            )
        return product, batch
