"""
ORM Inventory Store — InventoryStore backed by Tagman's Django models.

This is the default TAGMAN["STORE"]. Every quantity change goes through
Move, so the ledger and the Batch.quantity cache never diverge.

Concurrency:
    - apply_delta() runs under transaction.atomic()
    - Locks the batch row with select_for_update()
    - Move.save() applies a conditional F() update as a second guard
"""

import logging
from contextlib import contextmanager

from django.db import InterfaceError, OperationalError, transaction
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from tagman.exceptions import TagError
from tagman.models.batch import Batch
from tagman.models.enums import Direction
from tagman.models.move import InsufficientBatchQuantity, Move
from tagman.models.product import Area, Product
from tagman.protocols.store import AreaInfo, BatchInfo, ProductInfo

logger = logging.getLogger('tagman')


def batch_info(batch: Batch) -> BatchInfo:
    """Snapshot a Batch row."""
    return BatchInfo(
        id=batch.pk,
        product_id=batch.product_id,
        tag=batch.tag,
        quantity=batch.quantity,
        lot_number=batch.lot_number,
        expiry_date=batch.expiry_date,
        entry_date=batch.entry_date,
    )


def product_info(product: Product) -> ProductInfo:
    """Snapshot a Product row."""
    return ProductInfo(
        id=product.pk,
        name=product.name,
        units_per_package=product.units_per_package,
        min_stock=product.min_stock,
    )


@contextmanager
def _store_errors():
    """Translate transient database failures into STORE_UNAVAILABLE."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.error("tagman.store.unavailable", extra={"error": str(e)})
        raise TagError('STORE_UNAVAILABLE', error=str(e)) from e


class OrmInventoryStore:
    """InventoryStore implementation over Product, Area, Batch and Move."""

    def batches_for_tag(self, tag: str) -> list[BatchInfo]:
        with _store_errors():
            return [batch_info(b) for b in Batch.objects.tagged(tag)]

    def get_batch(self, batch_id: int) -> BatchInfo | None:
        with _store_errors():
            batch = Batch.objects.filter(pk=batch_id).first()
        return batch_info(batch) if batch else None

    def get_product(self, product_id: int) -> ProductInfo | None:
        with _store_errors():
            product = Product.objects.filter(pk=product_id).first()
        return product_info(product) if product else None

    def get_area(self, area_id: int) -> AreaInfo | None:
        with _store_errors():
            area = Area.objects.filter(pk=area_id, is_active=True).first()
        return AreaInfo(id=area.pk, name=area.name) if area else None

    def apply_delta(self, batch_id, delta, *, direction, area_id=None, reason=""):
        if not reason:
            label = 'Entry' if direction == Direction.ENTRY else 'Exit'
            reason = f"{label} of {abs(delta)} units"

        with _store_errors(), transaction.atomic():
            try:
                batch = Batch.objects.select_for_update().get(pk=batch_id)
            except Batch.DoesNotExist:
                raise TagError('BATCH_NOT_FOUND', batch_id=batch_id) from None

            if batch.quantity + delta < 0:
                raise TagError(
                    'INSUFFICIENT_STOCK',
                    available=batch.quantity,
                    requested=-delta,
                )

            try:
                move = Move.objects.create(
                    batch=batch,
                    delta=delta,
                    direction=direction,
                    area_id=area_id,
                    reason=reason,
                )
            except InsufficientBatchQuantity:
                raise TagError(
                    'INSUFFICIENT_STOCK',
                    available=batch.quantity,
                    requested=-delta,
                ) from None

            batch.refresh_from_db()
            logger.debug(
                "tagman.store.move",
                extra={"move_id": move.pk, "batch_id": batch_id, "delta": delta},
            )
            return batch_info(batch)

    def product_stock(self, product_id: int) -> int:
        with _store_errors():
            return Batch.objects.filter(product_id=product_id).aggregate(
                t=Coalesce(Sum('quantity'), 0)
            )['t']

    def has_earlier_stock(self, batch: BatchInfo) -> bool:
        others = Batch.objects.with_stock().filter(
            product_id=batch.product_id,
        ).exclude(pk=batch.id)

        if batch.expiry_date is None:
            earlier = Q(expiry_date__isnull=False)
            if batch.entry_date is not None:
                earlier |= Q(expiry_date__isnull=True, entry_date__lt=batch.entry_date)
        else:
            earlier = Q(expiry_date__lt=batch.expiry_date)
            if batch.entry_date is not None:
                earlier |= Q(expiry_date=batch.expiry_date, entry_date__lt=batch.entry_date)

        with _store_errors():
            return others.filter(earlier).exists()
