"""
Movement commit — validate a quantity against fresh stock and apply it.

The store is the lock boundary: apply_delta() is atomic and refuses to go
negative. The committer re-reads the batch first because a confirmation
can arrive long after the scan that created the pending movement.

Notification happens after the commit and never affects its outcome.
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from django.utils import timezone

from tagman.conf import tagman_settings
from tagman.exceptions import TagError
from tagman.models.enums import Direction, ExpiryStatus
from tagman.protocols.store import AreaInfo, BatchInfo, InventoryStore, ProductInfo
from tagman.services.quantities import QuantityPolicy

logger = logging.getLogger('tagman')


@dataclass(frozen=True)
class PendingMovement:
    """A resolved scan waiting to be committed."""

    tag: str
    product: ProductInfo
    batch: BatchInfo
    direction: Direction
    area_id: int | None = None
    created_at: datetime = field(default_factory=timezone.now)
    expires_at: datetime | None = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return timezone.now() > self.expires_at


@dataclass(frozen=True)
class MovementResult:
    """A committed movement. Not persisted here; the store owns the ledger."""

    direction: Direction
    quantity: int
    previous_quantity: int
    batch: BatchInfo
    product: ProductInfo
    area: AreaInfo | None
    timestamp: datetime
    packages: int | None = None
    fifo_warning: bool = False
    low_stock: bool = False
    days_to_expiry: int | None = None
    expiry_status: ExpiryStatus | None = None
    notification: Future | None = field(default=None, compare=False, repr=False)
    low_stock_notification: Future | None = field(default=None, compare=False, repr=False)

    @property
    def remaining(self) -> int:
        return self.batch.quantity

    @property
    def event(self) -> str:
        return f"stock.{self.direction.value}"

    def payload(self) -> dict[str, Any]:
        """Webhook data block."""
        return {
            "direction": self.direction.value,
            "quantity": self.quantity,
            "packages": self.packages,
            "previous_quantity": self.previous_quantity,
            "remaining_quantity": self.batch.quantity,
            "product": {
                "id": self.product.id,
                "name": self.product.name,
                "units_per_package": self.product.units_per_package,
            },
            "batch": {
                "id": self.batch.id,
                "lot_number": self.batch.lot_number,
                "tag": self.batch.tag,
                "quantity": self.batch.quantity,
                "expiry_date": self.batch.expiry_date,
            },
            "area": {"id": self.area.id, "name": self.area.name} if self.area else None,
            "fifo_warning": self.fifo_warning,
            "expiry_status": self.expiry_status.value if self.expiry_status else None,
            "days_to_expiry": self.days_to_expiry,
            "committed_at": self.timestamp,
        }


class MovementCommitter:
    """
    Applies movements to the store and triggers notifications.

    Args:
        store: InventoryStore (the lock boundary)
        policy: QuantityPolicy (default instance if omitted)
        dispatcher: Object with dispatch(event, payload) -> Future, or None
        allow_expired_exit: Override TAGMAN['ALLOW_EXPIRED_EXIT']
    """

    def __init__(self, store: InventoryStore, policy: QuantityPolicy | None = None,
                 dispatcher=None, allow_expired_exit: bool | None = None):
        self.store = store
        self.policy = policy or QuantityPolicy()
        self.dispatcher = dispatcher
        self._allow_expired_exit = allow_expired_exit

    @property
    def allow_expired_exit(self) -> bool:
        if self._allow_expired_exit is not None:
            return self._allow_expired_exit
        return tagman_settings.ALLOW_EXPIRED_EXIT

    def commit(self, movement: PendingMovement, quantity, area_id=None,
               reason: str | None = None) -> MovementResult:
        """
        Commit a movement.

        Args:
            movement: Resolved movement (pending or immediate)
            quantity: Base units to move
            area_id: Destination area (exit only); defaults to movement.area_id
            reason: Free text recorded by the store

        Returns:
            MovementResult with the post-commit batch snapshot

        Raises:
            TagError('QUANTITY_INVALID'): Not a positive integer within the cap
            TagError('AREA_NOT_ALLOWED'): Area given for an entry
            TagError('AREA_NOT_FOUND'): Area does not exist
            TagError('BATCH_NOT_FOUND'): Batch disappeared
            TagError('STALE_MOVEMENT'): Batch changed since the scan
            TagError('BATCH_EXPIRED'): Exit from an expired batch
            TagError('INSUFFICIENT_STOCK'): Exit larger than the batch
            TagError('STORE_UNAVAILABLE'): Store failure, not retried
        """
        direction = Direction(movement.direction)
        quantity = self.policy.coerce(quantity)
        area = self._resolve_area(direction, area_id if area_id is not None else movement.area_id)

        fresh = self.store.get_batch(movement.batch.id)
        if fresh is None:
            raise TagError('BATCH_NOT_FOUND', batch_id=movement.batch.id)

        if fresh.tag != movement.batch.tag or fresh.product_id != movement.product.id:
            raise TagError(
                'STALE_MOVEMENT',
                'Batch was re-tagged or reassigned while the movement was pending',
                batch_id=fresh.id,
            )

        if direction == Direction.EXIT and fresh.is_expired and not self.allow_expired_exit:
            raise TagError('BATCH_EXPIRED', batch_id=fresh.id, expiry_date=fresh.expiry_date)

        try:
            self.policy.validate(quantity, fresh, direction)
        except TagError as e:
            if e.code == 'INSUFFICIENT_STOCK' and quantity <= movement.batch.quantity:
                raise TagError(
                    'STALE_MOVEMENT',
                    available=fresh.quantity,
                    requested=quantity,
                    batch_id=fresh.id,
                ) from e
            raise

        delta = direction.sign * quantity
        try:
            updated = self.store.apply_delta(
                fresh.id,
                delta,
                direction=direction,
                area_id=area.id if area else None,
                reason=reason or "",
            )
        except TagError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                # Another writer drained the batch between our read and the update
                raise TagError('STALE_MOVEMENT', **e.data) from e
            raise

        result = MovementResult(
            direction=direction,
            quantity=quantity,
            previous_quantity=updated.quantity - delta,
            batch=updated,
            product=movement.product,
            area=area,
            timestamp=timezone.now(),
            packages=self.policy.packages_for(movement.product, quantity),
            fifo_warning=self._has_earlier_stock(updated, direction),
            low_stock=self._is_low(movement.product, direction),
            **self._expiry(updated, direction),
        )

        logger.info(
            "tagman.movement.committed",
            extra={
                "direction": str(direction),
                "tag": movement.tag,
                "batch_id": updated.id,
                "qty": quantity,
                "before": result.previous_quantity,
                "after": updated.quantity,
                "area_id": area.id if area else None,
            },
        )
        if result.fifo_warning:
            logger.warning(
                "tagman.movement.fifo",
                extra={"batch_id": updated.id, "product_id": movement.product.id},
            )

        return self._notify(result)

    def _expiry(self, batch: BatchInfo, direction: Direction) -> dict[str, Any]:
        if direction != Direction.EXIT:
            return {}
        days = batch.days_to_expiry
        if days is None:
            status = ExpiryStatus.VALID
        elif days < 0:
            status = ExpiryStatus.EXPIRED
        elif days <= tagman_settings.EXPIRY_WARNING_DAYS:
            status = ExpiryStatus.EXPIRING_SOON
        else:
            status = ExpiryStatus.VALID
        return {"days_to_expiry": days, "expiry_status": status}

    def _resolve_area(self, direction: Direction, area_id) -> AreaInfo | None:
        if area_id in (None, ""):
            return None
        if direction != Direction.EXIT:
            raise TagError('AREA_NOT_ALLOWED', area_id=area_id)
        area = self.store.get_area(area_id)
        if area is None:
            raise TagError('AREA_NOT_FOUND', area_id=area_id)
        return area

    # Post-commit reads are advisory: a store failure here must not turn a
    # committed movement into a reported error.

    def _has_earlier_stock(self, batch: BatchInfo, direction: Direction) -> bool:
        if direction != Direction.EXIT:
            return False
        try:
            return self.store.has_earlier_stock(batch)
        except TagError as e:
            logger.warning("tagman.movement.fifo_check_failed", extra={"error": e.code})
            return False

    def _product_stock(self, product: ProductInfo) -> int | None:
        try:
            return self.store.product_stock(product.id)
        except TagError as e:
            logger.warning("tagman.movement.stock_check_failed", extra={"error": e.code})
            return None

    def _is_low(self, product: ProductInfo, direction: Direction) -> bool:
        if direction != Direction.EXIT or not product.min_stock:
            return False
        total = self._product_stock(product)
        return total is not None and total < product.min_stock

    def _notify(self, result: MovementResult) -> MovementResult:
        if self.dispatcher is None:
            return result

        payload = result.payload()
        notification = self._dispatch(result.event, payload)
        low_stock_notification = None
        if result.low_stock:
            low_stock_notification = self._dispatch("stock.low", {
                "product": payload["product"],
                "total_quantity": self._product_stock(result.product),
                "min_stock": result.product.min_stock,
            })

        return replace(
            result,
            notification=notification,
            low_stock_notification=low_stock_notification,
        )

    def _dispatch(self, event: str, payload: dict) -> Future | None:
        try:
            return self.dispatcher.dispatch(event, payload)
        except Exception as e:
            # Executor shut down or dispatcher broken; the movement stands regardless
            logger.warning(
                "tagman.notify.skipped",
                extra={"event": event, "error": str(e)},
                exc_info=True,
            )
            return None
