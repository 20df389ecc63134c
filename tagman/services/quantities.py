"""
Quantity resolution — how many base units a scan represents.

A tag on a single unit moves exactly one unit. A tag on a package
(units_per_package > 1) is ambiguous: the operator may take the whole box
or a few units from it, so the quantity must be confirmed.
"""

import math

from tagman.conf import tagman_settings
from tagman.exceptions import TagError
from tagman.models.enums import Direction
from tagman.protocols.store import BatchInfo, ProductInfo


class QuantityPolicy:
    """Stateless rules for scan quantities."""

    def __init__(self, max_quantity: int | None = None):
        self._max_quantity = max_quantity

    @property
    def max_quantity(self) -> int:
        if self._max_quantity is not None:
            return self._max_quantity
        return tagman_settings.MAX_QUANTITY_PER_OPERATION

    def requires_confirmation(self, product: ProductInfo) -> bool:
        return product.units_per_package > 1

    def default_quantity(self, product: ProductInfo) -> int:
        """
        Quantity committed without asking the operator.

        Raises:
            TagError('QUANTITY_REQUIRED'): If the product is packaged
        """
        if self.requires_confirmation(product):
            raise TagError(
                'QUANTITY_REQUIRED',
                product_id=product.id,
                units_per_package=product.units_per_package,
            )
        return 1

    def coerce(self, value) -> int:
        """
        Turn operator input into a quantity.

        Accepts ints and digit strings. Rejects booleans, fractions, zero,
        negatives and anything above the per-operation cap.

        Raises:
            TagError('QUANTITY_INVALID')
        """
        if isinstance(value, bool):
            raise TagError('QUANTITY_INVALID', requested=value)

        if isinstance(value, str):
            text = value.strip()
            if not text.isdigit():
                raise TagError('QUANTITY_INVALID', requested=value)
            quantity = int(text)
        elif isinstance(value, int):
            quantity = value
        elif isinstance(value, float) and value.is_integer():
            quantity = int(value)
        else:
            raise TagError('QUANTITY_INVALID', requested=value)

        if quantity <= 0:
            raise TagError('QUANTITY_INVALID', requested=quantity)

        if quantity > self.max_quantity:
            raise TagError(
                'QUANTITY_INVALID',
                f"Quantity exceeds the maximum of {self.max_quantity} units per operation",
                requested=quantity,
                maximum=self.max_quantity,
            )

        return quantity

    def validate(self, quantity, batch: BatchInfo, direction) -> int:
        """
        Validate a requested quantity against a batch.

        Entries have no upper bound here (the store may impose its own).

        Returns:
            The coerced quantity

        Raises:
            TagError('QUANTITY_INVALID'): Not a positive integer
            TagError('INSUFFICIENT_STOCK'): Exit larger than the batch quantity
        """
        quantity = self.coerce(quantity)

        if Direction(direction) == Direction.EXIT and quantity > batch.quantity:
            raise TagError(
                'INSUFFICIENT_STOCK',
                available=batch.quantity,
                requested=quantity,
                batch_id=batch.id,
            )

        return quantity

    def packages_for(self, product: ProductInfo, quantity: int) -> int | None:
        """Package equivalent of a quantity (None for single-unit products)."""
        if not product.is_packaged:
            return None
        return math.ceil(quantity / product.units_per_package)
