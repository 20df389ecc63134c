"""
Exceptions for Tagman.

All engine errors are TagError with a structured code for programmatic handling.
"""

from typing import Any


class TagError(Exception):
    """
    Structured exception for scan and movement operations.

    Usage:
        try:
            session.confirm(tag, 50)
        except TagError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} units left")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'TAG_NOT_FOUND': 'No batch is registered for this tag',
        'BATCH_NOT_FOUND': 'Batch not found',
        'PRODUCT_NOT_FOUND': 'Product not found for this batch',
        'AREA_NOT_FOUND': 'Destination area does not exist',
        'INVALID_TAG': 'Tag has an invalid format',
        'INSUFFICIENT_STOCK': 'Not enough stock in this batch',
        'QUANTITY_INVALID': 'Quantity must be a positive integer',
        'QUANTITY_REQUIRED': 'Packaged product, quantity must be confirmed',
        'STALE_MOVEMENT': 'Batch changed while the movement was pending',
        'BATCH_EXPIRED': 'Batch is expired and cannot be dispensed',
        'AREA_NOT_ALLOWED': 'Destination area only applies to exits',
        'STORE_UNAVAILABLE': 'Inventory store is unavailable',
        'NOTIFICATION_FAILED': 'Webhook delivery failed',
        'SESSION_INACTIVE': 'Scan session is not active',
        'MOVEMENT_PENDING': 'Another movement is awaiting confirmation',
        'NO_PENDING_MOVEMENT': 'No movement is awaiting confirmation',
        'PENDING_EXPIRED': 'Pending movement expired before confirmation',
        'TAG_MISMATCH': 'Tag does not match the pending movement',
        'DIRECTION_MISMATCH': 'Scan direction does not match the session',
        'DUPLICATE_EVENT': 'Scan event was already processed',
    }

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None))) else str(v)
                for k, v in self.data.items()
            },
        }

    def __repr__(self) -> str:
        return f"TagError({self.code!r}, {self.message!r})"
