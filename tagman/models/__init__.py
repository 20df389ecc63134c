"""
Tagman Models.

Default record store for the movement engine:
- Product: what a batch contains, and how it is packaged
- Area: where exits go
- Batch: tagged lot with a quantity cache
- Move: immutable ledger of quantity changes
"""

from tagman.models.batch import Batch
from tagman.models.enums import Direction, ExpiryStatus, SessionState
from tagman.models.move import Move
from tagman.models.product import Area, Product

__all__ = [
    'Direction',
    'ExpiryStatus',
    'SessionState',
    'Product',
    'Area',
    'Batch',
    'Move',
]
