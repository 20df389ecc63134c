"""
Tagman Protocols.

Defines interfaces for external system integration.
"""

from tagman.protocols.store import (
    AreaInfo,
    BatchInfo,
    InventoryStore,
    ProductInfo,
)

__all__ = [
    "AreaInfo",
    "BatchInfo",
    "InventoryStore",
    "ProductInfo",
]
