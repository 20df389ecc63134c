"""
Tagman Adapters.

Implementations of InventoryStore, loaded from settings.

Usage:
    from tagman.adapters import get_inventory_store

    store = get_inventory_store()
    store.batches_for_tag("A1B2C3D4")

Settings:
    TAGMAN = {
        "STORE": "tagman.adapters.orm.OrmInventoryStore",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from tagman.conf import tagman_settings
from tagman.protocols.store import InventoryStore

logger = logging.getLogger(__name__)


# Cached store instance
_lock = threading.Lock()
_store: InventoryStore | None = None


def get_inventory_store() -> InventoryStore:
    """
    Return the configured inventory store.

    Raises:
        ImproperlyConfigured: If STORE is empty, fails to import, or does
            not implement InventoryStore
    """
    global _store

    if _store is None:
        with _lock:
            if _store is None:  # double-checked
                store_path = tagman_settings.STORE

                if not store_path:
                    raise ImproperlyConfigured(
                        "TAGMAN['STORE'] must be configured. "
                        "Example: 'tagman.adapters.orm.OrmInventoryStore'"
                    )

                try:
                    store_class = import_string(store_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import inventory store '{store_path}': {e}"
                    ) from e

                store = store_class()
                if not isinstance(store, InventoryStore):
                    raise ImproperlyConfigured(
                        f"'{store_path}' does not implement InventoryStore"
                    )
                _store = store
                logger.debug("Loaded inventory store: %s", store_path)

    return _store


def reset_inventory_store() -> None:
    """Reset the cached store. Useful for testing."""
    global _store
    _store = None


__all__ = [
    "get_inventory_store",
    "reset_inventory_store",
]
