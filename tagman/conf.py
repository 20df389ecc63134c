"""
Tagman configuration.

Usage in settings.py:
    TAGMAN = {
        "STORE": "tagman.adapters.orm.OrmInventoryStore",
        "WEBHOOK_URL": "https://erp.example.com/hooks/stock",
        "WEBHOOK_SECRET": "change-me",
        "WEBHOOK_TIMEOUT": 5,
        "MAX_QUANTITY_PER_OPERATION": 10000,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class TagmanSettings:
    """Tagman configuration settings."""

    # Inventory store backend (dotted path)
    STORE: str = "tagman.adapters.orm.OrmInventoryStore"

    # Webhook endpoint for movement events ("" = notifications disabled)
    WEBHOOK_URL: str = ""

    # Shared secret for X-Webhook-Signature ("" = unsigned)
    WEBHOOK_SECRET: str = ""

    # Seconds to wait for a single delivery attempt
    WEBHOOK_TIMEOUT: float = 5

    WEBHOOK_USER_AGENT: str = "tagman/0.1.0"

    # Threads used for fire-and-forget delivery
    WEBHOOK_WORKERS: int = 2

    # Upper bound for a single confirmed quantity
    MAX_QUANTITY_PER_OPERATION: int = 10000

    # Allow exits from batches past their expiry date
    ALLOW_EXPIRED_EXIT: bool = False

    # Exits from batches expiring within this many days are flagged
    EXPIRY_WARNING_DAYS: int = 30

    # Seconds a pending movement waits for confirmation before it is
    # cancelled (None = wait indefinitely)
    PENDING_TIMEOUT: float | None = None


def get_tagman_settings() -> TagmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "TAGMAN", {})
    return TagmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in TagmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_tagman_settings(), name)


tagman_settings = _LazySettings()
