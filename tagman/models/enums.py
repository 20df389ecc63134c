"""
Enums for Tagman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Direction(models.TextChoices):
    """Stock movement direction."""

    ENTRY = 'entry', _('Entry')
    EXIT = 'exit', _('Exit')

    @property
    def sign(self) -> int:
        """+1 for entries, -1 for exits."""
        return 1 if self is Direction.ENTRY else -1


class SessionState(models.TextChoices):
    """Scan session lifecycle state."""

    IDLE = 'idle', _('Idle')
    LISTENING = 'listening', _('Listening')
    AWAITING_CONFIRMATION = 'awaiting_confirmation', _('Awaiting confirmation')


class ExpiryStatus(models.TextChoices):
    """Shelf-life state of a batch at the time of an exit."""

    VALID = 'valid', _('Valid')
    EXPIRING_SOON = 'expiring_soon', _('Expiring soon')
    EXPIRED = 'expired', _('Expired')
