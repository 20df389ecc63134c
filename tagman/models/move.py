"""
Move model — Immutable ledger of batch quantity changes.
"""

from django.conf import settings
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tagman.models.enums import Direction


class InsufficientBatchQuantity(Exception):
    """Raised by Move.save() when the delta would make the batch negative."""


class Move(models.Model):
    """
    Immutable record of a batch quantity change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Moves with inverse delta
    - Updates Batch.quantity atomically on save(), refusing to go negative

    This is the ONLY model that changes quantity.
    """

    batch = models.ForeignKey(
        'tagman.Batch',
        on_delete=models.PROTECT,
        related_name='moves',
        verbose_name=_('Batch'),
    )
    delta = models.IntegerField(
        verbose_name=_('Delta'),
        help_text=_('Positive = entry, negative = exit'),
    )
    direction = models.CharField(
        max_length=10,
        choices=Direction.choices,
        verbose_name=_('Direction'),
    )
    area = models.ForeignKey(
        'tagman.Area',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='moves',
        verbose_name=_('Destination area'),
    )
    reason = models.CharField(
        max_length=255,
        verbose_name=_('Reason'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('User'),
    )

    class Meta:
        verbose_name = _('Move')
        verbose_name_plural = _('Moves')
        ordering = ['timestamp']
        indexes = [
            models.Index(fields=['batch', 'timestamp'], name='tagman_move_batch_ts_idx'),
        ]

    def save(self, *args, **kwargs):
        """Save move and update batch cache atomically."""
        if self.pk:
            raise ValueError(
                "Moves are immutable. "
                "To correct one, create a new Move with the inverse delta."
            )

        if not self.reason:
            raise ValueError("Reason is required")

        if self.delta == 0:
            raise ValueError("Delta must be non-zero")

        from tagman.models.batch import Batch

        with transaction.atomic():
            # Conditional update: an exit only applies while enough stock remains
            updated = Batch.objects.filter(
                pk=self.batch_id,
                quantity__gte=max(-self.delta, 0),
            ).update(
                quantity=F('quantity') + self.delta,
                updated_at=timezone.now(),
            )
            if not updated:
                raise InsufficientBatchQuantity(self.batch_id)

            super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — moves are immutable."""
        raise ValueError(
            "Moves are immutable. "
            "To reverse one, create a new Move with the inverse delta."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.reason}"
