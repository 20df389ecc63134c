"""
Batch model — tagged lot of a product.

A physical RFID tag is attached to a batch. Tags are reused across
shipments, so several batches may carry the same tag; the tag resolver
decides which one a scan refers to.

Usage:
    batch = Batch.objects.create(
        product=amoxicillin,
        lot_number="LOT-2026-0311",
        tag="A1B2C3D4",
        expiry_date=date(2027, 3, 1),
    )
"""

from datetime import date

from django.db import models
from django.utils.translation import gettext_lazy as _

from tagman.tags import canonical_tag


class BatchQuerySet(models.QuerySet):
    """Custom QuerySet for Batch with convenience filters."""

    def with_stock(self):
        """Batches with remaining units."""
        return self.filter(quantity__gt=0)

    def tagged(self, tag: str):
        """Batches carrying the given (normalized) tag."""
        return self.filter(tag=canonical_tag(tag))

    def expired(self):
        """Batches past their expiry date."""
        return self.filter(expiry_date__lt=date.today(), expiry_date__isnull=False)


class Batch(models.Model):
    """
    Tracked quantity of a product sharing a lot and expiry.

    quantity is a cache updated atomically by Move and never negative.
    Never write it directly: create a Move.
    """

    product = models.ForeignKey(
        'tagman.Product',
        on_delete=models.PROTECT,
        related_name='batches',
        verbose_name=_('Product'),
    )
    lot_number = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Lot number'),
    )
    tag = models.CharField(
        max_length=50,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('RFID tag'),
        help_text=_('Not unique: a tag may be reused across shipments.'),
    )
    quantity = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Quantity'),
        help_text=_('Base units on hand. Updated by movements only.'),
    )
    expiry_date = models.DateField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expiry date'),
    )
    entry_date = models.DateField(
        default=date.today,
        verbose_name=_('Entry date'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BatchQuerySet.as_manager()

    class Meta:
        verbose_name = _('Batch')
        verbose_name_plural = _('Batches')
        ordering = ['expiry_date', 'entry_date', 'pk']

    @property
    def is_expired(self) -> bool:
        """Is this batch past its expiry date?"""
        if self.expiry_date is None:
            return False
        return date.today() > self.expiry_date

    def save(self, *args, **kwargs):
        self.tag = canonical_tag(self.tag or '')
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        expiry = f" (exp:{self.expiry_date})" if self.expiry_date else ""
        return f"{self.product} lot {self.lot_number or self.pk}{expiry}: {self.quantity}"
