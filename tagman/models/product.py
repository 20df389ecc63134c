"""
Product and Area models — catalog rows the engine reads but never mutates.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    A dispensable product.

    units_per_package = 1 means the tag labels a single unit; any larger
    value means the tag labels a package and every scan needs the operator
    to confirm how many base units are moving.
    """

    name = models.CharField(max_length=200, verbose_name=_('Name'))
    units_per_package = models.PositiveIntegerField(
        default=1,
        verbose_name=_('Units per package'),
        help_text=_('1 = single unit. Greater than 1 = package of that many units.'),
    )
    min_stock = models.PositiveIntegerField(
        default=10,
        verbose_name=_('Minimum stock'),
        help_text=_('A stock.low webhook fires when total stock drops below this value'),
    )
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['name']

    @property
    def is_packaged(self) -> bool:
        return self.units_per_package > 1

    def __str__(self) -> str:
        return self.name


class Area(models.Model):
    """Destination of an exit (ward, operating room, pharmacy counter)."""

    name = models.CharField(max_length=100, unique=True, verbose_name=_('Name'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    class Meta:
        verbose_name = _('Area')
        verbose_name_plural = _('Areas')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name
