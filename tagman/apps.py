"""Django app configuration for Tagman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class TagmanConfig(AppConfig):
    """Configuration for Tagman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "tagman"
    verbose_name = _("RFID Stock Movements")
