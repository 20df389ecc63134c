"""Minimal Django settings for running the Tagman test suite."""

SECRET_KEY = "tagman-tests"

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "tagman",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

USE_TZ = True
TIME_ZONE = "UTC"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

TAGMAN = {
    "STORE": "tagman.adapters.orm.OrmInventoryStore",
    "WEBHOOK_URL": "",
    "MAX_QUANTITY_PER_OPERATION": 10000,
}
