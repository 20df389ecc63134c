"""
Webhook notifications — one signed, fire-and-forget POST per event.

Delivery policy is at-most-once: a single attempt with a bounded timeout,
no retries, no outbox. A failed delivery is logged and reported through
the returned DeliveryOutcome; it never touches the movement that caused it.

Usage:
    from tagman.services.notifications import get_dispatcher

    dispatcher = get_dispatcher()  # None when WEBHOOK_URL is empty
    future = dispatcher.dispatch("stock.exit", {"batch": {...}})
    outcome = future.result()
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import requests
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from tagman.conf import tagman_settings
from tagman.exceptions import TagError
from tagman.signing import signature_header

logger = logging.getLogger('tagman')


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a single delivery attempt."""

    event: str
    endpoint: str
    success: bool
    status_code: int | None = None
    error: str | None = None

    @property
    def error_code(self) -> str | None:
        return None if self.success else 'NOTIFICATION_FAILED'

    def as_error(self) -> TagError | None:
        """Failure as a TagError, for callers that surface it as a warning."""
        if self.success:
            return None
        return TagError(
            'NOTIFICATION_FAILED',
            event=self.event,
            endpoint=self.endpoint,
            status_code=self.status_code,
            error=self.error,
        )


class NotificationDispatcher:
    """
    Sends movement events to a single webhook endpoint.

    send() blocks for at most `timeout` seconds. dispatch() runs send() on
    a small thread pool and returns immediately.
    """

    def __init__(self, endpoint: str, secret: str = "", timeout: float = 5,
                 user_agent: str = "tagman", session: requests.Session | None = None,
                 max_workers: int = 2):
        self.endpoint = endpoint
        self.secret = secret
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="tagman-webhook",
        )

    def build_body(self, event: str, payload: dict[str, Any],
                   timestamp: str | None = None) -> tuple[str, str]:
        """
        Serialize an event.

        Returns:
            (timestamp, body) — the exact strings that get signed
        """
        timestamp = timestamp or timezone.now().isoformat()
        body = json.dumps(
            {"event": event, "timestamp": timestamp, "data": payload},
            cls=DjangoJSONEncoder,
        )
        return timestamp, body

    def build_headers(self, event: str, timestamp: str, body: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Event": event,
            "X-Webhook-Timestamp": timestamp,
            "User-Agent": self.user_agent,
        }
        if self.secret:
            headers["X-Webhook-Signature"] = signature_header(self.secret, timestamp, body)
        return headers

    def send(self, event: str, payload: dict[str, Any]) -> DeliveryOutcome:
        """Deliver one event. Never raises."""
        try:
            timestamp, body = self.build_body(event, payload)
        except (TypeError, ValueError) as e:
            return self._failed(event, error=f"unserializable payload: {e}")

        try:
            response = self.session.post(
                self.endpoint,
                data=body.encode("utf-8"),
                headers=self.build_headers(event, timestamp, body),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            return self._failed(event, status_code=status, error=str(e))
        except requests.RequestException as e:
            return self._failed(event, error=str(e))

        logger.info(
            "tagman.notify.sent",
            extra={"event": event, "endpoint": self.endpoint, "status": response.status_code},
        )
        return DeliveryOutcome(
            event=event,
            endpoint=self.endpoint,
            success=True,
            status_code=response.status_code,
        )

    def dispatch(self, event: str, payload: dict[str, Any]) -> Future:
        """Schedule send() without waiting. The future resolves to a DeliveryOutcome."""
        return self._executor.submit(self.send, event, payload)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _failed(self, event, status_code=None, error=None) -> DeliveryOutcome:
        logger.warning(
            "tagman.notify.failed",
            extra={
                "event": event,
                "endpoint": self.endpoint,
                "status": status_code,
                "error": error,
            },
        )
        return DeliveryOutcome(
            event=event,
            endpoint=self.endpoint,
            success=False,
            status_code=status_code,
            error=error,
        )


# Cached dispatcher instance
_lock = threading.Lock()
_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher | None:
    """
    Return the dispatcher configured in TAGMAN settings.

    Returns:
        NotificationDispatcher, or None when WEBHOOK_URL is empty
    """
    global _dispatcher

    if not tagman_settings.WEBHOOK_URL:
        return None

    if _dispatcher is None:
        with _lock:
            if _dispatcher is None:  # double-checked
                _dispatcher = NotificationDispatcher(
                    endpoint=tagman_settings.WEBHOOK_URL,
                    secret=tagman_settings.WEBHOOK_SECRET,
                    timeout=tagman_settings.WEBHOOK_TIMEOUT,
                    user_agent=tagman_settings.WEBHOOK_USER_AGENT,
                    max_workers=tagman_settings.WEBHOOK_WORKERS,
                )
    return _dispatcher


def reset_dispatcher() -> None:
    """Drop the cached dispatcher. Useful for testing."""
    global _dispatcher
    with _lock:
        if _dispatcher is not None:
            _dispatcher.shutdown(wait=False)
        _dispatcher = None
