"""
Scan session — one reader, one operator, at most one pending movement.

LIFECYCLE:

    ┌──────┐  activate()   ┌───────────┐  scan (packaged)  ┌───────────────────────┐
    │ IDLE │ ────────────► │ LISTENING │ ────────────────► │ AWAITING_CONFIRMATION │
    └──────┘               └───────────┘ ◄──────────────── └───────────────────────┘
        ▲                   │  ▲    │      confirm() / cancel()      │
        │                   │  └────┘                                │
        │                   │  scan (single unit):                   │
        │                   │  commit quantity 1                     │
        │   deactivate()    │                                        │
        └───────────────────┴────────────────────────────────────────┘

RULES:
    - Scans arriving while a movement awaits confirmation are rejected with
      MOVEMENT_PENDING; the pending movement is never overwritten.
    - Resolution failures keep the session LISTENING.
    - A confirmation either commits or fails; both clear the pending
      movement and return to LISTENING. The only exception is TAG_MISMATCH,
      which is not a confirmation of the pending movement at all.
    - deactivate() discards the pending movement without committing.
    - With TAGMAN["PENDING_TIMEOUT"] set, a pending movement left unconfirmed
      for longer is cancelled. The next scan proceeds as if it were never
      there; a confirm() for it fails with PENDING_EXPIRED, or with
      NO_PENDING_MOVEMENT once expire_pending() has already dropped it.
      Without a timeout the operator confirms, cancels or deactivates.

Concurrency:
    Every public method holds the session lock, so events are processed one
    at a time. Separate sessions share only the store.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import timedelta

from django.core.exceptions import ImproperlyConfigured

from tagman.conf import tagman_settings
from tagman.events import ScanEvent
from tagman.exceptions import TagError
from tagman.models.enums import Direction, SessionState
from tagman.protocols.store import InventoryStore
from tagman.services.committer import MovementCommitter, MovementResult, PendingMovement
from tagman.services.quantities import QuantityPolicy
from tagman.services.resolver import TagResolver
from tagman.tags import normalize_tag

logger = logging.getLogger('tagman')


@dataclass(frozen=True)
class ScanOutcome:
    """What a scan did: committed a movement or parked it for confirmation."""

    state: str
    result: MovementResult | None = None
    pending: PendingMovement | None = None

    COMMITTED = 'committed'
    AWAITING_CONFIRMATION = 'awaiting_confirmation'

    @property
    def committed(self) -> bool:
        return self.state == self.COMMITTED

    @property
    def awaiting_confirmation(self) -> bool:
        return self.state == self.AWAITING_CONFIRMATION


class ScanSession:
    """
    Stateful driver of the movement engine for a single reader.

    Usage:
        session = ScanSession(resolver, policy, committer)
        session.activate(Direction.EXIT)

        outcome = session.handle_scan("A1B2C3D4")
        if outcome.awaiting_confirmation:
            result = session.confirm("A1B2C3D4", 15, area_id=ward.id)

        session.deactivate()
    """

    def __init__(self, resolver: TagResolver, policy: QuantityPolicy,
                 committer: MovementCommitter, name: str = "default",
                 pending_timeout: float | None = None):
        if not isinstance(resolver.store, InventoryStore):
            raise ImproperlyConfigured(
                f"{type(resolver.store).__name__} does not implement InventoryStore"
            )
        if committer.store is not resolver.store:
            raise ImproperlyConfigured("Resolver and committer must share the same store")

        self.resolver = resolver
        self.policy = policy
        self.committer = committer
        self.name = name
        self._pending_timeout = pending_timeout

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._direction: Direction | None = None
        self._pending: PendingMovement | None = None
        self._last_sequence = 0

    # ══════════════════════════════════════════════════════════════
    # STATE
    # ══════════════════════════════════════════════════════════════

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def direction(self) -> Direction | None:
        return self._direction

    @property
    def pending(self) -> PendingMovement | None:
        return self._pending

    @property
    def is_active(self) -> bool:
        return self._state != SessionState.IDLE

    @property
    def pending_timeout(self) -> float | None:
        """Seconds before a pending movement is cancelled (None = no limit)."""
        if self._pending_timeout is not None:
            return self._pending_timeout
        return tagman_settings.PENDING_TIMEOUT

    def _log(self, event: str, level=logging.INFO, **extra):
        extra.update(session=self.name, state=str(self._state))
        logger.log(level, event, extra=extra)

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    def activate(self, direction) -> None:
        """
        Start listening for a direction.

        Transition: any -> LISTENING. Clears any stale pending movement.
        """
        direction = Direction(direction)
        with self._lock:
            self._discard_pending("activate")
            self._direction = direction
            self._state = SessionState.LISTENING
            self._log("tagman.session.activated", direction=str(direction))

    def deactivate(self) -> PendingMovement | None:
        """
        Stop listening.

        Transition: any -> IDLE. The pending movement is discarded uncommitted.

        Returns:
            The discarded pending movement, if any
        """
        with self._lock:
            discarded = self._discard_pending("deactivate")
            self._state = SessionState.IDLE
            self._direction = None
            self._log("tagman.session.deactivated")
            return discarded

    def cancel(self) -> PendingMovement | None:
        """
        Drop the pending movement.

        Transition: AWAITING_CONFIRMATION -> LISTENING

        Raises:
            TagError('NO_PENDING_MOVEMENT'): Nothing awaits confirmation
        """
        with self._lock:
            if self._pending is None:
                raise TagError('NO_PENDING_MOVEMENT', session=self.name)
            discarded = self._discard_pending("cancel")
            self._state = SessionState.LISTENING
            return discarded

    def expire_pending(self) -> PendingMovement | None:
        """
        Cancel the pending movement if its confirmation window has passed.

        Operations check this themselves; call it from a UI tick to make the
        state visible without waiting for the next event.

        Returns:
            The expired movement, if any
        """
        with self._lock:
            return self._expire_pending()

    def handle_scan(self, scan: ScanEvent | str, area_id=None) -> ScanOutcome:
        """
        Process one scan.

        Args:
            scan: ScanEvent from the reader feed, or a bare tag for this
                session's direction
            area_id: Destination area for exits (applied on commit)

        Returns:
            ScanOutcome (committed, or awaiting confirmation)

        Raises:
            TagError('SESSION_INACTIVE'): Session is IDLE
            TagError('MOVEMENT_PENDING'): A movement awaits confirmation
            TagError('DIRECTION_MISMATCH'): Event direction differs from the session
            TagError('DUPLICATE_EVENT'): Event sequence already processed
            TagError: Resolution and commit errors (session stays LISTENING)
        """
        with self._lock:
            if not self.is_active:
                raise TagError('SESSION_INACTIVE', session=self.name)

            event = self._accept(scan)
            self._expire_pending()

            if self._pending is not None:
                self._log(
                    "tagman.scan.rejected",
                    logging.WARNING,
                    tag=event.tag,
                    pending_tag=self._pending.tag,
                )
                raise TagError(
                    'MOVEMENT_PENDING',
                    tag=event.tag,
                    pending_tag=self._pending.tag,
                )

            try:
                product, batch = self.resolver.resolve(event.tag, self._direction)
            except TagError as e:
                self._log("tagman.scan.unresolved", logging.WARNING, tag=event.tag, error=e.code)
                raise

            movement = PendingMovement(
                tag=normalize_tag(event.tag),
                product=product,
                batch=batch,
                direction=self._direction,
                area_id=area_id if self._direction == Direction.EXIT else None,
            )

            if self.policy.requires_confirmation(product):
                timeout = self.pending_timeout
                if timeout:
                    movement = replace(
                        movement,
                        expires_at=movement.created_at + timedelta(seconds=timeout),
                    )
                self._pending = movement
                self._state = SessionState.AWAITING_CONFIRMATION
                self._log(
                    "tagman.scan.pending",
                    tag=movement.tag,
                    batch_id=batch.id,
                    units_per_package=product.units_per_package,
                )
                return ScanOutcome(state=ScanOutcome.AWAITING_CONFIRMATION, pending=movement)

            result = self.committer.commit(movement, self.policy.default_quantity(product))
            self._log("tagman.scan.committed", tag=movement.tag, batch_id=batch.id, qty=result.quantity)
            return ScanOutcome(state=ScanOutcome.COMMITTED, result=result)

    def confirm(self, tag: str, quantity, area_id=None) -> MovementResult:
        """
        Commit the pending movement with an operator-supplied quantity.

        Transition: AWAITING_CONFIRMATION -> LISTENING, whether the commit
        succeeds or fails.

        Args:
            tag: Tag of the pending movement (correlation)
            quantity: Base units (positive integer)
            area_id: Destination area, exit only (overrides the scan's)

        Raises:
            TagError('NO_PENDING_MOVEMENT'): Nothing awaits confirmation
            TagError('TAG_MISMATCH'): Tag differs; pending movement kept
            TagError('PENDING_EXPIRED'): Confirmation came after the timeout
            TagError: Validation and commit errors (pending cleared)
        """
        with self._lock:
            movement = self._pending
            if movement is None:
                raise TagError('NO_PENDING_MOVEMENT', session=self.name)

            if normalize_tag(tag) != movement.tag:
                raise TagError('TAG_MISMATCH', tag=tag, pending_tag=movement.tag)

            if self._expire_pending() is not None:
                raise TagError('PENDING_EXPIRED', tag=movement.tag, expires_at=movement.expires_at)

            self._pending = None
            self._state = SessionState.LISTENING

            try:
                result = self.committer.commit(movement, quantity, area_id=area_id)
            except TagError as e:
                self._log(
                    "tagman.confirm.failed",
                    logging.WARNING,
                    tag=movement.tag,
                    qty=quantity,
                    error=e.code,
                )
                raise

            self._log("tagman.confirm.committed", tag=movement.tag, qty=result.quantity)
            return result

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    def _accept(self, scan: ScanEvent | str) -> ScanEvent:
        """Check an incoming event against the session and consume it."""
        if not isinstance(scan, ScanEvent):
            return ScanEvent(tag=scan, direction=self._direction)

        if Direction(scan.direction) != self._direction:
            raise TagError(
                'DIRECTION_MISMATCH',
                tag=scan.tag,
                expected=str(self._direction),
                received=str(scan.direction),
            )

        if scan.sequence <= self._last_sequence:
            raise TagError('DUPLICATE_EVENT', tag=scan.tag, sequence=scan.sequence)

        self._last_sequence = scan.sequence
        return scan

    def _expire_pending(self) -> PendingMovement | None:
        if self._pending is None or not self._pending.is_expired:
            return None
        expired = self._discard_pending("timeout")
        self._state = SessionState.LISTENING
        return expired

    def _discard_pending(self, reason: str) -> PendingMovement | None:
        discarded, self._pending = self._pending, None
        if discarded is not None:
            self._log("tagman.pending.discarded", tag=discarded.tag, reason=reason)
        return discarded
