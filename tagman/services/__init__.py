"""
Movement engine services.

Re-exports the engine components:
    from tagman.services import ScanSession, TagResolver, QuantityPolicy, MovementCommitter
"""

from tagman.services.committer import MovementCommitter, MovementResult, PendingMovement
from tagman.services.notifications import DeliveryOutcome, NotificationDispatcher
from tagman.services.quantities import QuantityPolicy
from tagman.services.resolver import TagResolver
from tagman.services.session import ScanOutcome, ScanSession

__all__ = [
    'DeliveryOutcome',
    'MovementCommitter',
    'MovementResult',
    'NotificationDispatcher',
    'PendingMovement',
    'QuantityPolicy',
    'ScanOutcome',
    'ScanSession',
    'TagResolver',
]
