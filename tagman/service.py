"""
Session factory — wires the engine from TAGMAN settings.

Usage:
    from tagman import build_session

    exits = build_session(name="pharmacy-counter")
    exits.activate("exit")
"""

from tagman.adapters import get_inventory_store
from tagman.protocols.store import InventoryStore
from tagman.services.committer import MovementCommitter
from tagman.services.notifications import get_dispatcher
from tagman.services.quantities import QuantityPolicy
from tagman.services.resolver import TagResolver
from tagman.services.session import ScanSession

_UNSET = object()


def build_session(name: str = "default", store: InventoryStore | None = None,
                  dispatcher=_UNSET, direction=None) -> ScanSession:
    """
    Build a ScanSession from settings.

    Args:
        name: Label used in logs (one per reader or station)
        store: InventoryStore override (default: TAGMAN['STORE'])
        dispatcher: Notification dispatcher override; None disables
            notifications (default: from TAGMAN['WEBHOOK_URL'])
        direction: Activate the session right away for this direction

    Raises:
        ImproperlyConfigured: If the store cannot be loaded
    """
    store = store if store is not None else get_inventory_store()
    if dispatcher is _UNSET:
        dispatcher = get_dispatcher()

    policy = QuantityPolicy()
    session = ScanSession(
        resolver=TagResolver(store),
        policy=policy,
        committer=MovementCommitter(store, policy=policy, dispatcher=dispatcher),
        name=name,
    )
    if direction is not None:
        session.activate(direction)
    return session
