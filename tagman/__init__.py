"""
Django Tagman — RFID-triggered stock movement engine.

Turns reader scans into committed batch entries and exits, asks the
operator for a quantity when a tag labels a package, and notifies
external systems with signed webhooks.

Usage:
    from tagman import build_session, TagError

    session = build_session()
    session.activate('exit')
    outcome = session.handle_scan('A1B2C3D4')
    if outcome.awaiting_confirmation:
        session.confirm('A1B2C3D4', 15, area_id=icu.pk)
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'build_session':
        from tagman.service import build_session
        return build_session
    elif name == 'TagError':
        from tagman.exceptions import TagError
        return TagError
    elif name == 'ScanSession':
        from tagman.services.session import ScanSession
        return ScanSession
    elif name == 'ScanEvent':
        from tagman.events import ScanEvent
        return ScanEvent
    elif name == 'Direction':
        from tagman.models.enums import Direction
        return Direction
    elif name == 'SessionState':
        from tagman.models.enums import SessionState
        return SessionState
    elif name == 'Product':
        from tagman.models.product import Product
        return Product
    elif name == 'Area':
        from tagman.models.product import Area
        return Area
    elif name == 'Batch':
        from tagman.models.batch import Batch
        return Batch
    elif name == 'Move':
        from tagman.models.move import Move
        return Move
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'build_session',
    'TagError',
    'ScanSession',
    'ScanEvent',
    'Direction',
    'SessionState',
    'Product',
    'Area',
    'Batch',
    'Move',
]

__version__ = '0.1.0'
