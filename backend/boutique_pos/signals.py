# Overview: Change notifications for live views (catalog, sales, cash closings).
"""
Receivers are called after the write has been committed, with the Flask app
as sender and keyword payload describing what changed. They are expected to
re-run their own queries; payloads are hints, not snapshots.
"""
from __future__ import annotations

from typing import Callable

from blinker import Namespace
from flask import current_app

_signals = Namespace()

products_changed = _signals.signal("products-changed")
sales_changed = _signals.signal("sales-changed")
closings_changed = _signals.signal("closings-changed")


def subscribe(signal, callback: Callable) -> Callable[[], None]:
    """Connect a receiver; returns a function that disconnects it."""
    signal.connect(callback, weak=False)

    def unsubscribe() -> None:
        signal.disconnect(callback)

    return unsubscribe


def notify(signal, **payload) -> None:
    signal.send(current_app._get_current_object(), **payload)
