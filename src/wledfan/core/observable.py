from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[frozenset[str]], None]


class Observable:
    """Subscribe/publish base for state objects read by a UI layer.

    Each mutation publishes once, passing the names of the fields it changed.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, *fields: str) -> None:
        changed = frozenset(fields)
        for listener in list(self._listeners):
            try:
                listener(changed)
            except Exception:
                logger.exception("Listener %r failed for %s", listener, sorted(changed))
