"""Field event constants and a small per-field notification mechanism.

Each Field owns one ``EventEmitter``; subscribers are plain callables keyed
by event name and are invoked synchronously in registration order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List
import logging

logger = logging.getLogger(__name__)

VALUE_CHANGED = "valueChanged"
HIDDEN_CHANGED = "hiddenChanged"

Subscriber = Callable[..., Any]


class EventEmitter:
    def __init__(self, owner: str = "") -> None:
        self.owner = owner
        self._subscribers: Dict[str, List[Subscriber]] = {}

    def on(self, event: str, callback: Subscriber) -> None:
        """Subscribe ``callback`` to ``event`` (a callback is registered once)."""
        callbacks = self._subscribers.setdefault(event, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def off(self, event: str, callback: Subscriber) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def has(self, event: str) -> bool:
        return bool(self._subscribers.get(event))

    def trigger(self, event: str, *args: Any) -> None:
        """Invoke every subscriber of ``event``; subscriber errors propagate."""
        logger.debug("event_trigger owner=%s event=%s", self.owner, event)
        for callback in list(self._subscribers.get(event, ())):
            callback(*args)


__all__ = ["VALUE_CHANGED", "HIDDEN_CHANGED", "EventEmitter"]
