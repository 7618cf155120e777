"""Registry of externally registered hook callbacks.

Callbacks are kept per event name in registration order. Each event list is
an immutable tuple replaced on registration, so readers iterate a stable
snapshot while a writer appends.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Tuple

VALIDATE_ROUTE = "validate_route"

Hook = Callable[..., object]


def _normalize_event(event: str) -> str:
    return str(event).strip().lower()


class HookRegistry:
    """Ordered hook callbacks keyed by event name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hooks: Dict[str, Tuple[Hook, ...]] = {}

    def register(self, event: str, callback: Hook) -> None:
        if not callable(callback):
            raise TypeError(f"Hook for {event!r} must be callable")
        event = _normalize_event(event)
        with self._lock:
            self._hooks[event] = self._hooks.get(event, ()) + (callback,)

    def unregister(self, event: str, callback: Hook) -> bool:
        """Remove the first registration of ``callback``; False if absent."""

        event = _normalize_event(event)
        with self._lock:
            hooks = list(self._hooks.get(event, ()))
            if callback not in hooks:
                return False
            hooks.remove(callback)
            self._hooks[event] = tuple(hooks)
            return True

    def get(self, event: str) -> Tuple[Hook, ...]:
        return self._hooks.get(_normalize_event(event), ())
