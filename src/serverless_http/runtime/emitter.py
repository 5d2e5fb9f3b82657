# =============================================================================
# Listener registry shared by the request and response objects
# =============================================================================

import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class Emitter:
    """Minimal named-event listener registry."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable) -> "Emitter":
        """Register `callback` for `event`; returns self for chaining."""
        self._listeners.setdefault(event, []).append(callback)
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args) -> bool:
        """Call every listener of `event` in registration order."""
        listeners = list(self._listeners.get(event, ()))
        for callback in listeners:
            callback(*args)
        return bool(listeners)

    def _emit_error(self, exc: BaseException) -> None:
        if not self.emit("error", exc):
            logger.error(f"Unhandled {type(self).__name__} error: {exc!r}", exc_info=exc)
