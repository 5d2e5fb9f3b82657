# =============================================================================
# Native handlers
# =============================================================================
# app(request, response) or app(request, response, done), sync or async.
# The handler talks to ServerlessRequest / ServerlessResponse directly.
# =============================================================================

import inspect
from typing import Any, Callable


def accepts_done(app: Callable) -> bool:
    """True when `app` takes a third positional argument (the done callback)."""
    try:
        params = inspect.signature(app).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = 0
    for param in params:
        if param.kind == param.VAR_POSITIONAL:
            return True
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 3


class NativeFramework:
    """Calls a (request, response[, done]) handler as is."""

    name = "native"

    def __init__(self, app: Callable):
        self.app = app
        self._pass_done = accepts_done(app)

    def __call__(self, request, response, done) -> Any:
        if self._pass_done:
            return self.app(request, response, done)
        return self.app(request, response)
