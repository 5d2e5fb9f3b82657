# =============================================================================
# Framework calling conventions
# =============================================================================
# Every convention is wrapped into one shape:
#     entry(request, response, done) -> None | awaitable
# so the orchestrator never needs to know which framework it is driving.
# =============================================================================

import inspect
import logging
from typing import Any, Callable, List

from serverless_http.errors import FrameworkError
from serverless_http.frameworks.asgi import ASGIFramework
from serverless_http.frameworks.native import NativeFramework
from serverless_http.frameworks.wsgi import WSGIFramework

logger = logging.getLogger(__name__)

_FRAMEWORKS = {
    "native": NativeFramework,
    "wsgi": WSGIFramework,
    "asgi": ASGIFramework,
}


def _positional_names(app: Callable) -> List[str]:
    try:
        params = inspect.signature(app).parameters.values()
    except (TypeError, ValueError):
        return []
    return [p.name for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]


def _is_async(app: Callable) -> bool:
    return inspect.iscoroutinefunction(app) or inspect.iscoroutinefunction(getattr(app, "__call__", None))


def detect_framework(app: Callable) -> str:
    """
    Guess the calling convention of `app`.

    A coroutine callable taking three arguments is ASGI, a callable whose
    first argument is named "environ" is WSGI, anything else is native.
    """
    names = _positional_names(app)
    if _is_async(app) and len(names) == 3:
        return "asgi"
    if names and names[0] == "environ":
        return "wsgi"
    return "native"


def get_framework(app: Any, framework: str = "auto"):
    """Wrap `app` in the entry point for `framework` ("auto" detects it)."""
    if not callable(app):
        raise FrameworkError(f"Unsupported application: {type(app).__name__} is not callable")
    if framework == "auto":
        framework = detect_framework(app)
        logger.debug(f"Detected framework: {framework}")
    try:
        return _FRAMEWORKS[framework](app)
    except KeyError:
        raise FrameworkError(f"Unknown framework {framework!r}") from None


__all__ = [
    "ASGIFramework",
    "NativeFramework",
    "WSGIFramework",
    "detect_framework",
    "get_framework",
]
