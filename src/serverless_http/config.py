# =============================================================================
# Configuration
# =============================================================================
# Options accepted by serverless(). Values not passed explicitly can come
# from the Lambda environment:
#   SERVERLESS_BINARY      comma separated media types, or "true" / "false"
#   SERVERLESS_FRAMEWORK   auto | native | wsgi | asgi
#   SERVERLESS_BASE_PATH   prefix stripped from every request path
# =============================================================================

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional, Union

from serverless_http.errors import FrameworkError
from serverless_http.runtime.binary import BinaryConfig

logger = logging.getLogger(__name__)

FRAMEWORKS = ("auto", "native", "wsgi", "asgi")

Hook = Callable[..., Any]


def _parse_binary(raw: str) -> Union[bool, list]:
    value = raw.strip()
    if value.lower() in ("true", "1", "yes"):
        return True
    if value.lower() in ("false", "0", "no"):
        return False
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class ServerlessOptions:
    """
    Adapter options.

    Attributes:
        binary: Media types to base64 encode, False, True or a predicate
            called as predicate(headers, options)
        framework: Calling convention of the wrapped app
        base_path: Path prefix removed before the app sees the request
        request: Hook called as request(request, event, context) before the app
        response: Hook called as response(result, event, context) afterwards;
            a non-None return value replaces the result
    """
    binary: BinaryConfig = field(default_factory=list)
    framework: str = "auto"
    base_path: str = ""
    request: Optional[Hook] = None
    response: Optional[Hook] = None

    def __post_init__(self):
        if self.framework not in FRAMEWORKS:
            raise FrameworkError(
                f"Unknown framework {self.framework!r}, expected one of {', '.join(FRAMEWORKS)}"
            )
        if self.binary is None:
            self.binary = []
        elif isinstance(self.binary, str):
            self.binary = [self.binary]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ServerlessOptions":
        """Build options from environment variables, then apply `overrides`."""
        environ = os.environ if environ is None else environ
        values = {}

        if environ.get("SERVERLESS_BINARY"):
            values["binary"] = _parse_binary(environ["SERVERLESS_BINARY"])
        if environ.get("SERVERLESS_FRAMEWORK"):
            values["framework"] = environ["SERVERLESS_FRAMEWORK"].strip().lower()
        if environ.get("SERVERLESS_BASE_PATH"):
            values["base_path"] = environ["SERVERLESS_BASE_PATH"].strip()

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown serverless option(s): {', '.join(sorted(unknown))}")
        values.update(overrides)

        logger.debug(f"Serverless options set: {sorted(values)}")
        return cls(**values)
