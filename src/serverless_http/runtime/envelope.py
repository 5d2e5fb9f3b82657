# =============================================================================
# Envelope - Event Descriptor and Invocation Result
# =============================================================================
# Every supported trigger (API Gateway REST, HTTP API, ALB, direct invoke) is
# normalized into an EventDescriptor. The adapter never mutates it; it only
# derives copies (header dict, URL, decoded body) from it.
# =============================================================================

import base64
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urlencode

from urllib3 import HTTPHeaderDict


class EventSource(str, Enum):
    """Event formats the parser understands."""
    API_GATEWAY_V1 = "api_gateway_v1"    # REST API
    API_GATEWAY_V2 = "api_gateway_v2"    # HTTP API (payload format 2.0)
    ALB = "alb"                          # Application Load Balancer
    DIRECT = "direct"                    # already flat descriptor dict


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class EventDescriptor:
    """
    Normalized HTTP request carried by one invocation.

    Attributes:
        method: HTTP method, upper case
        path: Request path without query string
        query: Single-valued query parameters
        multi_query: Query parameters with every value
        headers: Headers as given by the event (single values)
        multi_headers: Headers with every value
        body: Raw body as found in the event (text, bytes or None)
        is_base64_encoded: Whether `body` is base64 text
        remote_address: Caller IP address
        source: Which event format produced this descriptor
        request_context: Provider request context, untouched
        raw_event: Original event for debugging and hooks
    """
    method: str = "GET"
    path: str = "/"
    query: Mapping[str, str] = field(default_factory=dict)
    multi_query: Mapping[str, List[str]] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    multi_headers: Mapping[str, List[str]] = field(default_factory=dict)
    body: Union[str, bytes, None] = None
    is_base64_encoded: bool = False
    remote_address: Optional[str] = None
    source: EventSource = EventSource.DIRECT
    request_context: Mapping[str, Any] = field(default_factory=dict)
    raw_event: Mapping[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        # Read-only views so handlers cannot write through to the event
        for name in ("query", "multi_query", "headers", "multi_headers",
                     "request_context", "raw_event"):
            object.__setattr__(self, name, _freeze(getattr(self, name)))
        object.__setattr__(self, "method", (self.method or "GET").upper())
        object.__setattr__(self, "path", self.path or "/")

    @property
    def query_string(self) -> str:
        """URL-encoded query string, multi-valued parameters preferred."""
        if self.multi_query:
            pairs = [(k, v) for k, values in self.multi_query.items() for v in values]
        else:
            pairs = list(self.query.items())
        return urlencode(pairs)

    @property
    def url(self) -> str:
        """Path plus query string, as a framework expects in `request.url`."""
        query_string = self.query_string
        return f"{self.path}?{query_string}" if query_string else self.path

    def header_dict(self) -> HTTPHeaderDict:
        """Fresh case-insensitive copy of the request headers."""
        headers = HTTPHeaderDict()
        if self.multi_headers:
            for key, values in self.multi_headers.items():
                for value in values:
                    headers.add(key, str(value))
        for key, value in self.headers.items():
            if value is not None and key not in headers:
                headers[key] = str(value)
        return headers

    def decoded_body(self) -> bytes:
        """Body bytes with the transport encoding removed."""
        if self.body is None:
            return b""
        if self.is_base64_encoded:
            return base64.b64decode(self.body)
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return bytes(self.body)

    def to_dict(self) -> Dict[str, Any]:
        """Convert descriptor to a plain dictionary."""
        return {
            "method": self.method,
            "path": self.path,
            "query": dict(self.query),
            "multiQuery": {k: list(v) for k, v in self.multi_query.items()},
            "headers": dict(self.headers),
            "multiHeaders": {k: list(v) for k, v in self.multi_headers.items()},
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
            "remoteAddress": self.remote_address,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class InvocationResult:
    """
    Flat result of one invocation.

    `headers` keys are lower case; a value is a str, or a list of str when
    the header was sent more than once (set-cookie).
    """
    status_code: int
    headers: Mapping[str, Union[str, List[str]]]
    body: str
    is_base64_encoded: bool = False

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze(self.headers))

    def body_bytes(self) -> bytes:
        """Body with the transport encoding removed."""
        if self.is_base64_encoded:
            return base64.b64decode(self.body)
        return self.body.encode("utf-8")

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to a plain dictionary."""
        return {
            "statusCode": self.status_code,
            "headers": {k: (list(v) if isinstance(v, list) else v) for k, v in self.headers.items()},
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
        }
