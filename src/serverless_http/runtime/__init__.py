# =============================================================================
# Runtime Package - Adaptation Layer
# =============================================================================
# Turns one Lambda HTTP event into a stream-shaped request/response pair and
# back into one result:
# - EventDescriptor / InvocationResult (envelope)
# - Event parsing and result formatting per event source
# - ServerlessRequest (readable side) and ServerlessResponse (sink)
# - Binary classification and settle-once completion
# =============================================================================

from serverless_http.runtime.binary import is_binary, get_content_type
from serverless_http.runtime.completion import Completion, CompletionSource
from serverless_http.runtime.envelope import EventDescriptor, EventSource, InvocationResult
from serverless_http.runtime.format_result import format_result
from serverless_http.runtime.parse_event import parse_event, detect_event_source
from serverless_http.runtime.request import ServerlessRequest
from serverless_http.runtime.response import ServerlessResponse

__all__ = [
    "Completion",
    "CompletionSource",
    "EventDescriptor",
    "EventSource",
    "InvocationResult",
    "ServerlessRequest",
    "ServerlessResponse",
    "detect_event_source",
    "format_result",
    "get_content_type",
    "is_binary",
    "parse_event",
]
