# =============================================================================
# Errors
# =============================================================================
# Every failure of an invocation is normalized into InvocationError before it
# reaches the caller. The other exceptions are raised to the code that misused
# an object (a framework writing headers after end, a non-dict event, ...).
# =============================================================================

from typing import Any, Dict, Optional


class ServerlessError(Exception):
    """Base class for all serverless-http errors."""


class EventParseError(ServerlessError, ValueError):
    """The incoming event could not be read as an HTTP request."""


class FrameworkError(ServerlessError):
    """A framework broke the calling convention it was wrapped with."""


class ResponseFinalizedError(ServerlessError, RuntimeError):
    """Status or headers were written after the response was finished."""

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation} after the response has ended")
        self.operation = operation


class InvocationError(ServerlessError):
    """
    Structured error produced when an invocation fails.

    Attributes:
        cause: The exception raised by the handler (or the adapter)
        source: Which completion signal reported the failure
        status_code: Status a transport should answer with
    """

    status_code = 500

    def __init__(self, cause: BaseException, source: str = "unknown"):
        super().__init__(f"Invocation failed ({source}): {cause!r}")
        self.cause = cause
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        """Lambda-style error payload."""
        return {
            "errorType": type(self.cause).__name__,
            "errorMessage": str(self.cause),
            "source": self.source,
        }

    def to_result(self, request_id: Optional[str] = None):
        """Translate into a plain 500 InvocationResult."""
        from serverless_http.runtime.envelope import InvocationResult

        headers = {"content-type": "text/plain; charset=utf-8"}
        if request_id:
            headers["x-request-id"] = request_id
        body = "Internal Server Error"
        headers["content-length"] = str(len(body))
        return InvocationResult(
            status_code=self.status_code,
            headers=headers,
            body=body,
            is_base64_encoded=False,
        )
