# =============================================================================
# ServerlessResponse - accumulating response sink
# =============================================================================
# Collects status, headers and body chunks written by a framework and turns
# them into exactly one InvocationResult when the framework calls end().
# =============================================================================

import base64
import logging
from typing import Any, Iterable, List, Optional, Union

from urllib3 import HTTPHeaderDict

from serverless_http.errors import ResponseFinalizedError
from serverless_http.runtime.binary import is_binary
from serverless_http.runtime.emitter import Emitter
from serverless_http.runtime.envelope import InvocationResult

logger = logging.getLogger(__name__)

HeaderValue = Union[str, int, Iterable[str]]
Chunk = Union[str, bytes, bytearray, memoryview]


def _to_bytes(chunk: Chunk, encoding: str = "utf-8") -> bytes:
    if isinstance(chunk, str):
        return chunk.encode(encoding)
    return bytes(chunk)


class ServerlessResponse(Emitter):
    """
    Response object handed to the framework.

    `options` carries the binary classification config used when the
    response is finalized.

    Listeners:
        finish: called once, right after end() finalized the response
        error: called with the exception passed to destroy()
    """

    def __init__(self, request=None, options: Any = None):
        super().__init__()
        self.request = request
        self.options = options
        self._headers = HTTPHeaderDict()
        self._status_code = 200
        self._chunks: List[bytes] = []
        self._result: Optional[InvocationResult] = None

    # -------------------------------------------------------------------------
    # Status and headers
    # -------------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self._result is not None

    @property
    def status_code(self) -> int:
        return self._status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self._check_open("set status")
        self._status_code = int(value)

    @property
    def headers(self) -> HTTPHeaderDict:
        """Copy of the current headers; use set_header() to change them."""
        return self._headers.copy()

    def _check_open(self, operation: str) -> None:
        if self.finished:
            raise ResponseFinalizedError(operation)

    def set_header(self, name: str, value: HeaderValue) -> "ServerlessResponse":
        """Set `name`, replacing every previous value; a list sets several."""
        self._check_open("set header")
        self._headers.discard(name)
        for item in self._values(value):
            self._headers.add(name, item)
        return self

    def append_header(self, name: str, value: HeaderValue) -> "ServerlessResponse":
        """Add value(s) to `name` without dropping earlier ones."""
        self._check_open("append header")
        for item in self._values(value):
            self._headers.add(name, item)
        return self

    def remove_header(self, name: str) -> None:
        self._check_open("remove header")
        self._headers.discard(name)

    def get_header(self, name: str) -> Optional[Union[str, List[str]]]:
        values = self._headers.getlist(name)
        if not values:
            return None
        return values[0] if len(values) == 1 else values

    def has_header(self, name: str) -> bool:
        return name in self._headers

    @staticmethod
    def _values(value: HeaderValue) -> List[str]:
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [str(value)]

    def write_head(self, status_code: int, headers: Any = None) -> "ServerlessResponse":
        """Set status and headers in one call."""
        self.status_code = status_code
        if headers:
            items = headers.items() if hasattr(headers, "items") else headers
            for name, value in items:
                self.set_header(name, value)
        return self

    # -------------------------------------------------------------------------
    # Body
    # -------------------------------------------------------------------------

    def write(self, chunk: Chunk, encoding: str = "utf-8") -> bool:
        """Append a body chunk; dropped once the response has ended."""
        if self.finished:
            logger.debug("Dropping body write after end()")
            return False
        if chunk:
            self._chunks.append(_to_bytes(chunk, encoding))
        return True

    def end(self, chunk: Optional[Chunk] = None, encoding: str = "utf-8") -> None:
        """Finish the response; later calls are ignored."""
        if self.finished:
            logger.debug("Ignoring repeated end()")
            return
        if chunk:
            self.write(chunk, encoding)
        self._result = self._build_result()
        self.emit("finish")

    def destroy(self, exc: Optional[BaseException] = None) -> None:
        """Abort the response with a runtime failure."""
        self._emit_error(exc or ConnectionAbortedError("response destroyed"))

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    # -------------------------------------------------------------------------
    # Result
    # -------------------------------------------------------------------------

    def _build_result(self) -> InvocationResult:
        body = self.body
        headers = {}
        for name in self._headers:
            values = self._headers.getlist(name)
            headers[name.lower()] = values[0] if len(values) == 1 else values

        if is_binary(self._headers, self.options):
            payload, encoded = base64.b64encode(body).decode("ascii"), True
        else:
            payload, encoded = body.decode("utf-8", errors="replace"), False

        return InvocationResult(
            status_code=self._status_code,
            headers=headers,
            body=payload,
            is_base64_encoded=encoded,
        )

    def to_result(self) -> InvocationResult:
        """
        Return the InvocationResult captured when the response ended.

        Raises:
            RuntimeError: if the response has not ended yet
        """
        if self._result is None:
            raise RuntimeError("Response has not ended")
        return self._result

    def __repr__(self) -> str:
        state = "finished" if self.finished else "open"
        return f"<ServerlessResponse {self._status_code} {state}>"
