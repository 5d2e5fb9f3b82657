# =============================================================================
# ServerlessRequest - stream-shaped request built from an EventDescriptor
# =============================================================================
# The whole body is known up front. It is delivered as one chunk followed by
# end-of-stream, on the loop turn after the stream is engaged, so that
# listeners attached synchronously by the handler are in place first.
# =============================================================================

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

from serverless_http.runtime.emitter import Emitter
from serverless_http.runtime.envelope import EventDescriptor

logger = logging.getLogger(__name__)


class ServerlessRequest(Emitter):
    """
    Request object handed to the framework.

    Attributes:
        method: HTTP method
        url: Path plus query string
        path: Path without query string (base path removed)
        query_string: Encoded query string
        headers: Case-insensitive HTTPHeaderDict (a copy, never the event's)
        http_version: Always "1.1"
        remote_address: Caller IP from the event, also available as `ip`
        complete: True once end-of-stream was delivered
        event: The raw Lambda event
        context: The Lambda context, passed through untouched
    """

    http_version = "1.1"
    http_version_major = 1
    http_version_minor = 1
    scheme = "https"
    port = 443

    def __init__(self, descriptor: EventDescriptor, context: Any = None, base_path: str = ""):
        super().__init__()
        self.descriptor = descriptor
        self.event = descriptor.raw_event
        self.context = context
        self.method = descriptor.method
        self.root_path = base_path.rstrip("/") if base_path else ""
        self.path = self._strip_base_path(descriptor.path)
        self.query_string = descriptor.query_string
        self.url = f"{self.path}?{self.query_string}" if self.query_string else self.path
        self.remote_address = descriptor.remote_address
        self.complete = False

        self._body = descriptor.decoded_body()
        self.headers = descriptor.header_dict()
        if "content-length" not in self.headers:
            self.headers["content-length"] = str(len(self._body))

        self._engaged = False
        self._delivered = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._done: Optional[asyncio.Future] = None

    def _strip_base_path(self, path: str) -> str:
        if self.root_path and (path == self.root_path or path.startswith(self.root_path + "/")):
            return path[len(self.root_path):] or "/"
        return path

    @property
    def ip(self) -> Optional[str]:
        return self.remote_address

    @property
    def content_length(self) -> int:
        return len(self._body)

    def on(self, event: str, callback) -> "ServerlessRequest":
        super().on(event, callback)
        if event == "data":
            self.resume()
        return self

    def resume(self) -> "ServerlessRequest":
        """Engage the stream; the body arrives on the next loop turn."""
        if self._engaged:
            return self
        self._engaged = True
        self._get_loop().call_soon(self._deliver)
        return self

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _done_future(self) -> asyncio.Future:
        if self._done is None:
            self._done = self._get_loop().create_future()
        return self._done

    def _deliver(self) -> None:
        if self._delivered:
            return
        self._delivered = True
        try:
            self.emit("data", self._body)
            self.complete = True
            self.emit("end")
        except Exception as exc:
            self._emit_error(exc)
        finally:
            self.complete = True
            done = self._done_future()
            if not done.done():
                done.set_result(self._body)

    async def read(self) -> bytes:
        """Return the full body once it has been delivered."""
        done = self._done_future()
        self.resume()
        return await asyncio.shield(done)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        body = await self.read()
        yield body

    def __repr__(self) -> str:
        return f"<ServerlessRequest {self.method} {self.url}>"
