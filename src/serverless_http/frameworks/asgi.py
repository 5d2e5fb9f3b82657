# =============================================================================
# ASGI applications (HTTP scope, ASGI 3.0)
# =============================================================================
# Starlette, FastAPI, Quart, Django's ASGIHandler... Only the "http" scope is
# served; lifespan events have no place in a per-invocation model.
# =============================================================================

import asyncio
import logging
from typing import Any, Callable, Dict

from serverless_http.errors import FrameworkError

logger = logging.getLogger(__name__)


def build_scope(request) -> Dict[str, Any]:
    """Build the ASGI HTTP connection scope for `request`."""
    headers = request.headers
    host = headers.get("host", "localhost")
    server_name, _, server_port = host.partition(":")
    scheme = headers.get("x-forwarded-proto", request.scheme).split(",")[0].strip()

    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.3"},
        "http_version": request.http_version,
        "method": request.method,
        "scheme": scheme,
        "path": request.path,
        "raw_path": request.path.encode("utf-8"),
        "query_string": request.query_string.encode("latin-1"),
        "root_path": request.root_path,
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in headers.iteritems()
        ],
        "client": (request.remote_address or "127.0.0.1", 0),
        "server": (server_name, int(server_port or request.port)),
        "extensions": {},
        "serverless.event": request.event,
        "serverless.context": request.context,
    }


class HTTPCycle:
    """receive/send pair for one request/response cycle."""

    def __init__(self, request, response):
        self.request = request
        self.response = response
        self.request_sent = False
        self.started = False
        self.disconnected = asyncio.get_running_loop().create_future()
        response.on("finish", self._on_finish)

    def _on_finish(self) -> None:
        if not self.disconnected.done():
            self.disconnected.set_result(None)

    async def receive(self) -> Dict[str, Any]:
        if not self.request_sent:
            body = await self.request.read()
            self.request_sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        await self.disconnected
        return {"type": "http.disconnect"}

    async def send(self, message: Dict[str, Any]) -> None:
        message_type = message["type"]

        if message_type == "http.response.start":
            if self.started:
                raise FrameworkError("http.response.start sent twice")
            self.response.status_code = message["status"]
            for name, value in message.get("headers", []):
                self.response.append_header(name.decode("latin-1"), value.decode("latin-1"))
            self.started = True

        elif message_type == "http.response.body":
            if not self.started:
                raise FrameworkError("http.response.body sent before http.response.start")
            self.response.write(message.get("body", b""))
            if not message.get("more_body", False):
                self.response.end()

        else:
            logger.debug(f"Ignoring unsupported ASGI message: {message_type}")


class ASGIFramework:
    """Runs an ASGI application against a ServerlessRequest / ServerlessResponse."""

    name = "asgi"

    def __init__(self, app: Callable):
        self.app = app

    async def __call__(self, request, response, done) -> None:
        cycle = HTTPCycle(request, response)
        await self.app(build_scope(request), cycle.receive, cycle.send)
        if not response.finished:
            raise FrameworkError("ASGI application returned without completing the response")
