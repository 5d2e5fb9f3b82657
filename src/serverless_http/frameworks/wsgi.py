# =============================================================================
# WSGI applications (PEP 3333)
# =============================================================================
# Flask, Django, Pyramid, Falcon... The body is read from the
# ServerlessRequest first, then the application runs inline on the loop
# thread and everything it produces goes into the ServerlessResponse.
# =============================================================================

import io
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Headers that have their own environ keys instead of HTTP_*
_SPECIAL_HEADERS = {"content-type": "CONTENT_TYPE", "content-length": "CONTENT_LENGTH"}


def _latin1(value: str) -> str:
    # PEP 3333 "bytes as str": UTF-8 bytes carried through latin-1
    return value.encode("utf-8").decode("latin-1")


def build_environ(request, body: bytes) -> Dict[str, Any]:
    """Build the WSGI environ for `request` with the already read `body`."""
    headers = request.headers
    host = headers.get("host", "localhost")
    server_name, _, server_port = host.partition(":")
    scheme = headers.get("x-forwarded-proto", request.scheme).split(",")[0].strip()

    environ = {
        "REQUEST_METHOD": request.method,
        "SCRIPT_NAME": _latin1(request.root_path),
        "PATH_INFO": _latin1(request.path),
        "QUERY_STRING": request.query_string,
        "SERVER_NAME": server_name,
        "SERVER_PORT": server_port or str(request.port),
        "SERVER_PROTOCOL": f"HTTP/{request.http_version}",
        "REMOTE_ADDR": request.remote_address or "127.0.0.1",
        "wsgi.version": (1, 0),
        "wsgi.url_scheme": scheme,
        "wsgi.input": io.BytesIO(body),
        "wsgi.errors": sys.stderr,
        "wsgi.multithread": False,
        "wsgi.multiprocess": False,
        "wsgi.run_once": False,
        "serverless.event": request.event,
        "serverless.context": request.context,
    }

    for name in headers:
        value = ", ".join(headers.getlist(name))
        key = _SPECIAL_HEADERS.get(name.lower())
        if key is None:
            key = "HTTP_" + name.upper().replace("-", "_")
        environ[key] = _latin1(value)

    return environ


class StartResponse:
    """start_response callable; headers reach the response with the first body byte."""

    def __init__(self, response):
        self.response = response
        self.status: Optional[str] = None
        self.headers: List[Tuple[str, str]] = []
        self.sent = False

    def __call__(self, status: str, headers: List[Tuple[str, str]], exc_info: Optional[tuple] = None):
        if exc_info:
            try:
                if self.sent:
                    raise exc_info[1].with_traceback(exc_info[2])
            finally:
                exc_info = None
        elif self.status is not None:
            raise AssertionError("start_response() called twice without exc_info")
        self.status = status
        self.headers = list(headers)
        return self.write

    def send_headers(self) -> None:
        if self.sent:
            return
        if self.status is None:
            raise AssertionError("WSGI application did not call start_response()")
        self.response.status_code = int(self.status.split(" ", 1)[0])
        for name, value in self.headers:
            self.response.append_header(name, value)
        self.sent = True

    def write(self, chunk: bytes) -> None:
        self.send_headers()
        self.response.write(chunk)


class WSGIFramework:
    """Runs a WSGI application against a ServerlessRequest / ServerlessResponse."""

    name = "wsgi"

    def __init__(self, app: Callable):
        self.app = app

    async def __call__(self, request, response, done) -> None:
        logger.debug(f"WSGI {request.method} {request.path}")
        body = await request.read()
        environ = build_environ(request, body)
        start_response = StartResponse(response)

        result = self.app(environ, start_response)
        try:
            for chunk in result:
                if chunk:
                    start_response.write(chunk)
        finally:
            if hasattr(result, "close"):
                result.close()

        start_response.send_headers()
        response.end()
