# =============================================================================
# serverless-http
# =============================================================================
# Run native, WSGI and ASGI web applications as AWS Lambda handlers behind
# API Gateway (REST and HTTP APIs) or an Application Load Balancer.
#
#     from serverless_http import serverless
#     handler = serverless(app)
# =============================================================================

from serverless_http.config import ServerlessOptions
from serverless_http.errors import (
    EventParseError,
    FrameworkError,
    InvocationError,
    ResponseFinalizedError,
    ServerlessError,
)
from serverless_http.runtime import (
    EventDescriptor,
    InvocationResult,
    ServerlessRequest,
    ServerlessResponse,
    is_binary,
)
from serverless_http.serverless import Serverless, serverless

__version__ = "1.0.0"

__all__ = [
    "EventDescriptor",
    "EventParseError",
    "FrameworkError",
    "InvocationError",
    "InvocationResult",
    "ResponseFinalizedError",
    "Serverless",
    "ServerlessError",
    "ServerlessOptions",
    "ServerlessRequest",
    "ServerlessResponse",
    "is_binary",
    "serverless",
]
