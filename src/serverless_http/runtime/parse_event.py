# =============================================================================
# Event Parser - Detect and Parse Lambda HTTP Events
# =============================================================================
# Detects the event format and normalizes it into an EventDescriptor.
# Supports: API Gateway REST (v1), API Gateway HTTP API (v2), ALB, Direct
# =============================================================================

import json
import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qs, unquote_plus

from serverless_http.errors import EventParseError
from serverless_http.runtime.envelope import EventDescriptor, EventSource

logger = logging.getLogger(__name__)


def detect_event_source(event: Mapping[str, Any]) -> EventSource:
    """
    Detect the format of a Lambda HTTP event.

    Returns one of: api_gateway_v2, alb, api_gateway_v1, direct
    """
    request_context = event.get("requestContext") or {}

    if event.get("version") == "2.0" or "http" in request_context:
        return EventSource.API_GATEWAY_V2

    if "elb" in request_context:
        return EventSource.ALB

    if "httpMethod" in event or "httpMethod" in request_context:
        return EventSource.API_GATEWAY_V1

    return EventSource.DIRECT


def _body(event: Mapping[str, Any]) -> Any:
    body = event.get("body")
    # Direct invokes sometimes carry an already-decoded JSON body
    if isinstance(body, (dict, list)):
        return json.dumps(body)
    return body


def _multi(values: Optional[Mapping[str, Any]]) -> Dict[str, List[str]]:
    result = {}
    for key, value in (values or {}).items():
        if value is None:
            continue
        result[key] = [str(v) for v in value] if isinstance(value, (list, tuple)) else [str(value)]
    return result


def _single(values: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    return {key: str(value) for key, value in (values or {}).items() if value is not None}


def _parse_api_gateway_v1(event: Mapping[str, Any]) -> EventDescriptor:
    """Parse API Gateway REST API event."""
    request_context = event.get("requestContext") or {}
    identity = request_context.get("identity") or {}

    return EventDescriptor(
        method=event.get("httpMethod") or request_context.get("httpMethod") or "GET",
        path=event.get("path") or request_context.get("path") or "/",
        query=_single(event.get("queryStringParameters")),
        multi_query=_multi(event.get("multiValueQueryStringParameters")),
        headers=_single(event.get("headers")),
        multi_headers=_multi(event.get("multiValueHeaders")),
        body=_body(event),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
        remote_address=identity.get("sourceIp"),
        source=EventSource.API_GATEWAY_V1,
        request_context=request_context,
        raw_event=event,
    )


def _parse_api_gateway_v2(event: Mapping[str, Any]) -> EventDescriptor:
    """Parse API Gateway HTTP API (payload format 2.0) event."""
    request_context = event.get("requestContext") or {}
    http = request_context.get("http") or {}

    headers = _single(event.get("headers"))
    cookies = event.get("cookies") or []
    if cookies:
        headers = {k: v for k, v in headers.items() if k.lower() != "cookie"}
        headers["cookie"] = "; ".join(cookies)

    raw_query = event.get("rawQueryString")
    if raw_query is not None:
        multi_query = parse_qs(raw_query, keep_blank_values=True)
    else:
        multi_query = _multi(event.get("queryStringParameters"))

    return EventDescriptor(
        method=http.get("method") or "GET",
        path=event.get("rawPath") or http.get("path") or "/",
        query={k: v[-1] for k, v in multi_query.items()},
        multi_query=multi_query,
        headers=headers,
        body=_body(event),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
        remote_address=http.get("sourceIp"),
        source=EventSource.API_GATEWAY_V2,
        request_context=request_context,
        raw_event=event,
    )


def _parse_alb(event: Mapping[str, Any]) -> EventDescriptor:
    """Parse Application Load Balancer event (query values arrive URL-encoded)."""
    multi_query = {
        unquote_plus(k): [unquote_plus(v) for v in values]
        for k, values in _multi(event.get("multiValueQueryStringParameters")).items()
    }
    query = {unquote_plus(k): unquote_plus(v)
             for k, v in _single(event.get("queryStringParameters")).items()}

    headers = _single(event.get("headers"))
    multi_headers = _multi(event.get("multiValueHeaders"))
    forwarded_for = headers.get("x-forwarded-for") or (multi_headers.get("x-forwarded-for") or [None])[0]
    remote_address = forwarded_for.split(",")[0].strip() if forwarded_for else None

    return EventDescriptor(
        method=event.get("httpMethod") or "GET",
        path=event.get("path") or "/",
        query=query,
        multi_query=multi_query,
        headers=headers,
        multi_headers=multi_headers,
        body=_body(event),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
        remote_address=remote_address,
        source=EventSource.ALB,
        request_context=event.get("requestContext") or {},
        raw_event=event,
    )


def _parse_direct(event: Mapping[str, Any]) -> EventDescriptor:
    """Parse a flat descriptor dict (tests, CLI, internal invokes)."""
    return EventDescriptor(
        method=event.get("method") or "GET",
        path=event.get("path") or "/",
        query=_single(event.get("query")),
        multi_query=_multi(event.get("multiQuery")),
        headers=_single(event.get("headers")),
        multi_headers=_multi(event.get("multiHeaders")),
        body=_body(event),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
        remote_address=event.get("remoteAddress"),
        source=EventSource.DIRECT,
        raw_event=event,
    )


_PARSERS = {
    EventSource.API_GATEWAY_V1: _parse_api_gateway_v1,
    EventSource.API_GATEWAY_V2: _parse_api_gateway_v2,
    EventSource.ALB: _parse_alb,
    EventSource.DIRECT: _parse_direct,
}


def parse_event(event: Any) -> EventDescriptor:
    """
    Parse a Lambda event into an EventDescriptor.

    Missing optional fields are defaulted; only a non-mapping event is an
    error.

    Raises:
        EventParseError: if `event` is not a mapping
    """
    if isinstance(event, EventDescriptor):
        return event
    if not isinstance(event, Mapping):
        raise EventParseError(f"Expected a mapping event, got {type(event).__name__}")

    source = detect_event_source(event)
    if source == EventSource.DIRECT and event and "method" not in event and "path" not in event:
        logger.warning(f"Unknown event shape, treating as direct invoke: keys={list(event.keys())}")
    logger.debug(f"Detected event source: {source.value}")

    return _PARSERS[source](event)
