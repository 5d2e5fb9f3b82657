# =============================================================================
# Result Formatter
# =============================================================================
# Turns an InvocationResult into the response shape the triggering service
# expects. The shape follows the event the request came from.
# =============================================================================

from http import HTTPStatus
from typing import Any, Dict, List

from serverless_http.runtime.envelope import EventDescriptor, EventSource, InvocationResult


def _as_list(value) -> List[str]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _single_valued(result: InvocationResult) -> Dict[str, str]:
    return {k: v for k, v in result.headers.items() if not isinstance(v, (list, tuple))}


def _multi_valued(result: InvocationResult) -> Dict[str, List[str]]:
    return {k: _as_list(v) for k, v in result.headers.items()}


def _format_api_gateway_v1(result: InvocationResult, descriptor: EventDescriptor) -> Dict[str, Any]:
    return {
        "statusCode": result.status_code,
        "headers": _single_valued(result),
        "multiValueHeaders": _multi_valued(result),
        "body": result.body,
        "isBase64Encoded": result.is_base64_encoded,
    }


def _format_api_gateway_v2(result: InvocationResult, descriptor: EventDescriptor) -> Dict[str, Any]:
    headers = {}
    cookies = []
    for key, value in result.headers.items():
        if key == "set-cookie":
            cookies.extend(_as_list(value))
        else:
            headers[key] = ", ".join(_as_list(value))

    response = {
        "statusCode": result.status_code,
        "headers": headers,
        "body": result.body,
        "isBase64Encoded": result.is_base64_encoded,
    }
    if cookies:
        response["cookies"] = cookies
    return response


def _format_alb(result: InvocationResult, descriptor: EventDescriptor) -> Dict[str, Any]:
    try:
        phrase = HTTPStatus(result.status_code).phrase
    except ValueError:
        phrase = ""
    response = {
        "statusCode": result.status_code,
        "statusDescription": f"{result.status_code} {phrase}".strip(),
        "body": result.body,
        "isBase64Encoded": result.is_base64_encoded,
    }
    # ALB only accepts the header style the target group was configured with
    if "multiValueHeaders" in descriptor.raw_event:
        response["multiValueHeaders"] = _multi_valued(result)
    else:
        response["headers"] = {k: _as_list(v)[-1] for k, v in result.headers.items()}
    return response


_FORMATTERS = {
    EventSource.API_GATEWAY_V1: _format_api_gateway_v1,
    EventSource.API_GATEWAY_V2: _format_api_gateway_v2,
    EventSource.ALB: _format_alb,
    EventSource.DIRECT: _format_api_gateway_v1,
}


def format_result(result: InvocationResult, descriptor: EventDescriptor) -> Dict[str, Any]:
    """Format `result` for the service that produced `descriptor`."""
    return _FORMATTERS[descriptor.source](result, descriptor)
