#!/usr/bin/env python3
# =============================================================================
# CLI Tool for serverless-http
# =============================================================================
# Builds an HTTP event and runs it through an app locally, or through a
# deployed Lambda function.
#
# Usage:
#   serverless-http-invoke --app myproject.wsgi:application --path /health
#   serverless-http-invoke --app main:app -X POST -H "Content-Type: application/json" -d '{"a": 1}'
#   serverless-http-invoke --function-name my-api --format v2 --path /users
#   serverless-http-invoke --app main:app --event event.json --pretty
# =============================================================================

import argparse
import base64
import importlib
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

from botocore.exceptions import BotoCoreError, ClientError

from serverless_http.deps import create_deps
from serverless_http.serverless import Serverless, serverless

logger = logging.getLogger(__name__)


def _split_headers(raw_headers: List[str]) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for raw in raw_headers or []:
        name, sep, value = raw.partition(":")
        if not sep:
            raise ValueError(f"Invalid header {raw!r}, expected 'Name: value'")
        headers.setdefault(name.strip().lower(), []).append(value.strip())
    return headers


def build_event(
    method: str = "GET",
    path: str = "/",
    headers: Optional[List[str]] = None,
    data: Optional[str] = None,
    fmt: str = "v1",
    binary: bool = False,
) -> Dict[str, Any]:
    """
    Build an API Gateway / ALB test event.

    Args:
        method: HTTP method
        path: Path, may include a query string
        headers: "Name: value" strings
        data: Request body
        fmt: v1 (REST API), v2 (HTTP API) or alb
        binary: Send `data` base64 encoded
    """
    split = urlsplit(path)
    multi_query = parse_qs(split.query, keep_blank_values=True)
    multi_headers = _split_headers(headers)
    body = data
    if data is not None and binary:
        body = base64.b64encode(data.encode("utf-8")).decode("ascii")

    if fmt == "v2":
        return {
            "version": "2.0",
            "rawPath": split.path or "/",
            "rawQueryString": split.query,
            "headers": {k: ", ".join(v) for k, v in multi_headers.items()},
            "requestContext": {
                "http": {"method": method.upper(), "path": split.path or "/", "sourceIp": "127.0.0.1"},
                "requestId": "cli-request",
            },
            "body": body,
            "isBase64Encoded": binary,
        }

    event = {
        "httpMethod": method.upper(),
        "path": split.path or "/",
        "headers": {k: v[-1] for k, v in multi_headers.items()},
        "multiValueHeaders": multi_headers,
        "queryStringParameters": {k: v[-1] for k, v in multi_query.items()} or None,
        "multiValueQueryStringParameters": multi_query or None,
        "body": body,
        "isBase64Encoded": binary,
    }
    if fmt == "alb":
        event["requestContext"] = {"elb": {"targetGroupArn": "arn:aws:elasticloadbalancing:cli"}}
    else:
        event["requestContext"] = {"identity": {"sourceIp": "127.0.0.1"}, "requestId": "cli-request"}
    return event


def load_app(target: str) -> Serverless:
    """Import "module:attribute" and wrap it unless it already is a handler."""
    module_name, _, attr = target.partition(":")
    if not attr:
        raise ValueError(f"Invalid app {target!r}, expected 'module:attribute'")
    sys.path.insert(0, os.getcwd())
    app = importlib.import_module(module_name)
    for part in attr.split("."):
        app = getattr(app, part)
    return app if isinstance(app, Serverless) else serverless(app)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Invoke a web app with a Lambda HTTP event",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --app myproject.wsgi:application --path /health
  %(prog)s --app main:app -X POST -H "Content-Type: application/json" -d '{"a": 1}'
  %(prog)s --function-name my-api --format v2 --path "/users?limit=10"
  %(prog)s --app main:app --event event.json
        """
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--app", "-a", help="Local app as module:attribute")
    target.add_argument("--function-name", "-n", help="Deployed Lambda function to invoke")

    parser.add_argument("--method", "-X", default="GET", help="HTTP method")
    parser.add_argument("--path", default="/", help="Request path with optional query string")
    parser.add_argument("--header", "-H", action="append", default=[], help="Header as 'Name: value'")
    parser.add_argument("--data", "-d", help="Request body")
    parser.add_argument("--binary", action="store_true", help="Send the body base64 encoded")
    parser.add_argument("--format", "-f", choices=["v1", "v2", "alb"], default="v1", help="Event format")
    parser.add_argument("--event", "-e", help="JSON file with a complete event (overrides request flags)")
    parser.add_argument("--region", "-r", help="AWS region")
    parser.add_argument("--profile", help="AWS profile")
    parser.add_argument("--pretty", "-p", action="store_true", help="Pretty print output")

    args = parser.parse_args(argv)

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "WARNING").upper())

    if args.event:
        with open(args.event, "r") as f:
            event = json.load(f)
    else:
        try:
            event = build_event(args.method, args.path, args.header, args.data, args.format, args.binary)
        except ValueError as e:
            parser.error(str(e))

    if args.app:
        result = load_app(args.app)(event, None)
    else:
        deps = create_deps(region=args.region, profile=args.profile)
        try:
            result = deps.invoke_function(args.function_name, event)
        except (ClientError, BotoCoreError, RuntimeError) as e:
            logger.error(f"Remote invoke failed: {e}")
            print(json.dumps({"error": str(e)}), file=sys.stderr)
            return 1

    if args.pretty:
        print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    else:
        print(json.dumps(result, ensure_ascii=False, default=str))

    # Exit with appropriate code
    status_code = result.get("statusCode", 200) if isinstance(result, dict) else 200
    return 1 if status_code >= 400 else 0


if __name__ == "__main__":
    sys.exit(main())
