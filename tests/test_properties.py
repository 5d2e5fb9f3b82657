#!/usr/bin/env python3
"""
Property tests for the binary classifier and body delivery.

Run with: pytest tests/test_properties.py -v
"""
import base64
import os
import sys
from unittest.mock import MagicMock

from hypothesis import given, settings, strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

media_types = st.sampled_from([
    "text/plain", "text/html; charset=utf-8", "application/json",
    "image/png", "image/jpeg", "application/octet-stream", "",
])
patterns = st.lists(st.sampled_from(["image/*", "application/json", "application/*", "text/plain"]), max_size=3)


class TestClassifierProperties:
    """is_binary() holds for any header and pattern set."""

    @given(content_type=media_types, binary=patterns)
    def test_deterministic(self, content_type, binary):
        from serverless_http.runtime.binary import is_binary

        headers = {"content-type": content_type}
        options = {"binary": binary}

        assert is_binary(headers, options) == is_binary(headers, options)

    @given(content_type=media_types)
    def test_false_is_never_binary(self, content_type):
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"content-type": content_type}, {"binary": False}) is False
        assert is_binary({"content-type": content_type}, {"binary": True}) is True

    @given(content_type=media_types, answer=st.booleans())
    def test_predicate_called_once(self, content_type, answer):
        from serverless_http.runtime.binary import is_binary

        predicate = MagicMock(return_value=answer)
        headers = {"content-type": content_type}
        options = {"binary": predicate}

        assert is_binary(headers, options) is answer
        predicate.assert_called_once_with(headers, options)


class TestDeliveryProperties:
    """Request bodies reach the handler exactly once, byte for byte."""

    @settings(max_examples=50, deadline=None)
    @given(body=st.binary(max_size=512))
    def test_body_delivered_once(self, body):
        from serverless_http import serverless

        received = []
        ends = []

        def app(request, response):
            request.on("data", received.append)
            request.on("end", lambda: ends.append(True))
            request.on("end", lambda: response.end(str(len(b"".join(received)))))

        event = {
            "httpMethod": "POST",
            "path": "/",
            "body": base64.b64encode(body).decode("ascii"),
            "isBase64Encoded": True,
        }
        result = serverless(app)(event)

        assert b"".join(received) == body
        assert len(received) == 1
        assert ends == [True]
        assert result["body"] == str(len(body))
