#!/usr/bin/env python3
"""
Tests for the binary classifier.

Run with: pytest tests/test_binary.py -v
"""
import os
import sys
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))


class TestIsBinary:
    """Tests for is_binary()."""

    def test_handles_charset(self):
        """Parameters after ';' are ignored."""
        from serverless_http.runtime.binary import is_binary

        result = is_binary({"content-type": "application/json; charset:utf-8"}, {
            "binary": ["application/json"]
        })

        assert result is True
        print("✓ Handles charset")

    def test_handles_charset_with_equals(self):
        """Regular charset parameter is ignored too."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"content-type": "application/json; charset=utf-8"},
                         {"binary": ["application/json"]}) is True

    def test_handles_wildcards(self):
        """image/* matches image/png."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"content-type": "image/png"}, {"binary": ["image/*"]}) is True
        print("✓ Handles wildcards")

    def test_does_not_incorrectly_handle_wildcards(self):
        """image/* does not match application/json."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"content-type": "application/json"}, {"binary": ["image/*"]}) is False

    def test_force_to_false(self):
        """binary=False always wins."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({}, {"binary": False}) is False
        assert is_binary({"content-type": "image/png"}, {"binary": False}) is False

    def test_force_to_true(self):
        """binary=True encodes everything."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({}, {"binary": True}) is True

    def test_custom_function(self):
        """A predicate is called exactly once and its answer is returned."""
        from serverless_http.runtime.binary import is_binary

        stub = MagicMock(return_value=True)
        options = {"binary": stub}
        headers = {"content-type": "text/plain"}

        assert is_binary(headers, options) is True
        stub.assert_called_once_with(headers, options)
        print("✓ Custom predicate works")

    def test_missing_content_type_is_text(self):
        """No content-type means text."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({}, {"binary": ["image/*"]}) is False
        assert is_binary({"x-other": "1"}, {"binary": ["application/octet-stream"]}) is False

    def test_default_config_is_text(self):
        """Without a binary option nothing is binary."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"content-type": "image/png"}) is False
        assert is_binary({"content-type": "image/png"}, {}) is False

    def test_header_lookup_is_case_insensitive(self):
        """Content-Type in any casing is found."""
        from urllib3 import HTTPHeaderDict
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"Content-Type": "image/gif"}, {"binary": ["image/gif"]}) is True
        assert is_binary(HTTPHeaderDict({"CONTENT-TYPE": "image/gif"}), {"binary": ["image/gif"]}) is True

    def test_media_type_matching_is_case_sensitive(self):
        """Tokens are compared as given."""
        from serverless_http.runtime.binary import is_binary

        assert is_binary({"content-type": "Image/PNG"}, {"binary": ["image/png"]}) is False

    def test_options_object(self):
        """ServerlessOptions works as the options argument."""
        from serverless_http.config import ServerlessOptions
        from serverless_http.runtime.binary import is_binary

        options = ServerlessOptions(binary=["application/pdf"])
        assert is_binary({"content-type": "application/pdf"}, options) is True
        assert is_binary({"content-type": "text/html"}, options) is False

    def test_get_content_type(self):
        """Parameters and whitespace are stripped."""
        from serverless_http.runtime.binary import get_content_type

        assert get_content_type({"content-type": " text/html ; charset=utf-8"}) == "text/html"
        assert get_content_type({"content-type": ["image/png", "image/gif"]}) == "image/png"
        assert get_content_type({}) is None
