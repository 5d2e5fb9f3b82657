#!/usr/bin/env python3
"""
Tests for ServerlessRequest (the readable side of the adapter).

Run with: pytest tests/test_request.py -v
"""
import asyncio
import base64
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))


def _request(**kwargs):
    from serverless_http.runtime.envelope import EventDescriptor
    from serverless_http.runtime.request import ServerlessRequest

    base_path = kwargs.pop("base_path", "")
    return ServerlessRequest(EventDescriptor(**kwargs), base_path=base_path)


class TestRequestFields:
    """Tests for the synthesized request fields."""

    def test_basic_fields(self):
        """Method, path, url and version come from the descriptor."""
        request = _request(method="post", path="/users", query={"page": "2"}, remote_address="10.0.0.1")

        assert request.method == "POST"
        assert request.path == "/users"
        assert request.url == "/users?page=2"
        assert request.query_string == "page=2"
        assert request.http_version == "1.1"
        assert request.ip == "10.0.0.1"
        assert request.complete is False
        print("✓ Request fields are synthesized")

    def test_multi_value_query(self):
        """Every value of a repeated parameter ends up in the URL."""
        request = _request(path="/", multi_query={"tag": ["a", "b"]})

        assert request.url == "/?tag=a&tag=b"

    def test_headers_case_insensitive(self):
        """Header lookups ignore case."""
        request = _request(headers={"X-Request-Id": "abc"})

        assert request.headers["x-request-id"] == "abc"
        assert request.headers["X-REQUEST-ID"] == "abc"

    def test_multi_value_headers(self):
        """Repeated headers keep every value."""
        request = _request(multi_headers={"Accept": ["text/html", "application/json"]})

        assert request.headers.getlist("accept") == ["text/html", "application/json"]

    def test_content_length_injected(self):
        """content-length is computed from the decoded body when missing."""
        request = _request(method="POST", body="héllo")

        assert request.headers["content-length"] == str(len("héllo".encode("utf-8")))
        assert request.content_length == 6

    def test_content_length_kept(self):
        """An existing content-length is not replaced."""
        request = _request(method="POST", body="hello", headers={"Content-Length": "5"})

        assert request.headers.getlist("content-length") == ["5"]

    def test_empty_body_defaults(self):
        """A descriptor without body reads as empty with length zero."""
        request = _request()

        assert request.headers["content-length"] == "0"
        assert request.content_length == 0

    def test_descriptor_not_mutated(self):
        """The event's headers are copied, never changed."""
        from serverless_http.runtime.envelope import EventDescriptor
        from serverless_http.runtime.request import ServerlessRequest

        descriptor = EventDescriptor(headers={"x-a": "1"}, body="abc")
        request = ServerlessRequest(descriptor)
        request.headers["x-b"] = "2"

        assert dict(descriptor.headers) == {"x-a": "1"}

    def test_base_path_stripped(self):
        """base_path is removed from the path and kept as root_path."""
        request = _request(path="/api/users", base_path="/api/")

        assert request.path == "/users"
        assert request.root_path == "/api"
        assert _request(path="/api", base_path="/api").path == "/"
        assert _request(path="/apiary", base_path="/api").path == "/apiary"


class TestRequestDelivery:
    """Tests for deferred, one-shot body delivery."""

    def test_listeners_registered_after_engage_still_see_body(self):
        """Nothing is pushed before the next loop turn."""
        async def scenario():
            request = _request(method="POST", body="hello")
            seen = []
            request.resume()
            request.on("data", seen.append)
            request.on("end", lambda: seen.append("end"))
            assert seen == []
            await asyncio.sleep(0)
            return seen, request.complete

        seen, complete = asyncio.run(scenario())
        assert seen == [b"hello", "end"]
        assert complete is True
        print("✓ Body delivered after synchronous setup")

    def test_data_listener_engages_stream(self):
        """Adding a data listener is enough to start delivery."""
        async def scenario():
            request = _request(method="POST", body="abc")
            seen = []
            request.on("data", seen.append)
            await asyncio.sleep(0)
            return seen

        assert asyncio.run(scenario()) == [b"abc"]

    def test_no_delivery_without_engagement(self):
        """Without a reader the body is never pushed."""
        async def scenario():
            request = _request(method="POST", body="abc")
            seen = []
            request.on("end", lambda: seen.append("end"))
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            return seen

        assert asyncio.run(scenario()) == []

    def test_delivered_once(self):
        """Repeated resume() calls do not push the body again."""
        async def scenario():
            request = _request(method="POST", body="abc")
            seen = []
            request.on("data", seen.append)
            request.on("end", lambda: seen.append("end"))
            request.resume()
            await asyncio.sleep(0)
            request.resume()
            await asyncio.sleep(0)
            return seen

        assert asyncio.run(scenario()) == [b"abc", "end"]

    def test_base64_body_decoded(self):
        """Transport-encoded bodies are decoded before delivery."""
        payload = bytes(range(256))

        async def scenario():
            request = _request(method="POST", body=base64.b64encode(payload).decode("ascii"),
                               is_base64_encoded=True)
            return await request.read()

        assert asyncio.run(scenario()) == payload

    def test_read_and_async_iteration(self):
        """read() and async iteration return the same body, also after delivery."""
        async def scenario():
            request = _request(method="POST", body="chunk")
            first = await request.read()
            second = await request.read()
            chunks = [chunk async for chunk in request]
            return first, second, chunks

        first, second, chunks = asyncio.run(scenario())
        assert first == second == b"chunk"
        assert chunks == [b"chunk"]

    def test_listener_error_routed_to_error_listeners(self):
        """A failing data listener surfaces as an error event."""
        async def scenario():
            request = _request(method="POST", body="abc")
            errors = []
            request.on("error", errors.append)

            def boom(chunk):
                raise ValueError("bad body")

            request.on("data", boom)
            await asyncio.sleep(0)
            return errors

        errors = asyncio.run(scenario())
        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)
