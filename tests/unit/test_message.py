"""
Unit tests for HTTP request values.
"""

import pytest

from httputils.http.message import HTTPRequest, ServerRequest
from httputils.http.uri import Uri


class TestHTTPRequest:
    """Tests for HTTPRequest class."""

    def test_defaults(self):
        request = HTTPRequest()

        assert request.method == "GET"
        assert request.protocol_version == "1.1"
        assert request.request_target == "/"
        assert request.get_headers() == {}

    def test_host_header_added_first(self):
        """Test that the URI host becomes the first header."""
        request = HTTPRequest(uri="http://example.com:8080/foo", headers={"Accept": "*/*"})

        assert list(request.get_headers()) == ["Host", "Accept"]
        assert request.get_header_line("Host") == "example.com:8080"

    def test_explicit_host_kept(self):
        request = HTTPRequest(uri="http://example.com/", headers={"host": "other.org"})
        assert request.get_headers() == {"host": ["other.org"]}

    @pytest.mark.parametrize("uri, target", [
        ("http://example.com", "/"),
        ("http://example.com/a/b", "/a/b"),
        ("http://example.com/a?b=1&c", "/a?b=1&c"),
        (Uri(path="/only"), "/only"),
    ])
    def test_request_target(self, uri, target):
        assert HTTPRequest(uri=uri).request_target == target

    def test_with_method(self):
        request = HTTPRequest()
        assert request.with_method("POST").method == "POST"
        assert request.method == "GET"

    def test_with_uri_updates_host(self):
        """Test that the Host header follows a new URI."""
        request = HTTPRequest(uri="http://example.com/", headers={"X-A": "1"})
        changed = request.with_uri("http://other.org/path")

        assert changed.get_header_line("Host") == "other.org"
        assert list(changed.get_headers()) == ["Host", "X-A"]
        assert str(changed.uri) == "http://other.org/path"

    def test_with_uri_preserve_host(self):
        request = HTTPRequest(uri="http://example.com/")
        changed = request.with_uri("http://other.org/", preserve_host=True)

        assert changed.get_header_line("Host") == "example.com"

    def test_with_uri_preserve_host_without_host_header(self):
        """Test that preserve_host only applies when a Host header exists."""
        request = HTTPRequest(uri="/relative")
        changed = request.with_uri("http://other.org/", preserve_host=True)

        assert changed.get_header_line("Host") == "other.org"


class TestServerRequest:
    """Tests for ServerRequest class."""

    def test_params(self):
        request = (ServerRequest(uri="http://localhost/")
            .with_cookie_params({"session": "abc"})
            .with_query_params({"page": "2"})
            .with_parsed_body({"name": "value"}))

        assert request.cookie_params == {"session": "abc"}
        assert request.query_params == {"page": "2"}
        assert request.parsed_body == {"name": "value"}

    def test_attributes(self):
        """Test attribute copy-on-write."""
        request = ServerRequest()
        with_user = request.with_attribute("user", "alice")

        assert request.get_attribute("user") is None
        assert with_user.get_attribute("user") == "alice"
        assert with_user.without_attribute("user").get_attribute("user", "nobody") == "nobody"
