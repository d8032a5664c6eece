"""Tests for endpoint discovery helpers."""

import pytest
import responses

from indieauth.errors import NetworkError, ValidationError
from indieauth.net.discovery import (
    canonicalize_url,
    resolve_with_redirects,
    select_endpoints,
)
from indieauth.net.http_client import HttpTransport


class TestCanonicalizeUrl:
    """Tests for canonicalize_url."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com", "https://example.com/"),
            ("HTTPS://Example.COM/Path", "https://example.com/Path"),
            ("http://example.com:80/", "http://example.com/"),
            ("https://example.com:443", "https://example.com/"),
            ("https://example.com:8443", "https://example.com:8443/"),
            ("https://example.com/?a=1#frag", "https://example.com/?a=1"),
        ],
    )
    def test_normalizes(self, url, expected):
        """Test URLs are normalized."""
        assert canonicalize_url(url) == expected

    def test_rejects_invalid(self):
        """Test invalid URLs are rejected."""
        with pytest.raises(ValidationError):
            canonicalize_url("example.com")


class TestResolveWithRedirects:
    """Tests for resolve_with_redirects."""

    def setup_method(self):
        """Set up test fixtures."""
        self.transport = HttpTransport()

    def teardown_method(self):
        """Clean up."""
        self.transport.close()

    @responses.activate
    def test_no_redirect(self):
        """Test a 200 is returned as-is."""
        responses.add(responses.GET, "https://a.example/", body="A", status=200)

        response = resolve_with_redirects(self.transport, "https://a.example/")

        assert response.url == "https://a.example/"
        assert response.body == "A"

    @responses.activate
    def test_sends_html_accept_header(self):
        """Test discovery asks for HTML."""
        responses.add(responses.GET, "https://a.example/", status=200)

        resolve_with_redirects(self.transport, "https://a.example/")

        assert "text/html" in responses.calls[0].request.headers["Accept"]

    @pytest.mark.parametrize("status", [301, 308])
    @responses.activate
    def test_permanent_redirect_moves_canonical_url(self, status):
        """Test a permanent redirect makes the target canonical."""
        responses.add(
            responses.GET,
            "https://a.example/",
            status=status,
            headers={"Location": "https://b.example/"},
        )
        responses.add(responses.GET, "https://b.example/", body="B", status=200)

        response = resolve_with_redirects(self.transport, "https://a.example/")

        assert response.url == "https://b.example/"
        assert response.body == "B"

    @pytest.mark.parametrize("status", [302, 307])
    @responses.activate
    def test_temporary_redirect_keeps_canonical_url(self, status):
        """Test a temporary redirect keeps the original URL canonical."""
        responses.add(
            responses.GET,
            "https://a.example/",
            status=status,
            headers={"Location": "https://b.example/"},
        )
        responses.add(responses.GET, "https://b.example/", body="B", status=200)

        response = resolve_with_redirects(self.transport, "https://a.example/")

        assert response.url == "https://a.example/"
        assert response.body == "B"

    @responses.activate
    def test_relative_location(self):
        """Test a relative Location is resolved against the current URL."""
        responses.add(
            responses.GET,
            "https://a.example/old/",
            status=301,
            headers={"Location": "../new/"},
        )
        responses.add(responses.GET, "https://a.example/new/", body="new", status=200)

        response = resolve_with_redirects(self.transport, "https://a.example/old/")

        assert response.url == "https://a.example/new/"

    @responses.activate
    def test_permanent_redirect_target_is_canonicalized(self):
        """Test a permanent redirect target is normalized before becoming canonical."""
        responses.add(
            responses.GET, "https://a.example/", status=301,
            headers={"Location": "HTTPS://B.example:443"},
        )
        responses.add(responses.GET, "https://b.example/", body="B", status=200)

        response = resolve_with_redirects(self.transport, "https://a.example/")

        assert response.url == "https://b.example/"
        assert response.body == "B"

    @responses.activate
    def test_redirect_to_invalid_url(self):
        """Test a redirect to a non-http URL fails."""
        responses.add(
            responses.GET, "https://a.example/", status=301,
            headers={"Location": "mailto:x@y"},
        )

        with pytest.raises(NetworkError, match="invalid URL") as exc_info:
            resolve_with_redirects(self.transport, "https://a.example/")

        assert exc_info.value.status_code == 301

    @responses.activate
    def test_permanent_then_temporary(self):
        """Test the canonical URL stops moving at the first temporary redirect."""
        responses.add(
            responses.GET, "https://a.example/", status=301,
            headers={"Location": "https://b.example/"},
        )
        responses.add(
            responses.GET, "https://b.example/", status=302,
            headers={"Location": "https://c.example/"},
        )
        responses.add(
            responses.GET, "https://c.example/", status=301,
            headers={"Location": "https://d.example/"},
        )
        responses.add(responses.GET, "https://d.example/", body="D", status=200)

        response = resolve_with_redirects(self.transport, "https://a.example/")

        assert response.url == "https://b.example/"
        assert response.body == "D"

    @responses.activate
    def test_temporary_redirect_to_failure(self):
        """Test a failing temporary target is reported against the original URL."""
        responses.add(
            responses.GET, "https://a.example/", status=302,
            headers={"Location": "https://b.example/"},
        )
        responses.add(responses.GET, "https://b.example/", status=404)

        with pytest.raises(NetworkError, match="a.example") as exc_info:
            resolve_with_redirects(self.transport, "https://a.example/")

        assert exc_info.value.status_code == 404

    @responses.activate
    def test_error_status(self):
        """Test a non-2xx, non-redirect response fails with its status."""
        responses.add(responses.GET, "https://a.example/", status=500)

        with pytest.raises(NetworkError) as exc_info:
            resolve_with_redirects(self.transport, "https://a.example/")

        assert exc_info.value.status_code == 500

    @responses.activate
    def test_redirect_without_location(self):
        """Test a redirect with no Location header fails."""
        responses.add(responses.GET, "https://a.example/", status=301)

        with pytest.raises(NetworkError, match="Location"):
            resolve_with_redirects(self.transport, "https://a.example/")

    @responses.activate
    def test_redirect_loop_is_bounded(self):
        """Test an endless redirect chain stops with an error."""
        responses.add(
            responses.GET, "https://a.example/", status=302,
            headers={"Location": "https://b.example/"},
        )
        responses.add(
            responses.GET, "https://b.example/", status=302,
            headers={"Location": "https://a.example/"},
        )

        with pytest.raises(NetworkError, match="Too many redirects"):
            resolve_with_redirects(self.transport, "https://a.example/", max_redirects=5)

        assert len(responses.calls) == 6


class TestSelectEndpoints:
    """Tests for select_endpoints."""

    def test_first_value_and_missing(self):
        """Test the first value is kept and missing rels map to None."""
        rels = {"authorization_endpoint": ["https://a/1", "https://a/2"], "micropub": ["https://m"]}

        found = select_endpoints(rels, ["Micropub", "microsub"])

        assert found == {
            "authorization_endpoint": "https://a/1",
            "token_endpoint": None,
            "micropub": "https://m",
            "microsub": None,
        }
