"""
Tests for the registry fetcher.
"""

from __future__ import annotations

import httpx
import pytest

from version_api.checks.registry import fetch_latest_version
from version_api.errors import RegistryError
from version_api.models.record import UNKNOWN_VERSION

from tests.conftest import FakeHTTP

URL = "https://registry.test/demo-theme"


def _json(body, status=200):
    return httpx.Response(status, json=body, request=httpx.Request("GET", URL))


class TestFetchLatestVersion:

    def test_returns_latest_dist_tag(self, http: FakeHTTP):
        http.script(URL, _json({"dist-tags": {"latest": "2.3.1", "beta": "3.0.0-beta.1"}}))

        assert fetch_latest_version(http, URL) == "2.3.1"
        assert http.calls[URL] == 1

    def test_strips_whitespace(self, http: FakeHTTP):
        http.script(URL, _json({"dist-tags": {"latest": " 1.0.0\n"}}))

        assert fetch_latest_version(http, URL) == "1.0.0"

    def test_http_error_status_gives_unknown(self, http: FakeHTTP):
        http.script(URL, _json({"error": "Not found"}, status=404))

        assert fetch_latest_version(http, URL) == UNKNOWN_VERSION

    def test_network_error_gives_unknown(self, http: FakeHTTP):
        http.script(URL, httpx.ConnectError("dns failure"))

        assert fetch_latest_version(http, URL) == UNKNOWN_VERSION

    def test_missing_dist_tags_gives_unknown(self, http: FakeHTTP):
        http.script(URL, _json({"name": "demo-theme"}))

        assert fetch_latest_version(http, URL) == UNKNOWN_VERSION

    def test_non_json_body_gives_unknown(self, http: FakeHTTP):
        http.script(
            URL,
            httpx.Response(200, content=b"<html>oops</html>", request=httpx.Request("GET", URL)),
        )

        assert fetch_latest_version(http, URL) == UNKNOWN_VERSION

    def test_non_string_latest_gives_unknown(self, http: FakeHTTP):
        http.script(URL, _json({"dist-tags": {"latest": None}}))

        assert fetch_latest_version(http, URL) == UNKNOWN_VERSION

    def test_failure_is_logged(self, http: FakeHTTP, caplog):
        http.script(URL, httpx.ConnectError("dns failure"))

        with caplog.at_level("WARNING"):
            fetch_latest_version(http, URL)

        assert "Failed to fetch version" in caplog.text


class TestStrictMode:

    def test_strict_raises_registry_error(self, http: FakeHTTP):
        http.script(URL, httpx.ConnectError("dns failure"))

        with pytest.raises(RegistryError, match="dns failure"):
            fetch_latest_version(http, URL, strict=True)

    def test_strict_success_unchanged(self, http: FakeHTTP):
        http.script(URL, _json({"dist-tags": {"latest": "4.5.6"}}))

        assert fetch_latest_version(http, URL, strict=True) == "4.5.6"
