"""
Unit tests for the Overcast HTTP client against a mocked transport.
"""

import asyncio

import httpx
import pytest

from services.errors import RateLimitedError
from services.overcast_client import OvercastClient, parse_search_results


def _run(handler, call, **client_kwargs):
    """Run `call(client)` against an OvercastClient backed by `handler`."""
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = OvercastClient(base_url="https://overcast.fm", http_client=http, **client_kwargs)
            return await call(client)
    return asyncio.run(main())


class TestParseSearchResults:
    """Tests for parse_search_results()"""

    def test_rows_missing_id_or_hash_skipped(self):
        results = parse_search_results({"results": [
            {"id": 123, "hash": "abc", "title": "Good Show"},
            {"hash": "def", "title": "No ID"},
            {"id": 456, "title": "No Hash"},
            {"id": "", "hash": "ghi"},
            "not a row",
        ]})
        assert [(r.id, r.hash, r.title) for r in results] == [("123", "abc", "Good Show")]

    @pytest.mark.parametrize("payload", [None, [], {"results": None}, {"other": []}])
    def test_unexpected_shapes(self, payload):
        assert parse_search_results(payload) == []


class TestSearch:
    """Tests for OvercastClient.search()"""

    def test_success(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["q"] = request.url.params["q"]
            return httpx.Response(200, json={"results": [{"id": 1, "hash": "h1", "title": "Show One"}]})

        results = _run(handler, lambda c: c.search("Show One"))

        assert seen == {"path": "/podcasts/search_autocomplete", "q": "Show One"}
        assert [(r.id, r.hash, r.title) for r in results] == [("1", "h1", "Show One")]

    def test_rate_limited_raises(self):
        def handler(request):
            return httpx.Response(429, text="Too Many Requests")

        with pytest.raises(RateLimitedError) as exc_info:
            _run(handler, lambda c: c.search("anything"))
        assert "search_autocomplete" in exc_info.value.url

    def test_other_failure_is_empty(self):
        def handler(request):
            return httpx.Response(503, text="down")

        assert _run(handler, lambda c: c.search("anything")) == []

    def test_non_json_is_empty(self):
        def handler(request):
            return httpx.Response(200, text="<html>login</html>")

        assert _run(handler, lambda c: c.search("anything")) == []


class TestPages:
    """Tests for OvercastClient.get() / post_form()"""

    def test_get_relative_and_absolute(self):
        paths = []

        def handler(request):
            paths.append(str(request.url))
            return httpx.Response(404 if request.url.path == "/missing" else 200, text="body")

        async def call(client):
            return await client.get("/p123-abc"), await client.get("https://overcast.fm/missing")

        found, missing = _run(handler, call)

        assert paths == ["https://overcast.fm/p123-abc", "https://overcast.fm/missing"]
        assert found.ok and found.body == "body"
        assert not missing.ok and missing.status == 404

    def test_session_cookie_sent(self):
        cookies = []

        def handler(request):
            cookies.append(request.headers.get("cookie"))
            return httpx.Response(200, text="1")

        page = _run(
            handler,
            lambda c: c.post_form("/podcasts/set_progress/555", {"p": "0"}),
            session_cookie="o=abc123",
        )

        assert page.body == "1"
        assert cookies == ["o=abc123"]

    def test_no_cookie_by_default(self):
        cookies = []

        def handler(request):
            cookies.append(request.headers.get("cookie"))
            return httpx.Response(200, text="")

        _run(handler, lambda c: c.get("/podcasts"), session_cookie="")
        assert cookies == [None]
