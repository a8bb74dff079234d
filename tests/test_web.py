import asyncio

import httpx
import pytest

from mdfetch.errors import FetchError
from mdfetch.models.options import FetchOptions
from mdfetch.probes.web import Fetcher


class RecordingFetcher(Fetcher):
    def __init__(self, handler):
        super().__init__(transport=httpx.MockTransport(handler))
        self.delays = []

    async def _sleep(self, ms):
        self.delays.append(ms)


def test_fetch_returns_html_and_sends_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return httpx.Response(200, text="<html><body>ok</body></html>")

    fetcher = RecordingFetcher(handler)
    options = FetchOptions(headers={"Accept-Language": "en"}, user_agent="tester/1.0")
    html = asyncio.run(fetcher.fetch("https://example.com", options))

    assert html == "<html><body>ok</body></html>"
    assert seen["headers"]["user-agent"] == "tester/1.0"
    assert seen["headers"]["accept-language"] == "en"
    assert fetcher.delays == []


def test_caller_headers_override_user_agent():
    seen = {}

    def handler(request):
        seen["ua"] = request.headers["user-agent"]
        return httpx.Response(200, text="ok")

    options = FetchOptions(headers={"User-Agent": "custom"}, user_agent="default")
    asyncio.run(RecordingFetcher(handler).fetch("https://example.com", options))
    assert seen["ua"] == "custom"


def test_http_error_retries_three_times_and_keeps_status():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(503)

    fetcher = RecordingFetcher(handler)
    with pytest.raises(FetchError) as exc_info:
        asyncio.run(fetcher.fetch("https://example.com/down"))

    assert len(calls) == 3
    assert fetcher.delays == [1000, 2000]
    assert exc_info.value.status_code == 503
    assert "HTTP 503" in str(exc_info.value)


def test_network_error_surfaces_without_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = RecordingFetcher(handler)
    with pytest.raises(FetchError) as exc_info:
        asyncio.run(fetcher.fetch("https://example.com"))

    assert exc_info.value.status_code is None
    assert "Failed to fetch after 3 attempts" in str(exc_info.value)
    assert fetcher.delays == [1000, 2000]


def test_recovers_after_transient_failure():
    responses = iter([httpx.Response(500), httpx.Response(200, text="second time lucky")])

    fetcher = RecordingFetcher(lambda request: next(responses))
    assert asyncio.run(fetcher.fetch("https://example.com")) == "second time lucky"
    assert fetcher.delays == [1000]


def test_last_failure_decides_the_error():
    responses = iter([
        httpx.Response(404),
        httpx.Response(404),
    ])

    def handler(request):
        try:
            return next(responses)
        except StopIteration:
            raise httpx.ReadTimeout("timed out", request=request)

    fetcher = RecordingFetcher(handler)
    with pytest.raises(FetchError) as exc_info:
        asyncio.run(fetcher.fetch("https://example.com"))
    assert exc_info.value.status_code is None


def test_timeout_bounds_the_whole_request():
    calls = []

    async def handler(request):
        calls.append(request.url)
        await asyncio.sleep(5)
        return httpx.Response(200, text="too late")

    fetcher = RecordingFetcher(handler)

    async def run():
        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("https://slow.example", FetchOptions(timeout=50))
        return exc_info.value, loop.time() - started

    error, elapsed = asyncio.run(run())

    assert elapsed < 2.0
    assert len(calls) == 3
    assert fetcher.delays == [1000, 2000]
    assert error.status_code is None
    assert "Request timed out after 50ms" in str(error)


def test_proxy_without_scheme_is_a_fetch_error():
    with pytest.raises(FetchError) as exc_info:
        asyncio.run(Fetcher().fetch("https://example.com", FetchOptions(proxy="proxy.corp:8080")))

    assert exc_info.value.status_code is None
    assert "Invalid proxy URL proxy.corp:8080" in str(exc_info.value)
