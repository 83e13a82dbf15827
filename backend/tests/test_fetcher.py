"""
Tests for the bounded HTTP fetcher: timeout/retry/backoff behaviour.
"""

import httpx
import pytest

from constellation_service.fetcher import BoundedFetcher, CatalogueError, UpstreamUnavailable

URL = "https://example.test/constellations.htm"


def _fetcher(handler, recorder, retries=3, backoff_s=1.0):
    return BoundedFetcher(
        timeout_s=1.0,
        retries=retries,
        backoff_s=backoff_s,
        transport=httpx.MockTransport(handler),
        sleep=recorder,
    )


class TestBoundedFetcher:
    """Test BoundedFetcher against a mocked transport."""

    @pytest.mark.asyncio
    async def test_returns_body_on_first_success(self, sleep_recorder):
        """A 200 response is returned without retrying."""
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, text="<html>ok</html>")

        fetcher = _fetcher(handler, sleep_recorder)
        assert await fetcher.fetch(URL) == "<html>ok</html>"
        assert len(calls) == 1
        assert sleep_recorder.delays == []
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_retries_until_success_with_increasing_delay(self, sleep_recorder):
        """Two 503s then a 200: three attempts, backoff 1s then 2s."""
        calls = []

        def handler(request):
            calls.append(request.url)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, text="recovered")

        fetcher = _fetcher(handler, sleep_recorder)
        assert await fetcher.fetch(URL) == "recovered"
        assert len(calls) == 3
        assert sleep_recorder.delays == [1.0, 2.0]
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_raises_unavailable_after_exhausting_attempts(self, sleep_recorder):
        """Persistent 500s raise UpstreamUnavailable carrying the URL and attempt count."""
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(500)

        fetcher = _fetcher(handler, sleep_recorder)
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await fetcher.fetch(URL)

        assert len(calls) == 3
        assert exc_info.value.url == URL
        assert exc_info.value.attempts == 3
        assert "HTTP 500" in str(exc_info.value)
        assert isinstance(exc_info.value, CatalogueError)
        # no pause after the final attempt
        assert sleep_recorder.delays == [1.0, 2.0]
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_timeouts_count_as_failed_attempts(self, sleep_recorder):
        """A read timeout is retried like any other failure."""

        def handler(request):
            raise httpx.ReadTimeout("slow upstream", request=request)

        fetcher = _fetcher(handler, sleep_recorder, retries=2)
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await fetcher.fetch(URL)
        assert "timed out" in exc_info.value.reason
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_network_errors_count_as_failed_attempts(self, sleep_recorder):
        """A connection error followed by success still returns the body."""
        calls = []

        def handler(request):
            calls.append(request.url)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text="second time lucky")

        fetcher = _fetcher(handler, sleep_recorder)
        assert await fetcher.fetch(URL) == "second time lucky"
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_malformed_url_fails_without_retry(self, sleep_recorder):
        """A scraped href httpx cannot parse becomes UpstreamUnavailable on the first attempt."""
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, text="unreachable")

        fetcher = _fetcher(handler, sleep_recorder)
        bad_url = "https://example.test/constellations.php?Name=Ori\x01on"
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await fetcher.fetch(bad_url)

        assert calls == []
        assert sleep_recorder.delays == []
        assert exc_info.value.attempts == 1
        assert "invalid URL" in str(exc_info.value)
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_sends_browser_user_agent(self, sleep_recorder):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers.get("user-agent", "")
            return httpx.Response(200, text="")

        fetcher = _fetcher(handler, sleep_recorder)
        await fetcher.fetch(URL)
        assert seen["ua"].startswith("Mozilla/5.0")
        await fetcher.close()

    def test_at_least_one_attempt(self):
        assert BoundedFetcher(retries=0).retries == 1
