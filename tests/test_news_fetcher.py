import pytest
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Union

import aiohttp
from aiohttp import web

from tldr_rss.news.fetcher import (
    FeedFetcher,
    FeedFetchError,
    RateLimitExhaustedError,
    is_rate_limit_error,
    parse_feed_document,
    parse_retry_after,
    retry_after_of,
)


SAMPLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>TLDR Tech RSS</title>
    <link>https://tldr.tech</link>
    <description>TLDR Tech</description>
    <item>
      <title>TLDR 2024-01-16</title>
      <link>https://tldr.tech/tech/2024-01-16</link>
      <pubDate>Tue, 16 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>TLDR 2024-01-15</title>
      <link>https://tldr.tech/tech/2024-01-15</link>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Undated issue</title>
      <link>https://tldr.tech/tech/undated</link>
    </item>
  </channel>
</rss>
"""


class HeaderError(Exception):
    """Mimics HTTP client errors that keep the response headers around."""

    def __init__(self, message: str, status: int, headers: dict):
        super().__init__(message)
        self.status = status
        self.headers = headers


class ScriptedFeedFetcher(FeedFetcher):
    """FeedFetcher whose downloads replay a fixed list of outcomes."""

    def __init__(self, outcomes: List[Union[str, Exception]], **kwargs):
        self.delays: List[float] = []

        async def record_sleep(delay: float) -> None:
            self.delays.append(delay)

        kwargs.setdefault("sleep", record_sleep)
        super().__init__(**kwargs)
        self.outcomes = list(outcomes)
        self.attempts = 0

    async def _download(self, url: str) -> str:
        self.attempts += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def rate_limited(retry_after=None) -> FeedFetchError:
    return FeedFetchError("Status code 429", status_code=429, retry_after_seconds=retry_after)


class TestRateLimitDetection:

    def test_structured_status(self):
        assert is_rate_limit_error(FeedFetchError("Too Many Requests", status_code=429))

    def test_message_only(self):
        assert is_rate_limit_error(Exception("Status code 429"))
        assert is_rate_limit_error(Exception("Unexpected response: Status code 429 from upstream"))

    def test_client_style_status_attribute(self):
        assert is_rate_limit_error(HeaderError("Too Many Requests", status=429, headers={}))

    def test_other_errors(self):
        assert not is_rate_limit_error(FeedFetchError("Status code 404", status_code=404))
        assert not is_rate_limit_error(Exception("connection reset"))
        assert not is_rate_limit_error(ValueError("Status code 500"))

    @pytest.mark.parametrize("headers", [{"Retry-After": "1"}, {"retry-after": "1"}, {"RETRY-AFTER": " 1 "}])
    def test_retry_after_header_lookup_ignores_case(self, headers):
        assert retry_after_of(HeaderError("Status code 429", status=429, headers=headers)) == 1

    def test_parse_retry_after(self):
        assert parse_retry_after("1") == 1
        assert parse_retry_after(" 120 ") == 120
        assert parse_retry_after("soon") is None
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None
        assert parse_retry_after(None) is None


class TestFeedFetcherRetries:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [0, 1, 3, 6])
    async def test_recovers_after_rate_limits(self, failures):
        fetcher = ScriptedFeedFetcher([rate_limited() for _ in range(failures)] + [SAMPLE_RSS])

        document = await fetcher.fetch_feed("https://tldr.tech/api/rss/tech")

        assert fetcher.attempts == failures + 1
        assert len(fetcher.delays) == failures
        assert [item.link for item in document.items][0] == "https://tldr.tech/tech/2024-01-16"

    @pytest.mark.asyncio
    async def test_exhausts_after_seven_attempts(self):
        errors = [rate_limited() for _ in range(8)]
        fetcher = ScriptedFeedFetcher(errors)

        with pytest.raises(RateLimitExhaustedError) as exc_info:
            await fetcher.fetch_feed("https://tldr.tech/api/rss/tech")

        assert fetcher.attempts == 7
        assert len(fetcher.outcomes) == 1, "No 8th attempt should be made"
        assert exc_info.value.attempts == 7
        assert exc_info.value.__cause__ is errors[6]
        assert isinstance(exc_info.value, FeedFetchError)

    @pytest.mark.asyncio
    async def test_non_rate_limit_error_is_not_retried(self):
        not_found = FeedFetchError("Status code 404", status_code=404)
        fetcher = ScriptedFeedFetcher([not_found, SAMPLE_RSS])

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch_feed("https://tldr.tech/api/rss/missing")

        assert exc_info.value is not_found
        assert fetcher.attempts == 1
        assert fetcher.delays == []

    @pytest.mark.asyncio
    async def test_message_only_rate_limit_is_retried(self):
        fetcher = ScriptedFeedFetcher([Exception("Status code 429"), SAMPLE_RSS])

        await fetcher.fetch_feed("https://tldr.tech/api/rss/tech")

        assert fetcher.attempts == 2
        assert fetcher.delays == [30]

    @pytest.mark.asyncio
    async def test_honors_retry_after_hint(self):
        fetcher = ScriptedFeedFetcher([rate_limited(retry_after=1), SAMPLE_RSS])

        await fetcher.fetch_feed("https://tldr.tech/api/rss/tech")

        assert fetcher.delays == [1]

    @pytest.mark.asyncio
    async def test_default_delay_without_usable_hint(self):
        fetcher = ScriptedFeedFetcher([
            rate_limited(),
            HeaderError("Status code 429", status=429, headers={"Retry-After": "soon"}),
            HeaderError("Status code 429", status=429, headers={"Retry-After": "2"}),
            SAMPLE_RSS,
        ])

        await fetcher.fetch_feed("https://tldr.tech/api/rss/tech")

        assert fetcher.delays == [30, 30, 2]

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            FeedFetcher(max_attempts=0)


class TestFeedParsing:

    def test_items_keep_feed_order_and_dates(self):
        document = parse_feed_document("https://tldr.tech/api/rss/tech", SAMPLE_RSS)

        assert document.title == "TLDR Tech RSS"
        assert [item.link for item in document.items] == [
            "https://tldr.tech/tech/2024-01-16",
            "https://tldr.tech/tech/2024-01-15",
            "https://tldr.tech/tech/undated",
        ]
        assert document.items[0].published_at == datetime(2024, 1, 16, 10, 0, tzinfo=timezone.utc)
        assert document.items[2].published_at is None

    def test_rejects_non_feed_content(self):
        with pytest.raises(FeedFetchError):
            parse_feed_document("https://tldr.tech/api/rss/tech", "<<<not a feed")


@asynccontextmanager
async def serve(handler):
    app = web.Application()
    app.router.add_get("/{topic}", handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    try:
        host, port = runner.addresses[0][:2]
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


class TestFeedFetcherHttp:

    @pytest.mark.asyncio
    async def test_retries_local_server_429(self):
        calls = []

        async def handler(request):
            calls.append(request.match_info["topic"])
            if len(calls) < 3:
                return web.Response(status=429, headers={"Retry-After": "1"})
            return web.Response(text=SAMPLE_RSS, content_type="application/rss+xml")

        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        async with serve(handler) as base_url:
            async with aiohttp.ClientSession() as session:
                fetcher = FeedFetcher(session=session, sleep=record_sleep)
                document = await fetcher.fetch_feed(f"{base_url}/tech")

        assert calls == ["tech", "tech", "tech"]
        assert delays == [1, 1]
        assert len(document.items) == 3

    @pytest.mark.asyncio
    async def test_local_server_404_is_fatal(self):
        calls = []

        async def handler(request):
            calls.append(request.match_info["topic"])
            return web.Response(status=404)

        async with serve(handler) as base_url:
            fetcher = FeedFetcher()
            with pytest.raises(FeedFetchError) as exc_info:
                await fetcher.fetch_feed(f"{base_url}/missing")

        assert exc_info.value.status_code == 404
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_lowercase_retry_after_header_is_honored(self):
        fetcher = ScriptedFeedFetcher([
            HeaderError("Status code 429", status=429, headers={"retry-after": "1"}),
            SAMPLE_RSS,
        ])

        await fetcher.fetch_feed("https://tldr.tech/api/rss/tech")

        assert fetcher.delays == [1]

    @pytest.mark.asyncio
    async def test_feed_with_unknown_declared_charset(self):
        async def handler(request):
            return web.Response(
                body=SAMPLE_RSS.encode("utf-8"),
                headers={"Content-Type": "application/rss+xml; charset=not-a-charset"},
            )

        async with serve(handler) as base_url:
            document = await FeedFetcher().fetch_feed(f"{base_url}/tech")

        assert [item.link for item in document.items][:2] == [
            "https://tldr.tech/tech/2024-01-16",
            "https://tldr.tech/tech/2024-01-15",
        ]

    @pytest.mark.asyncio
    async def test_parses_raw_bytes(self):
        document = parse_feed_document("https://tldr.tech/api/rss/tech", SAMPLE_RSS.encode("utf-8"))

        assert len(document.items) == 3
