import asyncio
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import aiohttp
import feedparser

from tldr_rss.config import CONFIG
from tldr_rss.logging_config import create_logger
from tldr_rss.news.model import FeedDocument, FeedItem
from tldr_rss.utils.time import entry_published_at


RATE_LIMIT_STATUS = 429
RATE_LIMIT_MESSAGE = f"Status code {RATE_LIMIT_STATUS}"

# 1 initial attempt + 6 retries
DEFAULT_MAX_ATTEMPTS = 7


class FeedFetchError(Exception):
    """Raised when a feed cannot be downloaded or parsed."""

    def __init__(self, message: str, status_code: Optional[int] = None, retry_after_seconds: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retry_after_seconds = retry_after_seconds


class RateLimitExhaustedError(FeedFetchError):
    """Raised when a feed kept answering 429 after every retry."""

    def __init__(self, url: str, attempts: int, last_error: BaseException):
        super().__init__(
            f"Failed to fetch RSS feed for {url} after {attempts} attempts due to rate limiting",
            status_code=RATE_LIMIT_STATUS,
            retry_after_seconds=retry_after_of(last_error),
        )
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parse a Retry-After header holding delay-seconds; anything else yields None."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _status_of(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        # aiohttp.ClientResponseError exposes the code as `status`
        status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


def retry_after_of(error: BaseException) -> Optional[int]:
    """Return the server-requested retry delay carried by an error, if any."""
    retry_after = getattr(error, "retry_after_seconds", None)
    if isinstance(retry_after, int):
        return retry_after
    headers: Optional[Mapping[str, str]] = getattr(error, "headers", None)
    if headers:
        for key, value in headers.items():
            if key.lower() == "retry-after":
                return parse_retry_after(value)
    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """
    True when an error signals upstream throttling.

    Either the error carries a 429 status, or its message mentions "Status code 429"
    (some parsers drop the response and only keep the text).
    """
    if _status_of(error) == RATE_LIMIT_STATUS:
        return True
    message = getattr(error, "message", None)
    if not isinstance(message, str):
        message = str(error)
    return RATE_LIMIT_MESSAGE in message


def parse_feed_document(url: str, content: Union[str, bytes]) -> FeedDocument:
    """Parse an RSS/Atom body into a FeedDocument, keeping entries in feed order."""
    feed = feedparser.parse(content)

    entries = getattr(feed, "entries", None) or []
    if getattr(feed, "bozo", 0) and not entries and not feed.get("feed"):
        exc = getattr(feed, "bozo_exception", None)
        msg = f"Invalid RSS/Atom feed: {url}"
        if exc:
            msg += f" ({exc})"
        raise FeedFetchError(msg)

    items = []
    for entry in entries:
        link = str(entry.get("link") or "").strip()
        items.append(FeedItem(link=link, published_at=entry_published_at(entry)))

    title = str(feed.get("feed", {}).get("title", "") or "")
    return FeedDocument(url=url, title=title, items=items)


class FeedFetcher:
    """
    Downloads and parses topic feeds, absorbing upstream rate limiting.

    A 429 answer is retried after the server's Retry-After delay (or a default delay)
    until max_attempts is reached; every other failure is raised on first occurrence.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        default_retry_after: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.session = session
        self.max_attempts = max_attempts
        self.default_retry_after = CONFIG.RATE_LIMIT_DEFAULT_DELAY if default_retry_after is None else default_retry_after
        self.sleep = sleep
        self.logger = create_logger("FeedFetcher")

    async def fetch_feed(self, url: str) -> FeedDocument:
        """
        Fetch and parse a feed.

        Raises:
            RateLimitExhaustedError: every attempt was rate limited.
            FeedFetchError: any other download or parse failure.
        """
        self.logger.info(f"Fetching feed for {url}")

        attempt = 0
        while True:
            attempt += 1
            self.logger.debug(f"Fetching {url} (attempt {attempt}/{self.max_attempts})")
            try:
                content = await self._download(url)
                return parse_feed_document(url, content)
            except Exception as e:
                if not is_rate_limit_error(e):
                    raise

                if attempt >= self.max_attempts:
                    self.logger.warning(
                        f"Failed to fetch RSS feed for {url} after {attempt} attempts due to rate limiting"
                    )
                    raise RateLimitExhaustedError(url, attempt, e) from e

                retry_after = retry_after_of(e)
                delay = retry_after if retry_after is not None else self.default_retry_after
                self.logger.warning(
                    f"Rate limited (429) for feed {url}. Retrying in {delay} seconds (attempt {attempt}/{self.max_attempts})"
                )
                await self.sleep(delay)

    async def _download(self, url: str) -> bytes:
        if self.session is not None:
            return await self._get(self.session, url)
        async with aiohttp.ClientSession() as session:
            return await self._get(session, url)

    async def _get(self, session: aiohttp.ClientSession, url: str) -> bytes:
        try:
            async with session.get(url) as response:
                if response.status < 200 or response.status >= 300:
                    raise FeedFetchError(
                        f"Status code {response.status} when fetching {url}",
                        status_code=response.status,
                        retry_after_seconds=parse_retry_after(response.headers.get("Retry-After")),
                    )
                # feedparser sniffs the encoding itself
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FeedFetchError(f"Failed to fetch feed: {url} ({e})") from e
