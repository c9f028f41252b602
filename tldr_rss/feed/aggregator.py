from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from tldr_rss.config import AggregatorConfig
from tldr_rss.feed.model import AggregationResult
from tldr_rss.logging_config import create_logger
from tldr_rss.news.fetcher import FeedFetcher
from tldr_rss.news.model import DatedNewsArticle, FeedItem
from tldr_rss.news.scraper import ArticleScraper
from tldr_rss.utils.time import lookback_cutoff, utc_now


class Publisher(Protocol):
    async def publish_topic(self, topic: str, articles: Sequence[DatedNewsArticle]) -> object:
        ...

    async def publish_combined(self, articles: Sequence[DatedNewsArticle]) -> object:
        ...


def filter_recent_items(items: Iterable[FeedItem], cutoff: datetime) -> List[FeedItem]:
    """Keep items published at or after cutoff, in their original order; undated items are dropped."""
    return [item for item in items if item.published_at is not None and item.published_at >= cutoff]


class FeedAggregator:
    """
    Collects the latest newsletter articles for every configured topic.

    Topics are processed one after the other: fetch the topic feed, keep the items
    inside the lookback window, scrape each item's page, then publish the topic
    before moving on. The combined feed is published once all topics are done.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        fetcher: FeedFetcher,
        scraper: ArticleScraper,
        publisher: Publisher,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.fetcher = fetcher
        self.scraper = scraper
        self.publisher = publisher
        self.clock = clock
        self.logger = create_logger("FeedAggregator")

    async def aggregate(self) -> AggregationResult:
        cutoff = lookback_cutoff(self.config.lookback_days, now=self.clock())
        self.logger.info(
            f"Fetching news from the last {self.config.lookback_days} days (since {cutoff.isoformat()})"
        )

        result = AggregationResult()
        failed_before = len(self.scraper.failed_urls)

        for topic in self.config.topics:
            articles = await self.collect_topic(topic, cutoff)
            await self.publisher.publish_topic(topic, articles)

            result.by_topic[topic] = articles
            result.combined.extend(articles)

        self.logger.debug(f"All news: {len(result.combined)} articles across {len(result.by_topic)} topics")
        await self.publisher.publish_combined(result.combined)

        result.degraded_pages = list(self.scraper.failed_urls[failed_before:])
        if result.degraded_pages:
            self.logger.warning(
                f"{len(result.degraded_pages)} pages could not be scraped and contributed no articles: {result.degraded_pages}"
            )

        return result

    async def collect_topic(self, topic: str, cutoff: Optional[datetime] = None) -> List[DatedNewsArticle]:
        if cutoff is None:
            cutoff = lookback_cutoff(self.config.lookback_days, now=self.clock())

        feed_url = self.config.feed_url(topic)
        self.logger.debug(f"Searching for feed for {feed_url}")
        document = await self.fetcher.fetch_feed(feed_url)

        recent_items = filter_recent_items(document.items, cutoff)
        self.logger.info(
            f"Found {len(document.items)} total items, {len(recent_items)} within the last {self.config.lookback_days} days"
        )

        topic_news: List[DatedNewsArticle] = []
        for item in recent_items:
            if not item.link or item.published_at is None:
                continue

            self.logger.info(f"Downloading news from {item.link} for {item.published_at.isoformat()}")
            news = await self.scraper.scrape_articles(item.link)
            self.logger.debug(f"Downloaded {len(news)} articles")

            for article in news:
                topic_news.append(DatedNewsArticle.from_article(article, item.published_at))

        return topic_news
