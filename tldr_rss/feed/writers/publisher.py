from pathlib import Path
from typing import List, Sequence

from tldr_rss.feed.writers.html import HtmlFeedWriter
from tldr_rss.feed.writers.rss import RssFeedWriter
from tldr_rss.news.model import DatedNewsArticle


class FeedPublisher:
    """Publishes every topic as RSS + HTML and the combined feed as RSS only."""

    def __init__(self, rss_writer: RssFeedWriter, html_writer: HtmlFeedWriter, combined_name: str = "feed"):
        self.rss_writer = rss_writer
        self.html_writer = html_writer
        self.combined_name = combined_name

    @classmethod
    def to_directory(cls, output_dir: str, site_url: str = "") -> "FeedPublisher":
        return cls(RssFeedWriter(output_dir, site_url=site_url), HtmlFeedWriter(output_dir))

    async def publish_topic(self, topic: str, articles: Sequence[DatedNewsArticle]) -> List[Path]:
        rss_path = await self.rss_writer.write(topic, articles)
        html_path = await self.html_writer.write(topic, articles)
        return [rss_path, html_path]

    async def publish_combined(self, articles: Sequence[DatedNewsArticle]) -> List[Path]:
        return [await self.rss_writer.write(self.combined_name, articles)]
