import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

from tldr_rss.news.model import DatedNewsArticle


class EmptyResultSetError(Exception):
    """Raised when a feed would be published without any article."""

    def __init__(self, feed_name: str):
        super().__init__(f"No posts found for {feed_name}")
        self.feed_name = feed_name


def sort_newest_first(articles: Sequence[DatedNewsArticle]) -> List[DatedNewsArticle]:
    return sorted(articles, key=lambda article: article.date, reverse=True)


class FeedWriter(ABC):
    """Renders a list of articles into a single output file."""

    extension: str = ""

    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)

    def path_for(self, feed_name: str) -> Path:
        return self.output_dir / f"{feed_name}.{self.extension}"

    @abstractmethod
    def render(self, feed_name: str, articles: List[DatedNewsArticle]) -> str:
        """Return the file content for a non-empty, newest-first list of articles."""
        pass

    async def write(self, feed_name: str, articles: Sequence[DatedNewsArticle]) -> Path:
        """Render and save the feed; raises EmptyResultSetError when there is nothing to publish."""
        if not articles:
            raise EmptyResultSetError(feed_name)

        content = self.render(feed_name, sort_newest_first(articles))
        file_path = self.path_for(feed_name)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Save asynchronously
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(
            None,
            lambda: file_path.write_text(content, encoding='utf-8')
        )
        return file_path
