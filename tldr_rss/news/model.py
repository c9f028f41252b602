from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class FeedItem:
    """One entry of a topic feed; only the link and publish date are used downstream."""
    link: str
    published_at: Optional[datetime] = None  # UTC, None when missing or unparseable


@dataclass
class FeedDocument:
    """A parsed RSS/Atom feed."""
    url: str
    title: str = ""
    items: List[FeedItem] = field(default_factory=list)


@dataclass(frozen=True)
class NewsArticle:
    """Represents a single news item scraped from a newsletter page."""
    title: str
    link: str
    content: str


@dataclass(frozen=True)
class DatedNewsArticle(NewsArticle):
    """A NewsArticle stamped with the publish date of the feed item it came from."""
    date: datetime

    @classmethod
    def from_article(cls, article: NewsArticle, date: datetime) -> "DatedNewsArticle":
        return cls(title=article.title, link=article.link, content=article.content, date=date)
