from .base import EmptyResultSetError, FeedWriter
from .rss import RssFeedWriter
from .html import HtmlFeedWriter
from .publisher import FeedPublisher

__all__ = [
    "EmptyResultSetError",
    "FeedWriter",
    "RssFeedWriter",
    "HtmlFeedWriter",
    "FeedPublisher",
]
