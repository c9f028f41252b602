# Import core models
from .model import FeedItem, FeedDocument, NewsArticle, DatedNewsArticle

from .fetcher import FeedFetcher, FeedFetchError, RateLimitExhaustedError, is_rate_limit_error
from .scraper import ArticleScraper, ExtractionRule, HeadingExtractionRule

__all__ = [
    "FeedItem",
    "FeedDocument",
    "NewsArticle",
    "DatedNewsArticle",
    "FeedFetcher",
    "FeedFetchError",
    "RateLimitExhaustedError",
    "is_rate_limit_error",
    "ArticleScraper",
    "ExtractionRule",
    "HeadingExtractionRule",
]
