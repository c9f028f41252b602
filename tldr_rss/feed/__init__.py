from .aggregator import FeedAggregator, filter_recent_items
from .model import AggregationResult
from .writers import *

__all__ = [
    "FeedAggregator",
    "filter_recent_items",
    "AggregationResult",
    "EmptyResultSetError",
    "FeedPublisher",
    "RssFeedWriter",
    "HtmlFeedWriter",
]
