from dataclasses import dataclass, field
from typing import Dict, List

from tldr_rss.news.model import DatedNewsArticle


@dataclass
class AggregationResult:
    """Articles collected during one run, per topic and combined."""
    by_topic: Dict[str, List[DatedNewsArticle]] = field(default_factory=dict)  # insertion order = topic order
    combined: List[DatedNewsArticle] = field(default_factory=list)
    degraded_pages: List[str] = field(default_factory=list)  # listing pages whose scrape failed
