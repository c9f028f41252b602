from typing import Optional, Sequence, Tuple
import os
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv

load_dotenv()


# Topic feeds published under RSS_BASE_URL, in publishing order
DEFAULT_TOPICS: Tuple[str, ...] = (
    "tech",
    "dev",
    "ai",
    "infosec",
    "product",
    "devops",
    "founders",
    "design",
    "marketing",
    "crypto",
    "fintech",
    "data",
)


def _int_from_env(key: str, default: int) -> int:
    """Read an integer environment variable, falling back to default when unset or non-numeric."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


class Config:
    """configuration class for environment variable"""

    # Logging
    @property
    def LOG_LEVEL(self) -> str:
        return os.getenv('LOG_LEVEL', 'info')

    # Feed Collection Settings
    @property
    def MAX_DAYS(self) -> int:
        max_days = _int_from_env('MAX_DAYS', 10)
        return max_days if max_days >= 0 else 10

    @property
    def RSS_BASE_URL(self) -> str:
        return os.getenv('RSS_BASE_URL', 'https://tldr.tech/api/rss').rstrip('/')

    @property
    def RATE_LIMIT_DEFAULT_DELAY(self) -> int:
        return _int_from_env('RATE_LIMIT_DEFAULT_DELAY', 30)

    # Output Settings
    @property
    def OUTPUT_DIR(self) -> str:
        return os.getenv('OUTPUT_DIR', 'static')

    @property
    def SITE_URL(self) -> str:
        return os.getenv('SITE_URL', 'https://bullrich.dev/tldr-rss/')

    @property
    def TOPICS(self) -> Tuple[str, ...]:
        raw: Optional[str] = os.getenv('TOPICS')
        if not raw:
            return DEFAULT_TOPICS
        return parse_topics(raw)


CONFIG = Config()


def parse_topics(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated topic list, dropping blanks."""
    return tuple(topic.strip() for topic in raw.split(',') if topic.strip())


class AggregatorConfig(BaseModel):
    """Immutable settings for a single aggregation run."""
    model_config = ConfigDict(frozen=True)

    topics: Tuple[str, ...] = Field(default=DEFAULT_TOPICS, description="Topic names, processed in order")
    lookback_days: int = Field(default=10, ge=0, description="Only feed items newer than this many days are scraped")
    rss_base_url: str = Field(default="https://tldr.tech/api/rss", description="Base URL; a topic feed lives at <base>/<topic>")

    def feed_url(self, topic: str) -> str:
        return f"{self.rss_base_url.rstrip('/')}/{topic}"

    @classmethod
    def from_config(
        cls,
        topics: Optional[Sequence[str]] = None,
        lookback_days: Optional[int] = None,
    ) -> "AggregatorConfig":
        return cls(
            topics=tuple(topics) if topics else CONFIG.TOPICS,
            lookback_days=CONFIG.MAX_DAYS if lookback_days is None else lookback_days,
            rss_base_url=CONFIG.RSS_BASE_URL,
        )


__all__ = ["CONFIG", "AggregatorConfig", "DEFAULT_TOPICS", "parse_topics"]
