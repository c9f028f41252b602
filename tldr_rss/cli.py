import asyncio
import sys
import argparse
from typing import Optional, Sequence

import aiohttp
from pydantic import ValidationError

from tldr_rss.config import CONFIG, AggregatorConfig, parse_topics
from tldr_rss.feed.aggregator import FeedAggregator
from tldr_rss.feed.model import AggregationResult
from tldr_rss.feed.writers import EmptyResultSetError, FeedPublisher
from tldr_rss.logging_config import logger
from tldr_rss.news.fetcher import FeedFetcher, FeedFetchError
from tldr_rss.news.scraper import ArticleScraper


def setup_argparser():
    """Set up command line argument parser."""
    parser = argparse.ArgumentParser(description="Aggregate TLDR newsletters into RSS and HTML feeds")
    parser.add_argument("--max-days", type=int, default=None, help=f"Lookback window in days (default: MAX_DAYS, currently {CONFIG.MAX_DAYS})")
    parser.add_argument("--output-dir", default=None, help=f"Directory for generated files (default: OUTPUT_DIR, currently {CONFIG.OUTPUT_DIR})")
    parser.add_argument("--topics", default=None, help="Comma-separated topics to publish, in order (default: all configured topics)")
    return parser


async def run(config: AggregatorConfig, output_dir: str) -> AggregationResult:
    """Run one aggregation with a single HTTP session shared by fetcher and scraper."""
    async with aiohttp.ClientSession() as session:
        aggregator = FeedAggregator(
            config=config,
            fetcher=FeedFetcher(session=session),
            scraper=ArticleScraper(session=session),
            publisher=FeedPublisher.to_directory(output_dir, site_url=CONFIG.SITE_URL),
        )
        return await aggregator.aggregate()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    topics = None
    if args.topics is not None:
        topics = parse_topics(args.topics)
        if not topics:
            parser.error("--topics must name at least one topic")
    output_dir = args.output_dir or CONFIG.OUTPUT_DIR

    try:
        config = AggregatorConfig.from_config(topics=topics, lookback_days=args.max_days)
        result = asyncio.run(run(config, output_dir))
    except (ValidationError, FeedFetchError, EmptyResultSetError) as e:
        logger.error(f"❌ {e}")
        return 1

    logger.info(f"✅ Published {len(result.combined)} articles from {len(result.by_topic)} topics to {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
