from html import escape
from typing import List

from tldr_rss.feed.writers.base import FeedWriter
from tldr_rss.logging_config import create_logger
from tldr_rss.news.model import DatedNewsArticle
from tldr_rss.utils.time import to_iso8601, utc_now


PAGE_STYLE = """        body {
            font-family: system-ui, -apple-system, sans-serif;
            line-height: 1.6;
            max-width: 800px;
            margin: 0 auto;
            padding: 20px;
        }
        article {
            margin-bottom: 2em;
            border-bottom: 1px solid #eee;
            padding-bottom: 1em;
        }
        article:last-child {
            border-bottom: none;
        }
        h1 {
            color: #333;
        }
        h2 {
            color: #0066cc;
            margin-top: 0;
        }
        time {
            color: #666;
            font-size: 0.9em;
        }
        p {
            color: #444;
        }
        a {
            color: #0066cc;
            text-decoration: none;
        }
        a:hover {
            text-decoration: underline;
        }"""


class HtmlFeedWriter(FeedWriter):
    """Writes a minimal HTML page per feed, meant for AI consumption."""

    extension = "html"

    def __init__(self, output_dir: str, max_articles: int = 50):
        super().__init__(output_dir)
        self.max_articles = max_articles
        self.logger = create_logger("HtmlFeedWriter")

    async def write(self, feed_name, articles):
        self.logger.info(f"Creating HTML feed for {feed_name} 📄")
        return await super().write(feed_name, articles)

    def _render_article(self, article: DatedNewsArticle) -> str:
        published = to_iso8601(article.date)
        return (
            "        <article>\n"
            f"            <h2><a href=\"{escape(article.link, quote=True)}\">{escape(article.title)}</a></h2>\n"
            f"            <time datetime=\"{published}\">{published}</time>\n"
            f"            <p>{escape(article.content)}</p>\n"
            "        </article>"
        )

    def render(self, feed_name: str, articles: List[DatedNewsArticle]) -> str:
        articles = articles[:self.max_articles]
        name = escape(feed_name.upper())
        body = "\n".join(self._render_article(article) for article in articles)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="TLDR {name} news articles for AI consumption">
    <title>TLDR {name} News Feed</title>
    <style>
{PAGE_STYLE}
    </style>
</head>
<body>
    <header>
        <h1>TLDR {name} News Feed</h1>
        <p>Latest {len(articles)} articles from <a href="https://tldr.tech/">TLDR</a></p>
    </header>
    <main>
{body}
    </main>
    <footer>
        <p>Generated on {to_iso8601(utc_now())}</p>
    </footer>
</body>
</html>"""
