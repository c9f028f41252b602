from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp
from bs4 import BeautifulSoup, Tag

from tldr_rss.logging_config import create_logger
from tldr_rss.news.model import NewsArticle


class ExtractionRule(ABC):
    """Turns a parsed listing page into news articles."""

    @abstractmethod
    def extract(self, soup: BeautifulSoup, url: str) -> List[NewsArticle]:
        pass


class HeadingExtractionRule(ExtractionRule):
    """
    Extracts articles from pages shaped like TLDR newsletter issues:

        <article>
          <a href="LINK"><h3>TITLE</h3></a>
          <div>CONTENT</div>
        </article>

    Every <h3> is a candidate. The link is the href of the heading's parent, the
    content is the first <div> under the heading's grandparent.
    """

    def __init__(self, heading_tag: str = "h3", content_tag: str = "div"):
        self.heading_tag = heading_tag
        self.content_tag = content_tag
        self.logger = create_logger("HeadingExtractionRule")

    def extract(self, soup: BeautifulSoup, url: str) -> List[NewsArticle]:
        headers = soup.find_all(self.heading_tag)
        self.logger.info(f"Found {len(headers)} headers. Parsing them")

        news: List[NewsArticle] = []
        for header in headers:
            title = header.get_text().strip()
            link = self._link_of(header)
            content = self._content_of(header)

            if not title or not link or not content:
                self.logger.debug(f"Skipping null elements: {title or 'title'} {url} {content or 'content'}")
                continue

            news.append(NewsArticle(title=title, link=link, content=content))

        return news

    def _link_of(self, header: Tag) -> Optional[str]:
        parent = header.parent
        if not isinstance(parent, Tag):
            return None
        href = parent.get("href")
        if isinstance(href, list):
            href = " ".join(href)
        return href.strip() if href else None

    def _content_of(self, header: Tag) -> Optional[str]:
        parent = header.parent
        grandparent = parent.parent if parent is not None else None
        if not isinstance(grandparent, Tag):
            return None
        content = grandparent.find(self.content_tag)
        if content is None:
            return None
        return content.get_text().strip()


class ArticleScraper:
    """
    Best-effort scraper for newsletter listing pages.

    Download or parse failures never propagate: they are logged, remembered in
    `failed_urls`, and yield an empty list.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, rule: Optional[ExtractionRule] = None):
        self.session = session
        self.rule = rule or HeadingExtractionRule()
        self.failed_urls: List[str] = []
        self.logger = create_logger("ArticleScraper")

    async def scrape_articles(self, url: str) -> List[NewsArticle]:
        self.logger.info(f"Downloading site from {url}")
        try:
            html = await self._download(url)
            soup = BeautifulSoup(html, "html.parser")
            return self.rule.extract(soup, url)
        except Exception as e:
            self.logger.info(f"Failed to fetch news from {url}: {e}")
            self.failed_urls.append(url)
            return []

    async def _download(self, url: str) -> str:
        if self.session is not None:
            return await self._get(self.session, url)
        async with aiohttp.ClientSession() as session:
            return await self._get(session, url)

    async def _get(self, session: aiohttp.ClientSession, url: str) -> str:
        async with session.get(url, raise_for_status=True) as response:
            return await response.text()
