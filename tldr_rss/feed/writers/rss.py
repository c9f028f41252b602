from typing import List
from xml.etree import ElementTree as ET

from tldr_rss.config import CONFIG
from tldr_rss.feed.writers.base import FeedWriter
from tldr_rss.logging_config import create_logger
from tldr_rss.news.model import DatedNewsArticle
from tldr_rss.utils.time import to_rfc822


ATOM_NS = "http://www.w3.org/2005/Atom"
TLDR_SITE = "https://tldr.tech"
TLDR_LOGO = "https://tldr.tech/tldrsquare.png"

ET.register_namespace("atom", ATOM_NS)


class RssFeedWriter(FeedWriter):
    """Writes RSS 2.0 documents to <output_dir>/<feed_name>.rss."""

    extension = "rss"

    def __init__(self, output_dir: str, site_url: str = ""):
        super().__init__(output_dir)
        self.site_url = (site_url or CONFIG.SITE_URL).rstrip("/") + "/"
        self.logger = create_logger("RssFeedWriter")

    async def write(self, feed_name, articles):
        self.logger.info(f"Creating feed for {feed_name} 📚")
        return await super().write(feed_name, articles)

    def render(self, feed_name: str, articles: List[DatedNewsArticle]) -> str:
        rss = ET.Element("rss", {"version": "2.0"})
        channel = ET.SubElement(rss, "channel")

        ET.SubElement(channel, f"{{{ATOM_NS}}}link", {
            "href": f"{self.site_url}{feed_name}.rss",
            "rel": "self",
            "type": "application/rss+xml",
        })
        ET.SubElement(channel, "title").text = f"TLDR {feed_name.upper()} Feed"
        ET.SubElement(channel, "link").text = self.site_url
        ET.SubElement(channel, "description").text = "TLDR RSS Feed"
        ET.SubElement(channel, "language").text = "en-US"

        image = ET.SubElement(channel, "image")
        ET.SubElement(image, "url").text = TLDR_LOGO
        ET.SubElement(image, "title").text = "TLDR RSS Feed"
        ET.SubElement(image, "link").text = TLDR_SITE

        for article in articles:
            item = ET.SubElement(channel, "item")
            ET.SubElement(item, "title").text = article.title
            ET.SubElement(item, "pubDate").text = to_rfc822(article.date)
            ET.SubElement(item, "guid", {"isPermaLink": "true"}).text = article.link
            ET.SubElement(item, "description").text = article.content

        return '<?xml version="1.0" encoding="UTF-8"?>' + ET.tostring(rss, encoding="unicode")
