"""Feed document parsing into canonical article records."""

import calendar
import hashlib
import io
import re
import time
from typing import List, Optional, Tuple, Union
from urllib.parse import quote

import feedparser
import structlog
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .interfaces import RawArticle
from ..config.settings import settings
from ..extraction.urls import resolve_url

logger = structlog.get_logger()

DEFAULT_TITLE = "No title"
DATE_FORMAT = "%d/%m/%Y"
ELLIPSIS = "..."

# Base for <img> URLs in descriptions of entries that have no link
_FALLBACK_IMAGE_BASE = "http://localhost"

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


class FeedParser:
    """Parses RSS and Atom documents into ``RawArticle`` stubs.

    No network access: feedparser only receives the document bytes. Parsing is
    deterministic, so the same document always produces the same articles.
    """

    def __init__(self, placeholder_template: str = None, description_max_length: int = None):
        self.placeholder_template = (
            settings.placeholder_image_template if placeholder_template is None else placeholder_template
        )
        self.description_max_length = description_max_length or settings.description_max_length

    def parse(self, xml: Union[str, bytes], source_name: str) -> List[RawArticle]:
        """Parse one feed document."""
        data = xml.encode("utf-8") if isinstance(xml, str) else xml
        feed = feedparser.parse(io.BytesIO(data))

        if feed.bozo:
            # Malformed XML is not fatal, feedparser keeps what it recovered
            logger.warning(
                "feed_parse_error",
                source=source_name,
                error=str(feed.get("bozo_exception", ""))[:300],
                recovered_entries=len(feed.entries),
            )

        articles = []
        for index, entry in enumerate(feed.entries):
            articles.append(self._parse_entry(entry, index, source_name))

        logger.debug("feed_parsed", source=source_name, format=feed.get("version") or "unknown", articles=len(articles))
        return articles

    def _parse_entry(self, entry, index: int, source_name: str) -> RawArticle:
        """Parse a feed entry into a RawArticle."""
        title = (entry.get("title") or "").strip() or DEFAULT_TITLE
        link = (entry.get("link") or "").strip()
        published, pub_date = self._published(entry, title, source_name)
        raw_description = self._raw_description(entry)

        return RawArticle(
            id=link or self._synthesize_id(source_name, published, index, title),
            title=title,
            link=link,
            pub_date=pub_date,
            description=self._plain_description(raw_description),
            source=source_name,
            image_url=self._find_image(entry, raw_description, link, title, index),
        )

    def _published(self, entry, title: str, source_name: str) -> Tuple[Optional[time.struct_time], Optional[str]]:
        """Return the UTC struct for ids and the publisher's own calendar date."""
        # pubDate, dc:date and published land in "published", Atom updated in "updated"
        for key in ("published", "updated"):
            parsed = entry.get(f"{key}_parsed")
            raw = entry.get(key)
            if parsed:
                return parsed, self._publisher_date(raw) or time.strftime(DATE_FORMAT, parsed)
            if raw:
                logger.warning("feed_date_unparsed", source=source_name, title=title[:80], date=raw)
        return None, None

    def _publisher_date(self, raw: Optional[str]) -> Optional[str]:
        # feedparser normalises to UTC; keep the date in the offset the feed gave
        if not raw:
            return None
        try:
            return date_parser.parse(raw).strftime(DATE_FORMAT)
        except (ValueError, OverflowError):
            return None

    def _raw_description(self, entry) -> str:
        summary = entry.get("summary")
        if summary:
            return summary
        for content in entry.get("content") or []:
            value = content.get("value")
            if value:
                return value
        return ""

    def _plain_description(self, raw: str) -> str:
        if not raw:
            return ""
        text = BeautifulSoup(raw, "html.parser").get_text(" ")
        text = _WHITESPACE_RE.sub(" ", text).strip()
        if len(text) > self.description_max_length:
            return text[:self.description_max_length].rstrip() + ELLIPSIS
        return text

    def _find_image(self, entry, raw_description: str, link: str, title: str, index: int) -> Optional[str]:
        return (
            self._media_image(entry)
            or self._description_image(raw_description, link)
            or self._placeholder_image(title, index)
        )

    def _media_image(self, entry) -> Optional[str]:
        for media in entry.get("media_content") or []:
            url = media.get("url")
            mime = media.get("type", "")
            medium = media.get("medium", "")
            if url and (mime.startswith("image") or medium == "image" or not (mime or medium)):
                return url

        for thumbnail in entry.get("media_thumbnail") or []:
            if thumbnail.get("url"):
                return thumbnail["url"]

        for enclosure in entry.get("links") or []:
            if enclosure.get("rel") == "enclosure" and enclosure.get("type", "").startswith("image"):
                url = enclosure.get("href") or enclosure.get("url")
                if url:
                    return url
        return None

    def _description_image(self, raw_description: str, link: str) -> Optional[str]:
        if not raw_description or "<img" not in raw_description:
            return None
        img = BeautifulSoup(raw_description, "html.parser").find("img", src=True)
        if img is None:
            return None
        return resolve_url(img["src"], link or _FALLBACK_IMAGE_BASE)

    def _placeholder_image(self, title: str, index: int) -> Optional[str]:
        if not self.placeholder_template:
            return None
        seed = quote(_NON_ALNUM_RE.sub("", title)[:20] + str(index), safe="")
        return self.placeholder_template.format(seed=seed)

    def _synthesize_id(self, source_name: str, published: Optional[time.struct_time], index: int, title: str) -> str:
        timestamp = calendar.timegm(published) if published else 0
        digest = hashlib.sha256(title.encode()).hexdigest()[:8]
        return f"{source_name}-{timestamp}-{index}-{digest}"


def parse_feed(xml: Union[str, bytes], source_name: str) -> List[RawArticle]:
    """Parse a feed document with the default settings."""
    return FeedParser().parse(xml, source_name)
