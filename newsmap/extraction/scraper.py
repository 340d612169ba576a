"""Article page scraper: one GET, then image and text extraction."""

import time
from typing import Optional

import aiohttp
import structlog
from bs4 import BeautifulSoup

from .content import ContentExtractor
from .images import ImageResolver
from .interfaces import ScrapedData, ScraperInterface
from ..config.settings import settings

logger = structlog.get_logger()

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


class ArticleScraper(ScraperInterface):
    """Fetches an article page and extracts its text and main image.

    ``scrape`` never raises: HTTP errors, timeouts, connection problems and
    parse failures all come back as ``ScrapedData.empty()``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession = None,
        image_resolver: ImageResolver = None,
        content_extractor: ContentExtractor = None,
        timeout_seconds: float = None,
        user_agent: str = None,
    ):
        self._session = session
        self._owns_session = session is None
        self.image_resolver = image_resolver or ImageResolver()
        self.content_extractor = content_extractor or ContentExtractor()
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.scrape_timeout_seconds)
        self.headers = {
            "User-Agent": user_agent or settings.scraper_user_agent,
            "Accept": HTML_ACCEPT,
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def __aenter__(self):
        await self._get_session()
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self):
        """Close the HTTP session if this scraper opened it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def scrape(self, url: str) -> ScrapedData:
        """Scrape ``url`` for its main text and representative image."""
        start_time = time.time()
        try:
            session = await self._get_session()
            async with session.get(url, headers=self.headers, timeout=self.timeout) as response:
                if not 200 <= response.status < 300:
                    logger.warning("article_scrape_http_error", url=url, status=response.status)
                    return ScrapedData.empty()
                html = await response.text(errors="replace")

            return self._extract(html, url, start_time)

        except Exception as e:
            logger.warning("article_scrape_failed", url=url, error=str(e) or type(e).__name__)
            return ScrapedData.empty()

    def _extract(self, html: str, url: str, start_time: float) -> ScrapedData:
        document = BeautifulSoup(html, "html.parser")
        image_url: Optional[str] = self.image_resolver.extract_image(document, url)
        text = self.content_extractor.extract_text(document)

        if not text and not image_url:
            logger.warning("article_scrape_empty", url=url)
            return ScrapedData.empty()

        logger.info(
            "article_scraped",
            url=url,
            text_length=len(text or ""),
            has_image=image_url is not None,
            time_ms=int((time.time() - start_time) * 1000),
        )
        return ScrapedData(text_content=text, main_image_url=image_url)
