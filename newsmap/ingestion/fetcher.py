"""Feed fetcher: proxied download, parsing, and per-article scrape enrichment."""

import asyncio
import time
from typing import List, Optional
from urllib.parse import quote, urlsplit

import aiohttp
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .feed_parser import FeedParser
from .interfaces import (
    EmptyFeedError, FeedHTTPError, FeedNetworkError, FetcherInterface, RawArticle, RssSource,
)
from ..config.settings import settings
from ..extraction.interfaces import ScraperInterface
from ..extraction.scraper import ArticleScraper
from ..extraction.urls import is_absolute_http_url

logger = structlog.get_logger()

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml"


class FeedFetcher(FetcherInterface):
    """Fetches one feed through the CORS proxy and enriches its articles."""

    def __init__(
        self,
        session: aiohttp.ClientSession = None,
        scraper: ScraperInterface = None,
        parser: FeedParser = None,
        proxy_url: str = None,
        timeout_seconds: float = None,
        max_attempts: int = None,
        retry_backoff_seconds: float = None,
        scrape_articles: bool = None,
    ):
        self._session = session
        self._owns_session = session is None
        self.scraper = scraper or ArticleScraper(session=session)
        self.parser = parser or FeedParser()
        self.proxy_url = settings.cors_proxy_url if proxy_url is None else proxy_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.feed_timeout_seconds)
        self.max_attempts = max_attempts or settings.feed_fetch_max_attempts
        self.retry_backoff_seconds = (
            settings.feed_retry_backoff_seconds if retry_backoff_seconds is None else retry_backoff_seconds
        )
        self.scrape_articles = settings.enable_full_content_fetch if scrape_articles is None else scrape_articles

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
        """Close sessions this fetcher opened, including its scraper's."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if isinstance(self.scraper, ArticleScraper):
            await self.scraper.close()

    def build_request_url(self, url: str) -> str:
        """Prefix the percent-encoded feed URL with the proxy, if any."""
        if not self.proxy_url:
            return url
        return f"{self.proxy_url}{quote(url, safe='')}"

    def network_hint(self) -> str:
        """Likely cause of a transport failure, naming the proxy when one is used."""
        if not self.proxy_url:
            return "The feed server may be down or blocking requests."
        try:
            host = urlsplit(self.proxy_url).hostname
        except ValueError:
            host = None
        proxy = f"the proxy {host}" if host else "the configured CORS proxy"
        return f"The feed server might be down or blocking requests, or {proxy} might be unable to reach it."

    async def fetch_one(self, source: RssSource, cancel_event: asyncio.Event = None) -> List[RawArticle]:
        """Fetch articles from a single feed.

        Raises a ``FeedFetchError`` subclass when the feed cannot be
        retrieved at all. Individual article scrapes never fail the feed.
        """
        start_time = time.time()
        try:
            body = await self._download(source)
        except Exception as e:
            logger.error("feed_fetch_failed", feed=source.name, url=source.url, error=str(e))
            raise

        articles = self.parser.parse(body, source.name)
        if self.scrape_articles:
            articles = await self._enrich(articles, source, cancel_event)

        logger.info(
            "feed_fetched",
            feed=source.name,
            articles=len(articles),
            scraped=sum(1 for a in articles if a.full_text or a.scraped_image_url),
            time_ms=int((time.time() - start_time) * 1000),
        )
        return articles

    async def _download(self, source: RssSource) -> bytes:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(FeedNetworkError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._get(source)

    async def _get(self, source: RssSource) -> bytes:
        session = await self._get_session()
        request_url = self.build_request_url(source.url)
        try:
            async with session.get(
                request_url, headers={"Accept": FEED_ACCEPT}, timeout=self.timeout
            ) as response:
                if not 200 <= response.status < 300:
                    raise FeedHTTPError(
                        f"Failed to fetch from {source.name}: {response.reason or 'HTTP error'} "
                        f"(Status {response.status}). URL: {source.url}",
                        status=response.status,
                    )
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FeedNetworkError(
                f"Network error fetching {source.name}: {str(e) or type(e).__name__}. "
                f"{self.network_hint()} URL: {source.url}"
            ) from e

        if not body.strip():
            raise EmptyFeedError(f"Empty response from {source.name}. URL: {source.url}")
        return body

    async def _enrich(
        self, articles: List[RawArticle], source: RssSource, cancel_event: Optional[asyncio.Event]
    ) -> List[RawArticle]:
        """Scrape each article's page one at a time."""
        enriched = []
        for position, article in enumerate(articles):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("feed_scrape_cancelled", feed=source.name, remaining=len(articles) - position)
                enriched.extend(articles[position:])
                break

            if not is_absolute_http_url(article.link):
                logger.warning("article_link_not_scrapable", feed=source.name, title=article.title[:80], link=article.link)
                enriched.append(article)
                continue

            try:
                scraped = await self.scraper.scrape(article.link)
            except Exception as e:
                logger.warning("article_scrape_exception", feed=source.name, url=article.link, error=str(e))
                enriched.append(article)
                continue
            enriched.append(article.with_scraped(scraped))
        return enriched
