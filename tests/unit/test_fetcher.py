"""Unit tests for the feed fetcher."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from newsmap.extraction.interfaces import ScrapedData
from newsmap.ingestion.fetcher import FEED_ACCEPT, FeedFetcher
from newsmap.ingestion.interfaces import EmptyFeedError, FeedHTTPError, FeedNetworkError, RssSource

PROXY = "https://proxy.test/raw?url="
FEED_URL = "https://example.com/feed.xml"
PROXIED_FEED_URL = "https://proxy.test/raw?url=https%3A%2F%2Fexample.com%2Ffeed.xml"


@pytest.fixture
def source():
    return RssSource(name="Example", url=FEED_URL)


@pytest.fixture
def mock_scraper():
    scraper = MagicMock()
    scraper.scrape = AsyncMock(return_value=ScrapedData("Full article text", "https://example.com/scraped.jpg"))
    return scraper


def make_fetcher(session, scraper=None, **kwargs):
    kwargs.setdefault("proxy_url", PROXY)
    kwargs.setdefault("max_attempts", 1)
    kwargs.setdefault("retry_backoff_seconds", 0)
    return FeedFetcher(session=session, scraper=scraper, **kwargs)


class TestRequestUrl:
    """Tests for proxied request URLs."""

    def test_url_percent_encoded_after_proxy(self, make_session):
        fetcher = make_fetcher(make_session())
        assert fetcher.build_request_url("https://feeds.example.com/rss?x=1&y=2") == (
            "https://proxy.test/raw?url=https%3A%2F%2Ffeeds.example.com%2Frss%3Fx%3D1%26y%3D2"
        )

    def test_empty_proxy_fetches_directly(self, make_session):
        fetcher = make_fetcher(make_session(), proxy_url="")
        assert fetcher.build_request_url(FEED_URL) == FEED_URL


@pytest.mark.asyncio
class TestFetchOne:
    """Tests for FeedFetcher.fetch_one."""

    async def test_parses_and_enriches(self, make_session, source, sample_rss, mock_scraper):
        """Every article with an absolute link is scraped and merged."""
        session = make_session({PROXIED_FEED_URL: sample_rss})
        fetcher = make_fetcher(session, mock_scraper)

        articles = await fetcher.fetch_one(source)

        assert len(articles) == 3
        assert mock_scraper.scrape.await_count == 3
        assert all(a.full_text == "Full article text" for a in articles)
        assert all(a.scraped_image_url == "https://example.com/scraped.jpg" for a in articles)
        # Feed-level fields are untouched by enrichment
        assert articles[0].image_url == "https://cdn.example.com/1.jpg"

    async def test_feed_request_headers(self, make_session, source, sample_rss, mock_scraper):
        session = make_session({PROXIED_FEED_URL: sample_rss})

        await make_fetcher(session, mock_scraper, timeout_seconds=5).fetch_one(source)

        url, kwargs = session.calls[0]
        assert url == PROXIED_FEED_URL
        assert kwargs["headers"]["Accept"] == FEED_ACCEPT
        assert kwargs["timeout"].total == 5

    async def test_http_error(self, make_session, source):
        session = make_session({PROXIED_FEED_URL: (500, "oops")})

        with pytest.raises(FeedHTTPError) as exc_info:
            await make_fetcher(session).fetch_one(source)

        assert exc_info.value.status == 500
        assert "Status 500" in str(exc_info.value)
        assert "Example" in str(exc_info.value)

    async def test_empty_body(self, make_session, source):
        session = make_session({PROXIED_FEED_URL: "   \n "})

        with pytest.raises(EmptyFeedError, match="Empty response from Example"):
            await make_fetcher(session).fetch_one(source)

    async def test_network_error_relabelled(self, make_session, source):
        """Transport failures name the source, its URL and the proxy."""
        session = make_session({PROXIED_FEED_URL: aiohttp.ClientConnectionError("connection refused")})

        with pytest.raises(FeedNetworkError) as exc_info:
            await make_fetcher(session).fetch_one(source)

        message = str(exc_info.value)
        assert "Example" in message
        assert FEED_URL in message
        assert "proxy.test" in message

    async def test_network_error_without_proxy(self, make_session, source):
        """Direct fetches do not blame a proxy."""
        session = make_session({FEED_URL: aiohttp.ClientConnectionError("connection refused")})

        with pytest.raises(FeedNetworkError) as exc_info:
            await make_fetcher(session, proxy_url="").fetch_one(source)

        message = str(exc_info.value)
        assert "The feed server may be down or blocking requests." in message
        assert "proxy" not in message
        assert FEED_URL in message

    async def test_network_error_retried(self, make_session, source):
        session = make_session({PROXIED_FEED_URL: asyncio.TimeoutError()})

        with pytest.raises(FeedNetworkError):
            await make_fetcher(session, max_attempts=3).fetch_one(source)

        assert session.urls_requested().count(PROXIED_FEED_URL) == 3

    async def test_http_error_not_retried(self, make_session, source):
        session = make_session({PROXIED_FEED_URL: (503, "busy")})

        with pytest.raises(FeedHTTPError):
            await make_fetcher(session, max_attempts=3).fetch_one(source)

        assert session.urls_requested().count(PROXIED_FEED_URL) == 1

    async def test_relative_link_kept_but_not_scraped(self, make_session, source, mock_scraper):
        xml = """<rss version="2.0"><channel><title>T</title>
<item><title>Relative</title><link>/news/relative</link></item>
<item><title>Absolute</title><link>https://example.com/news/abs</link></item>
</channel></rss>"""
        session = make_session({PROXIED_FEED_URL: xml})

        articles = await make_fetcher(session, mock_scraper).fetch_one(source)

        assert [a.title for a in articles] == ["Relative", "Absolute"]
        assert articles[0].full_text is None
        assert articles[1].full_text == "Full article text"
        mock_scraper.scrape.assert_awaited_once_with("https://example.com/news/abs")

    async def test_one_bad_scrape_keeps_the_batch(self, make_session, source, sample_rss, mock_scraper):
        """An exception from one article's scrape does not drop the others."""
        mock_scraper.scrape.side_effect = [
            RuntimeError("parser exploded"),
            ScrapedData("Second text", None),
            ScrapedData.empty(),
        ]
        session = make_session({PROXIED_FEED_URL: sample_rss})

        articles = await make_fetcher(session, mock_scraper).fetch_one(source)

        assert len(articles) == 3
        assert articles[0].full_text is None
        assert articles[1].full_text == "Second text"
        assert articles[2].full_text is None

    async def test_scraping_disabled(self, make_session, source, sample_rss, mock_scraper):
        session = make_session({PROXIED_FEED_URL: sample_rss})

        articles = await make_fetcher(session, mock_scraper, scrape_articles=False).fetch_one(source)

        assert len(articles) == 3
        mock_scraper.scrape.assert_not_awaited()

    async def test_cancelled_before_scraping(self, make_session, source, sample_rss, mock_scraper):
        """A set cancel event stops scraping but keeps the parsed articles."""
        session = make_session({PROXIED_FEED_URL: sample_rss})
        cancel_event = asyncio.Event()
        cancel_event.set()

        articles = await make_fetcher(session, mock_scraper).fetch_one(source, cancel_event=cancel_event)

        assert len(articles) == 3
        assert all(a.full_text is None for a in articles)
        mock_scraper.scrape.assert_not_awaited()

    async def test_real_scraper_uses_same_session(self, make_session, source, make_article_page):
        """The default scraper shares the fetcher's session."""
        xml = """<rss version="2.0"><channel><title>T</title>
<item><title>Story</title><link>https://example.com/story</link></item>
</channel></rss>"""
        paragraph = "Reporting from the field. " * 10
        session = make_session({
            PROXIED_FEED_URL: xml,
            "https://example.com/story": make_article_page(paragraph, "/lead.jpg"),
        })

        articles = await make_fetcher(session).fetch_one(source)

        assert articles[0].full_text == paragraph.strip()
        assert articles[0].scraped_image_url == "https://example.com/lead.jpg"
