"""Pytest configuration and shared fixtures."""

import pytest

# Add project root to path
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeResponse:
    """Stands in for aiohttp.ClientResponse."""

    def __init__(self, status: int = 200, body: str = "", reason: str = "OK"):
        self.status = status
        self.reason = reason
        self._body = body

    async def text(self, encoding=None, errors="strict"):
        return self._body

    async def read(self):
        return self._body.encode("utf-8")


class _FakeRequest:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *args):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession.

    Routes map a URL to a body string (status 200), a ``(status, body)``
    tuple, or an exception raised when the request is entered. Unknown URLs
    answer 404.
    """

    def __init__(self, routes: dict = None):
        self.routes = routes or {}
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.routes.get(url, (404, "Not Found"))
        if isinstance(outcome, str):
            outcome = FakeResponse(200, outcome)
        elif isinstance(outcome, tuple):
            status, body = outcome
            outcome = FakeResponse(status, body, reason="Not Found" if status == 404 else "Error")
        return _FakeRequest(outcome)

    def urls_requested(self):
        return [url for url, _ in self.calls]

    async def close(self):
        self.closed = True


@pytest.fixture
def make_session():
    """Factory for fake HTTP sessions."""
    return FakeSession


@pytest.fixture
def sample_rss():
    """RSS 2.0 feed with media, description image and enclosure variants."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Example News</title>
    <link>https://example.com</link>
    <description>Example feed</description>
    <item>
      <title>  First story  </title>
      <link>https://example.com/news/1</link>
      <pubDate>Tue, 05 Mar 2024 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;</description>
      <media:content url="https://cdn.example.com/1.jpg" medium="image" />
    </item>
    <item>
      <title>Second story</title>
      <link>https://example.com/news/2</link>
      <dc:date>2024-03-06T08:30:00Z</dc:date>
      <description>&lt;img src="/img/2.png"&gt; Text with picture</description>
    </item>
    <item>
      <link>https://example.com/news/3</link>
      <description>Untitled item</description>
      <enclosure url="https://cdn.example.com/3.jpg" type="image/jpeg" length="1000" />
    </item>
  </channel>
</rss>"""


@pytest.fixture
def sample_atom():
    """Atom feed with an alternate link, an image enclosure and a linkless entry."""
    return """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <id>urn:example:feed</id>
  <updated>2024-01-02T00:00:00Z</updated>
  <entry>
    <title>Atom entry</title>
    <id>urn:example:1</id>
    <link rel="alternate" href="https://example.org/a/1" />
    <link rel="enclosure" type="image/png" href="https://example.org/a/1.png" />
    <updated>2024-01-02T00:00:00Z</updated>
    <summary>Atom summary</summary>
  </entry>
  <entry>
    <title>No link entry</title>
    <id>urn:example:2</id>
    <published>2023-12-31T12:00:00Z</published>
    <content type="html">&lt;p&gt;Body&lt;/p&gt;</content>
  </entry>
</feed>"""


def article_page(paragraph: str, image: str = None) -> str:
    """A minimal article page with an og:image and one long paragraph."""
    meta = f'<meta property="og:image" content="{image}" />' if image else ""
    return f"""<html><head><title>Page</title>{meta}</head>
<body><nav>Menu</nav><article class="article-content"><p>{paragraph}</p></article>
<footer>Footer</footer></body></html>"""


@pytest.fixture
def make_article_page():
    return article_page
