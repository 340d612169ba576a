"""Interface definitions for feed ingestion."""

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional


@dataclass
class RssSource:
    """Configuration for a single feed."""
    name: str
    url: str


@dataclass
class RawArticle:
    """An article parsed from a feed, optionally enriched by scraping."""
    id: str = ""
    title: str = ""
    link: str = ""
    pub_date: Optional[str] = None  # DD/MM/YYYY
    description: str = ""
    source: str = ""
    image_url: Optional[str] = None
    full_text: Optional[str] = None
    scraped_image_url: Optional[str] = None

    def with_scraped(self, scraped) -> "RawArticle":
        """Return a copy carrying the scraped text and image."""
        return replace(
            self,
            full_text=scraped.text_content,
            scraped_image_url=scraped.main_image_url,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "pub_date": self.pub_date,
            "description": self.description,
            "source": self.source,
            "image_url": self.image_url,
            "full_text": self.full_text,
            "scraped_image_url": self.scraped_image_url,
        }


@dataclass
class SourceResult:
    """Outcome of processing one source during an ingestion run."""
    source_name: str
    articles: List[RawArticle] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# on_source_processed(source_name, articles, error=None)
SourceCallback = Callable[..., None]


class IngestionError(Exception):
    """Base ingestion error."""


class FeedFetchError(IngestionError):
    """A feed could not be retrieved at all."""


class FeedHTTPError(FeedFetchError):
    """The feed endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class EmptyFeedError(FeedFetchError):
    """The feed endpoint answered successfully with an empty body."""


class FeedNetworkError(FeedFetchError):
    """Connection, DNS or timeout failure while fetching a feed."""


class IngestionCancelled(IngestionError):
    """The run was cancelled; ``articles`` holds what was accumulated."""

    def __init__(self, articles: Optional[List[RawArticle]] = None):
        super().__init__("Ingestion cancelled")
        self.articles = articles or []


class FetcherInterface:
    """Interface for feed fetching."""

    async def fetch_one(self, source: RssSource, cancel_event=None) -> List[RawArticle]:
        """Fetch, parse and enrich the articles of a single feed."""
        raise NotImplementedError

