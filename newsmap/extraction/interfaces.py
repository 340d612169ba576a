"""Interface definitions for article page extraction."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ScrapedData:
    """What could be recovered from an article's origin page.

    ``None`` means the value could not be determined, not that an error
    escaped the scraper.
    """
    text_content: Optional[str] = None
    main_image_url: Optional[str] = None

    @classmethod
    def empty(cls) -> "ScrapedData":
        return cls(text_content=None, main_image_url=None)


class ScraperInterface:
    """Interface for article page scraping."""

    async def scrape(self, url: str) -> ScrapedData:
        """Scrape one article page. Must not raise."""
        raise NotImplementedError
