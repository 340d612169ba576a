"""Article page scraping - main text and representative image."""

from .interfaces import ScrapedData, ScraperInterface
from .urls import resolve_url, is_absolute_http_url
from .images import ImageResolver
from .content import ContentExtractor
from .scraper import ArticleScraper

__all__ = [
    "ScrapedData", "ScraperInterface", "resolve_url", "is_absolute_http_url",
    "ImageResolver", "ContentExtractor", "ArticleScraper",
]
