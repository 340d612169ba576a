"""Data ingestion - fetching, parsing and merging RSS/Atom feeds."""

from .interfaces import (
    RssSource, RawArticle, SourceResult, FetcherInterface,
    IngestionError, FeedFetchError, FeedHTTPError, EmptyFeedError, FeedNetworkError,
    IngestionCancelled,
)
from .feed_parser import FeedParser, parse_feed
from .fetcher import FeedFetcher
from .orchestrator import IngestionOrchestrator, IngestionState, ingest, sort_by_date

__all__ = [
    "RssSource", "RawArticle", "SourceResult", "FetcherInterface",
    "IngestionError", "FeedFetchError", "FeedHTTPError", "EmptyFeedError", "FeedNetworkError",
    "IngestionCancelled", "FeedParser", "parse_feed", "FeedFetcher",
    "IngestionOrchestrator", "IngestionState", "ingest", "sort_by_date",
]
