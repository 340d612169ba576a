"""Multi-source ingestion: fan out over feeds, dedupe, report, sort."""

import asyncio
import re
import time
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional, Set

import aiohttp
import structlog
from dateutil import parser as date_parser

from .fetcher import FeedFetcher
from .interfaces import (
    FeedFetchError, FetcherInterface, IngestionCancelled, RawArticle, RssSource,
    SourceCallback, SourceResult,
)
from ..config.settings import settings

logger = structlog.get_logger()

_DMY_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def published_timestamp(pub_date: Optional[str]) -> float:
    """Sort key for a display date; unparsable or missing dates give 0."""
    if not pub_date:
        return 0.0

    match = _DMY_RE.match(pub_date)
    try:
        if match:
            day, month, year = (int(part) for part in match.groups())
            parsed = datetime(year, month, day, tzinfo=timezone.utc)
        else:
            parsed = date_parser.parse(pub_date)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    except (ValueError, OverflowError):
        return 0.0


def sort_by_date(articles: List[RawArticle]) -> List[RawArticle]:
    """Newest first. Stable, so equal dates keep their merge order."""
    return sorted(articles, key=lambda a: published_timestamp(a.pub_date), reverse=True)


class IngestionState:
    """Accumulated results of one ingestion run.

    Owned by a single run; first-seen article wins on duplicate ids.
    """

    def __init__(self):
        self.articles: List[RawArticle] = []
        self.seen_ids: Set[str] = set()

    def absorb(self, source_name: str, articles: List[RawArticle]) -> List[RawArticle]:
        """Add a source's articles, returning the ones not seen before."""
        new_articles = []
        for article in articles:
            if not article.id:
                logger.warning("article_missing_id", source=source_name, title=article.title[:80])
                continue
            if article.id in self.seen_ids:
                continue
            self.seen_ids.add(article.id)
            new_articles.append(article)
        self.articles.extend(new_articles)
        return new_articles

    def sorted_articles(self) -> List[RawArticle]:
        return sort_by_date(self.articles)


class IngestionOrchestrator:
    """Runs a full ingestion over a list of feed sources.

    Sources are reported, merged and deduplicated strictly in list order.
    With ``max_concurrent_sources`` above 1, fetches overlap but the merge
    order is unchanged.
    """

    def __init__(self, fetcher: FetcherInterface = None, max_concurrent_sources: int = None):
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or FeedFetcher()
        self.max_concurrent_sources = max_concurrent_sources or settings.max_concurrent_sources

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        """Close the fetcher if this orchestrator created it."""
        if self._owns_fetcher:
            await self.fetcher.close()

    async def ingest(
        self,
        sources: List[RssSource],
        on_source_processed: SourceCallback = None,
        cancel_event: asyncio.Event = None,
    ) -> List[RawArticle]:
        """Fetch every source and return the merged, deduplicated, sorted list.

        ``on_source_processed(source_name, articles, error=None)`` is called
        once per source, in source order. Raises ``IngestionCancelled`` when
        ``cancel_event`` is set; its ``articles`` holds the partial result.
        """
        start_time = time.time()
        state = IngestionState()
        failed = 0

        try:
            async for result in self._process(sources, state, cancel_event):
                if not result.ok:
                    failed += 1
                self._notify(on_source_processed, result)
        except IngestionCancelled:
            logger.warning("ingestion_cancelled", articles=len(state.articles))
            raise IngestionCancelled(state.sorted_articles()) from None
        finally:
            await self.close()

        articles = state.sorted_articles()
        logger.info(
            "ingestion_complete",
            sources=len(sources),
            failed_sources=failed,
            articles=len(articles),
            elapsed_seconds=round(time.time() - start_time, 2),
        )
        return articles

    async def stream(
        self, sources: List[RssSource], cancel_event: asyncio.Event = None
    ) -> AsyncIterator[SourceResult]:
        """Yield one ``SourceResult`` per source, in source order.

        Fetches for later sources may already be running. A consumer that
        stops iterating early should close the generator (for example with
        ``contextlib.aclosing``) so those fetches are cancelled at once
        rather than when the generator is garbage-collected.
        """
        state = IngestionState()
        try:
            async for result in self._process(sources, state, cancel_event):
                yield result
        except IngestionCancelled:
            raise IngestionCancelled(state.sorted_articles()) from None
        finally:
            await self.close()

    async def _process(
        self, sources: List[RssSource], state: IngestionState, cancel_event: Optional[asyncio.Event]
    ) -> AsyncIterator[SourceResult]:
        semaphore = asyncio.Semaphore(self.max_concurrent_sources)
        tasks = [
            asyncio.ensure_future(self._fetch_source(source, semaphore, cancel_event))
            for source in sources
        ]
        try:
            for source, task in zip(sources, tasks):
                if _is_cancelled(cancel_event):
                    raise IngestionCancelled()
                try:
                    articles = await task
                except FeedFetchError as e:
                    yield SourceResult(source.name, [], str(e))
                    continue
                except Exception as e:
                    logger.exception("source_processing_failed", source=source.name, url=source.url)
                    yield SourceResult(source.name, [], f"Unexpected error for {source.name}: {e}. URL: {source.url}")
                    continue

                if articles is None:
                    # Cancelled before this source started
                    raise IngestionCancelled()
                yield SourceResult(source.name, state.absorb(source.name, articles))
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            # Sources never reached after a cancel may have failed on their own
            for task in tasks:
                if not task.cancelled():
                    task.exception()

    async def _fetch_source(
        self, source: RssSource, semaphore: asyncio.Semaphore, cancel_event: Optional[asyncio.Event]
    ) -> Optional[List[RawArticle]]:
        async with semaphore:
            if _is_cancelled(cancel_event):
                return None
            return await self.fetcher.fetch_one(source, cancel_event=cancel_event)

    def _notify(self, callback: Optional[SourceCallback], result: SourceResult) -> None:
        if callback is None:
            return
        try:
            if result.ok:
                callback(result.source_name, result.articles)
            else:
                callback(result.source_name, [], result.error)
        except Exception:
            logger.exception("source_callback_failed", source=result.source_name)


def _is_cancelled(cancel_event: Optional[asyncio.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


async def ingest(
    sources: List[RssSource],
    on_source_processed: SourceCallback = None,
    cancel_event: asyncio.Event = None,
) -> List[RawArticle]:
    """Run one ingestion with a shared HTTP session."""
    async with aiohttp.ClientSession() as session:
        orchestrator = IngestionOrchestrator(fetcher=FeedFetcher(session=session))
        return await orchestrator.ingest(sources, on_source_processed, cancel_event)
