"""Feed source configuration loader."""

import json
from pathlib import Path
from typing import List, Union

import structlog

from ..ingestion.interfaces import RssSource
from .settings import settings

logger = structlog.get_logger()


DEFAULT_SOURCES: List[RssSource] = [
    RssSource(name="Le Monde (FR)", url="https://www.lemonde.fr/rss/une.xml"),
    RssSource(name="NYT Asia (EN)", url="https://rss.nytimes.com/services/xml/rss/nyt/AsiaPacific.xml"),
    RssSource(name="Reuters World (EN)", url="https://www.reutersagency.com/feed/?best-regions=world&post_type=best"),
    RssSource(name="BBC World (EN)", url="http://feeds.bbci.co.uk/news/world/rss.xml"),
    RssSource(name="El País (ES)", url="https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/portada"),
    RssSource(name="Spiegel (DE)", url="https://www.spiegel.de/schlagzeilen/index.rss"),
]


def load_sources(config_path: Union[str, Path] = None) -> List[RssSource]:
    """Load feed sources from a JSON file.

    The file holds either a list of ``{"name", "url"}`` records or an object
    with a ``"sources"`` key containing that list. Records with
    ``"enabled": false`` are skipped. Without a path (argument or
    ``NEWSMAP_SOURCES_PATH``) the built-in defaults are returned.
    """
    if config_path is None:
        config_path = settings.sources_path
    if config_path is None:
        return list(DEFAULT_SOURCES)

    with open(config_path, encoding="utf-8") as f:
        data = json.load(f)

    records = data.get("sources", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ValueError(f"Sources in {config_path} must be a list")

    sources = []
    for position, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(f"Source #{position} in {config_path} is not an object")
        name = str(record.get("name") or "").strip()
        url = str(record.get("url") or "").strip()
        if not name or not url:
            raise ValueError(f"Source #{position} in {config_path} needs both a name and a url")
        if not record.get("enabled", True):
            continue
        sources.append(RssSource(name=name, url=url))

    logger.info("sources_loaded", path=str(config_path), count=len(sources))
    return sources
