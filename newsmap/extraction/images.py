"""Representative image discovery for scraped article pages."""

import json
from typing import Iterator, Optional

import structlog
from bs4 import BeautifulSoup

from .urls import resolve_url

logger = structlog.get_logger()


class ImageResolver:
    """Finds one representative image URL in an article page.

    Tiers are tried in order and the first candidate that resolves to an
    absolute http(s) URL wins:

    1. Open Graph ``og:image`` (``property`` or ``name`` attribute)
    2. Twitter Card ``twitter:image``
    3. Schema.org JSON-LD ``image`` (string, ImageObject, array, ``@graph``)
    """

    OG_IMAGE = "og:image"
    TWITTER_IMAGE = "twitter:image"

    def extract_image(self, document: BeautifulSoup, base_url: str) -> Optional[str]:
        """Return the best image URL for ``document``, or None."""
        for tier, candidates in (
            ("open_graph", self._meta_candidates(document, self.OG_IMAGE)),
            ("twitter", self._meta_candidates(document, self.TWITTER_IMAGE)),
            ("json_ld", self._json_ld_candidates(document)),
        ):
            for candidate in candidates:
                resolved = resolve_url(candidate, base_url)
                if resolved:
                    return resolved
                logger.debug("image_candidate_rejected", tier=tier, candidate=str(candidate)[:200], base_url=base_url)
        return None

    def _meta_candidates(self, document: BeautifulSoup, key: str) -> Iterator[str]:
        for attr in ("property", "name"):
            tag = document.find("meta", attrs={attr: key})
            if tag and tag.get("content"):
                yield tag["content"]

    def _json_ld_candidates(self, document: BeautifulSoup) -> Iterator[str]:
        for script in document.find_all("script", attrs={"type": "application/ld+json"}):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except ValueError as e:
                logger.debug("json_ld_invalid", error=str(e))
                continue

            nodes = data if isinstance(data, list) else [data]
            for node in nodes:
                if not isinstance(node, dict):
                    continue
                yield from _image_values(node.get("image"))
                graph = node.get("@graph")
                if isinstance(graph, list):
                    for item in graph:
                        if isinstance(item, dict):
                            yield from _image_values(item.get("image"))


def _image_values(image) -> Iterator[str]:
    """Yield URL strings from a schema.org ``image`` value, in order."""
    if isinstance(image, str):
        yield image
    elif isinstance(image, dict):
        url = image.get("url")
        if isinstance(url, str):
            yield url
    elif isinstance(image, list):
        for entry in image:
            if isinstance(entry, (str, dict)):
                yield from _image_values(entry)
