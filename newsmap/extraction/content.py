"""Main-text extraction from article pages."""

import copy
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..config.settings import settings

# Content containers, most specific first
CONTENT_SELECTORS = [
    'article[class*="content"]', 'article[class*="body"]', 'article[id*="content"]', 'article[id*="body"]',
    'div[class*="article-content"]', 'div[class*="article-body"]', 'div[id*="article-content"]', 'div[id*="article-body"]',
    'div[class*="post-content"]', 'div[class*="post-body"]', 'div[id*="post-content"]', 'div[id*="post-body"]',
    'main[role="main"]', 'article', 'main',
    'div[class*="content"]', 'div[id*="content"]', 'div[class*="main"]', 'div[id*="main"]',
]

# Boilerplate removed before and after picking a container
SECTIONS_TO_REMOVE = [
    'nav', 'footer', 'aside', 'header',
    '[role="navigation"]', '[role="complementary"]', '[role="banner"]', '[role="contentinfo"]',
    '[class*="sidebar"]', '[id*="sidebar"]',
    '[class*="comments"]', '[id*="comments"]',
    '[class*="related-posts"]', '[id*="related-posts"]',
    '[class*="advertisement"]', '[id*="advertisement"]', '[class*="ads"]', '[id*="ads"]',
    'script', 'style', 'noscript', 'iframe', 'form', 'button', 'input', '[aria-hidden="true"]',
]

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_sections(root: Tag) -> None:
    """Remove boilerplate sections below ``root`` in place."""
    for element in root.select(", ".join(SECTIONS_TO_REMOVE)):
        element.extract()


class ContentExtractor:
    """Pulls the readable body text out of an article page."""

    def __init__(self, min_length: int = None):
        self.min_length = settings.content_min_length if min_length is None else min_length

    def extract_text(self, document: BeautifulSoup) -> Optional[str]:
        """Return the page's main text, or None if nothing is left.

        The first container whose cleaned text is longer than ``min_length``
        wins. Otherwise the whole body is used, however short.
        """
        document = copy.copy(document)
        strip_sections(document)

        for selector in CONTENT_SELECTORS:
            element = document.select_one(selector)
            if element is None:
                continue
            container = copy.copy(element)
            strip_sections(container)
            text = normalize_whitespace(container.get_text())
            if len(text) > self.min_length:
                return text

        body = document.body or document
        text = normalize_whitespace(body.get_text())
        return text or None
