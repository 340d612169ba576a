"""URL resolution helpers shared by feed parsing and page scraping."""

from typing import Optional
from urllib.parse import urljoin, urlsplit

_WEB_SCHEMES = ("http", "https")


def resolve_url(candidate, base_url: str) -> Optional[str]:
    """Resolve ``candidate`` against ``base_url``.

    Returns the absolute http(s) URL, or None when the candidate is empty,
    not a string, or cannot be turned into a usable URL (bad port, broken
    IPv6 literal, non-web scheme).
    """
    if not isinstance(candidate, str):
        return None
    candidate = candidate.strip()
    if not candidate:
        return None

    try:
        resolved = urljoin(base_url, candidate)
        parts = urlsplit(resolved)
        parts.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError:
        return None

    if parts.scheme not in _WEB_SCHEMES or not parts.hostname:
        return None
    return resolved


def is_absolute_http_url(url: Optional[str]) -> bool:
    """True when ``url`` is already an absolute http(s) URL."""
    if not url:
        return False
    try:
        parts = urlsplit(url.strip())
        parts.port
    except ValueError:
        return False
    return parts.scheme in _WEB_SCHEMES and bool(parts.hostname)
