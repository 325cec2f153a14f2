"""
URL normalisation helpers.
"""

import urllib.parse

from lemma_crawler.config import CRAWLABLE_SCHEMES


def normalise_url(raw: str, page_url: str | None = None) -> str | None:
    """
    Convert *raw* to the canonical form used as a crawl-task address.

    Relative references are resolved against *page_url* when given.  The
    result keeps scheme, authority, path and query and drops the fragment,
    so ``/a#x`` and ``/a#y`` name the same page.

    Returns ``None`` for anything that does not resolve to an absolute
    ``http``/``https`` URL with a host (``mailto:``, ``javascript:``,
    malformed authorities, out-of-range ports, …).
    """
    raw = raw.strip()
    if not raw:
        return None

    try:
        if page_url:
            raw = urllib.parse.urljoin(page_url, raw)
        parts = urllib.parse.urlsplit(raw)
        # Accessing .port validates it (raises ValueError when out of range)
        parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in CRAWLABLE_SCHEMES or not parts.hostname:
        return None
    if any(ch.isspace() for ch in parts.netloc):
        return None

    return urllib.parse.urlunsplit(
        (scheme, parts.netloc, parts.path, parts.query, "")
    )
