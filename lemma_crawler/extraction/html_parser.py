"""
HTML page parsing via BeautifulSoup.
"""

import urllib.parse
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

_BS4_PARSER = "lxml"


@dataclass
class Page:
    """A fetched HTML page reduced to what the crawler needs."""

    url: str
    title: str = ""
    text: str = ""
    links: list[str] = field(default_factory=list)


def _resolve(base: str, href: str) -> str | None:
    try:
        return urllib.parse.urljoin(base, href)
    except ValueError:
        return None


def parse_page(
    html: str | bytes,
    page_url: str,
    encoding: str | None = None,
) -> Page:
    """
    Parse *html* served from *page_url*.

    Raw bytes are decoded with *encoding* when the server declared one,
    otherwise from the document's own meta charset or by sniffing.

    Collects the ``<title>``, the visible text of ``<body>`` and the
    target of every ``<a href>``, resolved to an absolute URL against
    ``<base href>`` if the page declares one.  Links that are empty or
    cannot be resolved are left out; fragments are kept, stripping them
    is the caller's job.
    """
    if isinstance(html, bytes):
        soup = BeautifulSoup(html, _BS4_PARSER, from_encoding=encoding)
    else:
        soup = BeautifulSoup(html, _BS4_PARSER)

    title = soup.title.get_text(strip=True) if soup.title else ""
    root = soup.body if soup.body is not None else soup
    text = root.get_text(" ", strip=True)

    base = page_url
    base_el = soup.find("base", href=True)
    if base_el is not None:
        base = _resolve(page_url, base_el["href"].strip()) or page_url

    links: list[str] = []
    for a in soup.select("a[href]"):
        href = a["href"].strip()
        if not href:
            continue
        absolute = _resolve(base, href)
        if absolute:
            links.append(absolute)

    return Page(url=page_url, title=title, text=text, links=links)
