"""
Page acquisition: download an address and parse it into a :class:`Page`.

Responses are streamed: the ``Content-Type`` header is checked before
any of the body is read, and HTML bodies are cut off at
``MAX_PAGE_BYTES``.
"""

import requests

from lemma_crawler.config import (
    HTML_CONTENT_TYPES, MAX_PAGE_BYTES, READ_CHUNK_SIZE, REQUEST_TIMEOUT,
)
from lemma_crawler.extraction.html_parser import Page, parse_page
from lemma_crawler.session import build_session
from lemma_crawler.utils.log import log

__all__ = ["FetchError", "Page", "PageFetcher"]


class FetchError(Exception):
    """Raised when a page cannot be retrieved or is not HTML."""


class PageFetcher:
    """Fetch HTML pages over a shared ``requests.Session``.

    ``requests.Session`` is shared by all worker threads; its connection
    pool is sized in :func:`build_session`.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
        max_bytes: int = MAX_PAGE_BYTES,
    ) -> None:
        self.session = session if session is not None else build_session()
        self.timeout = timeout
        self.max_bytes = max_bytes

    def fetch(self, address: str) -> Page:
        try:
            resp = self.session.get(
                address, timeout=self.timeout, allow_redirects=True, stream=True
            )
        except requests.RequestException as exc:
            raise FetchError(str(exc)) from exc

        try:
            resp.raise_for_status()
            content_type = resp.headers.get("Content-Type", "")
            mime = content_type.split(";")[0].strip().lower()
            if mime not in HTML_CONTENT_TYPES:
                raise FetchError(f"unhandled content type {content_type!r}")
            body = self._read_body(resp, address)
        except requests.RequestException as exc:
            raise FetchError(str(exc)) from exc
        finally:
            resp.close()

        if resp.url != address:
            log.debug("  Redirect: %s → %s", address, resp.url)
        # Without a declared charset the parser sniffs the bytes itself
        encoding = resp.encoding if "charset=" in content_type.lower() else None
        return parse_page(body, resp.url, encoding=encoding)

    def _read_body(self, resp: requests.Response, address: str) -> bytes:
        body = bytearray()
        for chunk in resp.iter_content(chunk_size=READ_CHUNK_SIZE):
            body += chunk
            if len(body) >= self.max_bytes:
                log.debug("[SKIP] Body of %s truncated at %d bytes",
                          address, self.max_bytes)
                del body[self.max_bytes:]
                break
        return bytes(body)

    def close(self) -> None:
        self.session.close()
