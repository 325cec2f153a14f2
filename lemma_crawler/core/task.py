"""
A single unit of crawl work: fetch one page, hand its text to the
analyzer, and fan out child tasks for its outgoing links.
"""

from typing import TYPE_CHECKING, Iterable

from lemma_crawler.extraction.fetcher import FetchError
from lemma_crawler.utils.log import log
from lemma_crawler.utils.url import normalise_url

if TYPE_CHECKING:
    from lemma_crawler.analysis.text import PageAnalyzer
    from lemma_crawler.core.scheduler import RunHandle
    from lemma_crawler.extraction.fetcher import PageFetcher


class CrawlTask:
    """
    Fetch-and-process task for one address.

    *remaining_depth* is the number of further hops allowed below this
    page.  A task at depth 0 processes its page but submits no children;
    a task below 0 does nothing at all.
    """

    __slots__ = ("remaining_depth", "_address", "handle", "fetcher", "analyzer")

    def __init__(
        self,
        remaining_depth: int,
        address: str,
        handle: "RunHandle",
        fetcher: "PageFetcher",
        analyzer: "PageAnalyzer",
    ) -> None:
        self.remaining_depth = remaining_depth
        self._address = address
        self.handle = handle
        self.fetcher = fetcher
        self.analyzer = analyzer

    @property
    def address(self) -> str:
        return self._address

    def __repr__(self) -> str:
        return f"CrawlTask(depth={self.remaining_depth}, address={self._address!r})"

    def child(self, address: str) -> "CrawlTask":
        """Return a task one hop deeper that shares this task's run."""
        return CrawlTask(
            self.remaining_depth - 1,
            address,
            self.handle,
            self.fetcher,
            self.analyzer,
        )

    def execute(self) -> None:
        """Retrieve the page, process its text and submit its links while
        depth remains.  Acquisition failures end the task quietly."""
        if self.remaining_depth < 0:
            return

        try:
            page = self.fetcher.fetch(self._address)
        except FetchError as exc:
            if not self.handle.active:
                log.debug("[SKIP] Run ended during fetch of %s – %s", self._address, exc)
                return
            log.warning("[ERR] Could not retrieve page %s – %s", self._address, exc)
            return

        if not self.handle.active:
            log.debug("[SKIP] Run ended during fetch, dropping %s", self._address)
            return

        log.info("[PAGE] %s, %s", page.title, self._address)
        try:
            self.analyzer.process(page.text, self._address)
        except Exception:
            log.exception("[ERR] Text analysis failed for %s", self._address)

        # do not follow links once the depth budget is used up
        if self.remaining_depth == 0:
            return
        self.submit_links(page.links)

    def submit_links(self, links: Iterable[str]) -> int:
        """Normalise *links* and submit one child per distinct address.

        Links that do not resolve to an absolute http(s) URL are skipped
        individually.  Returns the number of children the scheduler
        admitted.
        """
        seen: set[str] = set()
        admitted = 0
        for link in links:
            address = normalise_url(link, self._address)
            if address is None:
                log.debug("[SKIP] Unusable link on %s: %r", self._address, link)
                continue
            if address in seen:
                continue
            seen.add(address)
            if self.handle.submit(self.child(address)):
                admitted += 1

        log.debug("[QUEUE] %d of %d link(s) admitted from %s",
                  admitted, len(seen), self._address)
        return admitted
