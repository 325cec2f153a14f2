"""Page acquisition – HTTP fetch and HTML parsing."""

from lemma_crawler.extraction.fetcher import FetchError, PageFetcher
from lemma_crawler.extraction.html_parser import Page, parse_page

__all__ = ["FetchError", "PageFetcher", "Page", "parse_page"]
