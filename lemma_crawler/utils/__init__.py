"""Utility helpers for URL normalisation and logging."""

from lemma_crawler.utils.url import normalise_url
from lemma_crawler.utils.log import setup_logging, log

__all__ = [
    "normalise_url",
    "setup_logging",
    "log",
]
