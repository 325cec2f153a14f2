"""Text analysis – lemma frequency tables and their storage."""

from lemma_crawler.analysis.text import PageAnalyzer
from lemma_crawler.analysis.storage import save_frequencies

__all__ = ["PageAnalyzer", "save_frequencies"]
