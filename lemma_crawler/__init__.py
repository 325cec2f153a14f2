"""
lemma_crawler
=============
Time- and depth-bounded concurrent web crawler that writes a lemma
frequency table for every page it visits.

Package structure
-----------------
lemma_crawler/
├── __init__.py       – package init and public API
├── config.py         – configuration constants
├── session.py        – requests.Session factory
├── cli.py            – argparse CLI (``python -m lemma_crawler``)
├── core/             – crawl scheduling
│   ├── scheduler.py  – Scheduler and per-run RunHandle
│   ├── task.py       – CrawlTask (fetch, analyse, fan out)
│   └── sync.py       – VisitedSet, AtomicCounter, AtomicFlag
├── extraction/       – page acquisition
│   ├── fetcher.py    – PageFetcher, FetchError
│   └── html_parser.py – Page and BeautifulSoup parsing
├── analysis/         – text processing
│   ├── text.py       – PageAnalyzer (nltk lemmatization, stopwords, counts)
│   └── storage.py    – per-page CSV output
└── utils/            – URL normalisation and logging

Quick start
-----------
    from pathlib import Path
    from lemma_crawler import PageAnalyzer, PageFetcher, Scheduler

    scheduler = Scheduler(
        PageFetcher(),
        PageAnalyzer(Path("output")),
        max_depth=2,
        max_time=30.0,
    )
    scheduler.start("https://en.wikipedia.org/wiki/Web_crawler")
    scheduler.wait()
"""

from .core import CrawlTask, RunHandle, Scheduler
from .extraction import FetchError, Page, PageFetcher
from .analysis import PageAnalyzer

__version__ = "1.0.0"

__all__ = [
    "CrawlTask",
    "RunHandle",
    "Scheduler",
    "FetchError",
    "Page",
    "PageFetcher",
    "PageAnalyzer",
]
