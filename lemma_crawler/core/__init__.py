"""Core crawl logic – scheduler, tasks and their synchronisation primitives."""

from lemma_crawler.core.scheduler import RunHandle, Scheduler
from lemma_crawler.core.task import CrawlTask
from lemma_crawler.core.sync import AtomicCounter, AtomicFlag, VisitedSet

__all__ = [
    "RunHandle",
    "Scheduler",
    "CrawlTask",
    "AtomicCounter",
    "AtomicFlag",
    "VisitedSet",
]
