"""
Concurrent crawl scheduler.

Runs a self-expanding graph of :class:`CrawlTask` objects on a fixed-size
thread pool.  The scheduler owns the visited set, the in-flight counter,
the run flag and the time budget; tasks only see a :class:`RunHandle`,
which lets them submit children into the run that created them.

A run ends through a single path, :meth:`Scheduler.stop`, which is taken
when

* the in-flight counter drops to zero after a task completes,
* a submission (or a task about to execute) finds the time budget spent,
* :meth:`Scheduler.wait` sees the budget elapse while workers are blocked,
* or a caller stops the run explicitly.

A task can only submit children while it is itself counted as in flight,
and every child is counted before its parent's completion is, so the
counter cannot reach zero while any branch may still expand.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable

from lemma_crawler.config import DEFAULT_MAX_DEPTH, DEFAULT_MAX_TIME, MAX_WORKERS
from lemma_crawler.core.sync import AtomicCounter, AtomicFlag, VisitedSet
from lemma_crawler.core.task import CrawlTask
from lemma_crawler.utils.log import log
from lemma_crawler.utils.url import normalise_url

if TYPE_CHECKING:
    from lemma_crawler.analysis.text import PageAnalyzer
    from lemma_crawler.extraction.fetcher import PageFetcher

# Reasons reported when a run ends
STOP_COMPLETE = "complete"
STOP_TIME_BUDGET = "time budget exhausted"
STOP_REQUESTED = "stopped"


class RunHandle:
    """Submission capability for one crawl run.

    Tasks hold a handle instead of the scheduler.  Once its run has ended
    the handle goes inactive and every submission through it is dropped,
    so a task abandoned by an earlier run cannot leak into a later one.
    """

    __slots__ = ("_scheduler", "_generation")

    def __init__(self, scheduler: "Scheduler", generation: int) -> None:
        self._scheduler = scheduler
        self._generation = generation

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active(self) -> bool:
        return self._scheduler._is_current(self._generation)

    def submit(self, task: CrawlTask) -> bool:
        return self._scheduler._admit(self._generation, task)


class Scheduler:
    """
    Time- and depth-bounded crawl scheduler.

    The scheduler is built once and may be reused: each :meth:`start`
    begins a new run with a fresh visited set, counter and worker pool.
    """

    def __init__(
        self,
        fetcher: "PageFetcher",
        analyzer: "PageAnalyzer",
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_time: float = DEFAULT_MAX_TIME,
        workers: int = MAX_WORKERS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        if max_time < 0:
            raise ValueError(f"max_time must be >= 0, got {max_time}")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.fetcher = fetcher
        self.analyzer = analyzer
        self.max_depth = max_depth
        self.max_time = max_time
        self.workers = workers
        self._clock = clock

        self._visited = VisitedSet()
        self._in_flight = AtomicCounter()
        self._running = AtomicFlag()

        # Guards run transitions and admission; re-entrant because a
        # submission made by start() may itself trigger stop().
        self._lock = threading.RLock()
        self._pool: ThreadPoolExecutor | None = None
        self._generation = 0
        self._start_time: float | None = None
        self._stop_time: float | None = None
        self._finished = threading.Event()
        self._finished.set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def in_flight(self) -> int:
        return self._in_flight.value

    @property
    def visited(self) -> frozenset:
        """Addresses admitted in the current (or most recent) run."""
        return self._visited.snapshot()

    @property
    def elapsed(self) -> float:
        """Seconds since the current run started, frozen once it stops."""
        if self._start_time is None:
            return 0.0
        end = self._stop_time if self._stop_time is not None else self._clock()
        return end - self._start_time

    def start(self, root_address: str) -> None:
        """Begin crawling from *root_address* and return immediately.

        Does nothing if a run is already active.  Raises ``ValueError``
        when *root_address* is not an absolute http(s) URL.
        """
        address = normalise_url(root_address) if root_address else None
        if address is None:
            raise ValueError(f"not an absolute http(s) URL: {root_address!r}")

        with self._lock:
            if self._running.test_and_set():
                log.debug("Crawl already running – ignoring start(%s)", address)
                return
            self._generation += 1
            handle = RunHandle(self, self._generation)
            self._visited.clear()
            self._in_flight.set(0)
            self._start_time = self._clock()
            self._stop_time = None
            self._finished.clear()
            self._pool = ThreadPoolExecutor(
                max_workers=self.workers,
                thread_name_prefix=f"crawl-{self._generation}",
            )
            log.info(
                "Crawl started: %s (depth=%d, time budget=%.1fs, workers=%d)",
                address, self.max_depth, self.max_time, self.workers,
            )
            handle.submit(CrawlTask(
                self.max_depth, address, handle, self.fetcher, self.analyzer
            ))

    def submit(self, task: CrawlTask) -> bool:
        """Admit *task* into the current run.

        Returns True when the task was handed to the pool, False when it
        was discarded (no active run, time budget spent, or its address
        already admitted).
        """
        return self._admit(self._generation, task)

    def stop(self) -> None:
        """End the current run.  Safe to call repeatedly or when idle."""
        self._shutdown(STOP_REQUESTED)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the current run ends or *timeout* seconds pass.

        Workers blocked in I/O make no submissions, so nothing else would
        notice the time budget running out; once the remaining budget has
        elapsed this method stops the run itself.

        Returns True if no run is active on return.
        """
        if self._finished.is_set():
            return True
        remaining = self.max_time - (self._clock() - (self._start_time or 0.0))
        if timeout is not None and timeout < remaining:
            return self._finished.wait(timeout)
        if self._finished.wait(max(remaining, 0.0)):
            return True
        self._shutdown(STOP_TIME_BUDGET)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._running.is_set()

    def _time_exceeded(self) -> bool:
        return self._clock() - self._start_time >= self.max_time

    def _admit(self, generation: int, task: CrawlTask) -> bool:
        with self._lock:
            if not self._is_current(generation):
                log.debug("[SKIP] No active run for %s", task.address)
                return False
            if self._time_exceeded():
                self._shutdown(STOP_TIME_BUDGET)
                return False
            if not self._visited.add_if_absent(task.address):
                log.debug("[DUP] Already admitted: %s", task.address)
                return False
            self._in_flight.increment()
            self._pool.submit(self._run_task, generation, task)
            return True

    def _run_task(self, generation: int, task: CrawlTask) -> None:
        try:
            if not self._is_current(generation):
                return
            # Re-checked here: the task may have waited in the queue past
            # the deadline.
            if self._time_exceeded():
                self._shutdown(STOP_TIME_BUDGET)
                return
            task.execute()
        except Exception:
            log.exception("[ERR] Task for %s raised", task.address)
        finally:
            self._complete(generation)

    def _complete(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if self._in_flight.decrement() == 0:
                self._shutdown(STOP_COMPLETE)

    def _shutdown(self, reason: str) -> bool:
        """Take the running → stopped transition once per run.

        Queued tasks are cancelled and running ones abandoned; their
        handle is inactive from here on.
        """
        with self._lock:
            if not self._running.test_and_clear():
                return False
            self._stop_time = self._clock()
            pool, self._pool = self._pool, None
            if pool is not None:
                pool.shutdown(wait=False, cancel_futures=True)

            if reason == STOP_TIME_BUDGET:
                log.info("[TIME] Time budget of %.1fs exhausted", self.max_time)
            log.info(
                "[STOP] Crawl %s. visited=%d  in_flight=%d  elapsed=%.1fs",
                reason, len(self._visited), self._in_flight.value, self.elapsed,
            )
            # set last so wait() returns only after the summary is out
            self._finished.set()
        return True
