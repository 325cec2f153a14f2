"""
Tests for the crawl scheduler: admission, deduplication, depth and time
budgets, completion detection and run-state handling.
"""

import threading
import time
import unittest

from lemma_crawler.core.scheduler import RunHandle, Scheduler
from lemma_crawler.core.task import CrawlTask
from lemma_crawler.extraction.fetcher import FetchError, Page
from lemma_crawler.utils.log import log


BASE = "https://example.com"
WAIT = 10.0


def url(name: str) -> str:
    return f"{BASE}/{name}"


A, B, C, D, E = (url(n) for n in "ABCDE")


class FakeFetcher:
    """Serves pages from an in-memory link graph.

    Addresses missing from *graph* fail like a 404.  *on_fetch* runs
    before the page is returned, outside the fetcher's lock.
    """

    def __init__(self, graph, on_fetch=None):
        self.graph = graph
        self.on_fetch = on_fetch
        self.fetched = []
        self._lock = threading.Lock()

    def fetch(self, address):
        with self._lock:
            self.fetched.append(address)
        if self.on_fetch is not None:
            self.on_fetch(address)
        if address not in self.graph:
            raise FetchError("404 Client Error: Not Found")
        return Page(
            url=address,
            title=address.rsplit("/", 1)[-1],
            text=f"text of {address}",
            links=list(self.graph[address]),
        )


class RecordingAnalyzer:
    def __init__(self):
        self.processed = []
        self._lock = threading.Lock()

    def process(self, text, source_address):
        with self._lock:
            self.processed.append(source_address)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _stop_messages(records):
    return [r for r in records if "[STOP]" in r]


class SchedulerTestCase(unittest.TestCase):
    def make(self, graph, on_fetch=None, **kwargs):
        fetcher = FakeFetcher(graph, on_fetch)
        analyzer = RecordingAnalyzer()
        kwargs.setdefault("max_depth", 2)
        kwargs.setdefault("max_time", 60.0)
        kwargs.setdefault("workers", 4)
        scheduler = Scheduler(fetcher, analyzer, **kwargs)
        self.addCleanup(scheduler.stop)
        return scheduler, fetcher, analyzer

    def blocking_gate(self):
        """Event that blocked fetches wait on; released at cleanup."""
        gate = threading.Event()
        self.addCleanup(gate.set)
        return gate


# ------------------------------------------------------------------ #
# Crawl shape
# ------------------------------------------------------------------ #

class TestCrawlScenarios(SchedulerTestCase):
    def test_back_link_and_depth_scenario(self):
        graph = {A: [B, C], B: [D, A], C: [], D: [E], E: []}
        scheduler, fetcher, analyzer = self.make(graph, max_depth=2)

        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(scheduler.visited, frozenset({A, B, C, D}))
        self.assertEqual(sorted(fetcher.fetched), [A, B, C, D])
        self.assertEqual(sorted(analyzer.processed), [A, B, C, D])
        self.assertNotIn(E, fetcher.fetched)
        self.assertFalse(scheduler.running)
        self.assertEqual(scheduler.in_flight, 0)

    def test_max_depth_zero_processes_only_seed(self):
        graph = {A: [B, C], B: [], C: []}
        scheduler, fetcher, analyzer = self.make(graph, max_depth=0)

        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(fetcher.fetched, [A])
        self.assertEqual(analyzer.processed, [A])
        self.assertEqual(scheduler.visited, frozenset({A}))

    def test_seed_fetch_failure_ends_run(self):
        scheduler, fetcher, analyzer = self.make({})

        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(fetcher.fetched, [A])
        self.assertEqual(analyzer.processed, [])
        self.assertFalse(scheduler.running)

    def test_fragment_variants_fetched_once(self):
        graph = {A: [B + "#one", B + "#two", B], B: []}
        scheduler, fetcher, _ = self.make(graph)

        scheduler.start(A + "#top")
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(sorted(fetcher.fetched), [A, B])
        self.assertEqual(scheduler.visited, frozenset({A, B}))

    def test_first_submission_wins_regardless_of_depth(self):
        # D is reached at depth 1 via A and again via B; it is fetched once
        graph = {A: [B, D], B: [D], D: [E], E: []}
        scheduler, fetcher, _ = self.make(graph, max_depth=2, workers=1)

        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(fetcher.fetched.count(D), 1)


# ------------------------------------------------------------------ #
# Deduplication under concurrency
# ------------------------------------------------------------------ #

class TestConcurrentDedup(SchedulerTestCase):
    def test_shared_child_executes_once(self):
        parents = [url(f"p{i}") for i in range(40)]
        target = url("shared")
        graph = {A: parents, target: []}
        graph.update({p: [target] for p in parents})
        barrier = threading.Barrier(8, timeout=5)

        def line_up(address):
            # let the first wave of parents race to submit the same child
            if address in parents[:8]:
                try:
                    barrier.wait()
                except threading.BrokenBarrierError:
                    pass

        scheduler, fetcher, analyzer = self.make(
            graph, on_fetch=line_up, workers=8
        )
        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(fetcher.fetched.count(target), 1)
        self.assertEqual(analyzer.processed.count(target), 1)
        self.assertEqual(len(scheduler.visited), len(parents) + 2)

    def test_direct_concurrent_submissions_admit_once(self):
        gate = self.blocking_gate()
        scheduler, _, _ = self.make(
            {A: []}, on_fetch=lambda _: gate.wait(WAIT), workers=2
        )
        scheduler.start(A)

        results = []
        barrier = threading.Barrier(16)

        def submit_same():
            barrier.wait()
            task = CrawlTask(
                0, B, RunHandle(scheduler, 1), scheduler.fetcher, scheduler.analyzer
            )
            results.append(scheduler.submit(task))

        threads = [threading.Thread(target=submit_same) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(results.count(True), 1)
        scheduler.stop()


# ------------------------------------------------------------------ #
# Completion detection
# ------------------------------------------------------------------ #

class TestCompletion(SchedulerTestCase):
    def test_stops_exactly_once_after_last_task(self):
        graph = {A: [B, C], B: [D], C: [], D: []}
        scheduler, _, analyzer = self.make(graph, max_depth=3)

        with self.assertLogs(log, level="INFO") as cm:
            scheduler.start(A)
            self.assertTrue(scheduler.wait(WAIT))
            scheduler.stop()

        stops = _stop_messages(cm.output)
        self.assertEqual(len(stops), 1)
        self.assertIn("complete", stops[0])
        self.assertEqual(sorted(analyzer.processed), [A, B, C, D])

    def test_no_premature_stop_during_slow_expansion(self):
        chain = [url(f"n{i}") for i in range(5)]
        graph = {chain[i]: chain[i + 1:i + 2] for i in range(len(chain))}

        def slow(_address):
            time.sleep(0.02)

        scheduler, _, analyzer = self.make(graph, on_fetch=slow, max_depth=10)
        scheduler.start(chain[0])
        self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(analyzer.processed, chain)

    def test_task_exception_is_logged_and_run_completes(self):
        class ExplodingFetcher(FakeFetcher):
            def fetch(self, address):
                raise RuntimeError("boom")

        scheduler = Scheduler(ExplodingFetcher({}), RecordingAnalyzer(), workers=2)
        self.addCleanup(scheduler.stop)

        with self.assertLogs(log, level="INFO") as cm:
            scheduler.start(A)
            self.assertTrue(scheduler.wait(WAIT))

        self.assertTrue(any("[ERR] Task for" in line for line in cm.output))
        self.assertIn("complete", _stop_messages(cm.output)[0])
        self.assertEqual(scheduler.in_flight, 0)


# ------------------------------------------------------------------ #
# Time budget
# ------------------------------------------------------------------ #

class TestTimeBudget(SchedulerTestCase):
    def test_zero_budget_discards_root(self):
        scheduler, fetcher, _ = self.make({A: [B]}, max_time=0)

        scheduler.start(A)

        self.assertFalse(scheduler.running)
        self.assertTrue(scheduler.wait(WAIT))
        self.assertEqual(fetcher.fetched, [])
        self.assertEqual(scheduler.visited, frozenset())

    def test_children_submitted_after_deadline_are_discarded(self):
        clock = FakeClock()

        def expire_during_seed(address):
            if address == A:
                clock.advance(100)

        graph = {A: [B, C], B: [], C: []}
        scheduler, fetcher, analyzer = self.make(
            graph, on_fetch=expire_during_seed, max_time=10, clock=clock
        )
        with self.assertLogs(log, level="INFO") as cm:
            scheduler.start(A)
            self.assertTrue(scheduler.wait(WAIT))

        self.assertEqual(fetcher.fetched, [A])
        self.assertEqual(scheduler.visited, frozenset({A}))
        self.assertTrue(any("[TIME]" in line for line in cm.output))

    def test_queued_task_skipped_when_it_starts_after_deadline(self):
        clock = FakeClock()

        def expire_on_second_level(address):
            if address != A:
                clock.advance(100)

        graph = {A: [B, C], B: [], C: []}
        scheduler, fetcher, _ = self.make(
            graph,
            on_fetch=expire_on_second_level,
            max_depth=1,
            max_time=10,
            workers=1,
            clock=clock,
        )
        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))

        # both children were admitted before the deadline ...
        self.assertEqual(scheduler.visited, frozenset({A, B, C}))
        # ... but only the first to run was fetched
        self.assertEqual(len(fetcher.fetched), 2)
        self.assertEqual(fetcher.fetched[0], A)
        self.assertFalse(scheduler.running)

    def test_wait_stops_run_when_workers_are_blocked(self):
        gate = self.blocking_gate()
        scheduler, _, analyzer = self.make(
            {A: [B]}, on_fetch=lambda _: gate.wait(WAIT), max_time=0.2
        )
        scheduler.start(A)

        t0 = time.monotonic()
        self.assertTrue(scheduler.wait())
        self.assertLess(time.monotonic() - t0, WAIT)
        self.assertFalse(scheduler.running)

        gate.set()
        time.sleep(0.05)
        # the abandoned fetch finished after the run ended: no analysis
        self.assertEqual(analyzer.processed, [])

    def test_wait_timeout_shorter_than_budget(self):
        gate = self.blocking_gate()
        scheduler, _, _ = self.make({A: []}, on_fetch=lambda _: gate.wait(WAIT))
        scheduler.start(A)

        self.assertFalse(scheduler.wait(timeout=0.05))
        self.assertTrue(scheduler.running)


# ------------------------------------------------------------------ #
# Run state
# ------------------------------------------------------------------ #

class TestRunState(SchedulerTestCase):
    def test_start_while_running_is_noop(self):
        gate = self.blocking_gate()

        def hold_seed(address):
            if address == A:
                gate.wait(WAIT)

        scheduler, fetcher, _ = self.make({A: [B], B: [], C: []}, on_fetch=hold_seed)
        with self.assertLogs(log, level="INFO") as cm:
            scheduler.start(A)
            scheduler.start(A)
            scheduler.start(C)
            gate.set()
            self.assertTrue(scheduler.wait(WAIT))

        started = [line for line in cm.output if "Crawl started" in line]
        self.assertEqual(len(started), 1)
        self.assertEqual(sorted(fetcher.fetched), [A, B])

    def test_stop_twice_tears_down_once(self):
        gate = self.blocking_gate()
        scheduler, _, analyzer = self.make({A: [B]}, on_fetch=lambda _: gate.wait(WAIT))

        with self.assertLogs(log, level="INFO") as cm:
            scheduler.start(A)
            scheduler.stop()
            scheduler.stop()

        self.assertEqual(len(_stop_messages(cm.output)), 1)
        self.assertFalse(scheduler.running)
        self.assertIsNone(scheduler._pool)

        gate.set()
        time.sleep(0.05)
        self.assertEqual(analyzer.processed, [])

    def test_stop_when_idle_is_noop(self):
        scheduler, _, _ = self.make({})
        scheduler.stop()
        self.assertFalse(scheduler.running)
        self.assertTrue(scheduler.wait(0))

    def test_submit_without_run_is_discarded(self):
        scheduler, fetcher, _ = self.make({A: []})
        task = CrawlTask(1, A, RunHandle(scheduler, 0), fetcher, None)
        self.assertFalse(scheduler.submit(task))
        self.assertEqual(scheduler.visited, frozenset())

    def test_scheduler_is_reusable(self):
        graph = {A: [B], B: [], C: [D], D: []}
        scheduler, fetcher, _ = self.make(graph)

        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))
        self.assertEqual(scheduler.visited, frozenset({A, B}))

        scheduler.start(C)
        self.assertTrue(scheduler.wait(WAIT))
        self.assertEqual(scheduler.visited, frozenset({C, D}))
        self.assertEqual(sorted(fetcher.fetched), [A, B, C, D])

    def test_handle_from_previous_run_is_inert(self):
        gate = self.blocking_gate()
        scheduler, _, _ = self.make({A: [], C: []}, on_fetch=lambda _: gate.wait(WAIT))

        scheduler.start(A)
        scheduler.stop()
        scheduler.start(C)

        stale = RunHandle(scheduler, 1)
        current = RunHandle(scheduler, 2)
        self.assertFalse(stale.active)
        self.assertTrue(current.active)
        self.assertFalse(stale.submit(CrawlTask(0, B, stale, None, None)))
        self.assertNotIn(B, scheduler.visited)
        self.assertEqual(scheduler.in_flight, 1)

    def test_elapsed_freezes_after_stop(self):
        clock = FakeClock(5.0)
        scheduler, _, _ = self.make({}, clock=clock)
        self.assertEqual(scheduler.elapsed, 0.0)

        scheduler.start(A)
        self.assertTrue(scheduler.wait(WAIT))
        clock.advance(3)
        self.assertEqual(scheduler.elapsed, 0.0)


class TestValidation(unittest.TestCase):
    def test_rejects_negative_configuration(self):
        with self.assertRaises(ValueError):
            Scheduler(None, None, max_depth=-1)
        with self.assertRaises(ValueError):
            Scheduler(None, None, max_time=-0.5)
        with self.assertRaises(ValueError):
            Scheduler(None, None, workers=0)

    def test_start_rejects_unusable_address(self):
        scheduler = Scheduler(FakeFetcher({}), RecordingAnalyzer())
        for bad in ("", "   ", "mailto:someone@example.com", "/relative/path"):
            with self.assertRaises(ValueError):
                scheduler.start(bad)
        self.assertFalse(scheduler.running)


if __name__ == "__main__":
    unittest.main()
