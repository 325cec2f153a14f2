"""
Thread-safe primitives shared by the scheduler and its workers.

Each primitive guards its state with its own ``threading.Lock`` and
exposes only compound operations that must be atomic: a set with
insert-if-absent, a counter whose mutators return the post-operation
value, and a boolean flag with test-and-set / test-and-clear.
"""

import threading
from typing import Hashable, Iterator


class VisitedSet:
    """Set of addresses admitted during one crawl run."""

    def __init__(self) -> None:
        self._items: set[Hashable] = set()
        self._lock = threading.Lock()

    def add_if_absent(self, item: Hashable) -> bool:
        """Insert *item* and return True, or return False if it was
        already present.  Check and insert happen under one lock."""
        with self._lock:
            if item in self._items:
                return False
            self._items.add(item)
            return True

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def snapshot(self) -> frozenset:
        with self._lock:
            return frozenset(self._items)

    def __contains__(self, item: Hashable) -> bool:
        with self._lock:
            return item in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.snapshot())


class AtomicCounter:
    """Integer counter; ``increment``/``decrement`` return the new value."""

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def decrement(self) -> int:
        with self._lock:
            self._value -= 1
            return self._value


class AtomicFlag:
    """Boolean flag with atomic test-and-set and test-and-clear."""

    def __init__(self, value: bool = False) -> None:
        self._value = value
        self._lock = threading.Lock()

    def is_set(self) -> bool:
        with self._lock:
            return self._value

    def test_and_set(self) -> bool:
        """Set the flag; return its previous value."""
        with self._lock:
            previous = self._value
            self._value = True
            return previous

    def test_and_clear(self) -> bool:
        """Clear the flag; return its previous value."""
        with self._lock:
            previous = self._value
            self._value = False
            return previous
