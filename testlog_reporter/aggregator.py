"""Aggregates results across all test tasks of a build."""

import threading

from .console import Console
from .formatting import total_block
from .models import RunTotals


class TestAggregator:
    """Build-wide counters fed once per finished test task."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks_run = 0
        self._totals = RunTotals()

    def add_results(self, tests: int, passed: int, failed: int, skipped: int) -> None:
        with self._lock:
            self._tasks_run += 1
            self._totals = self._totals + RunTotals(tests, passed, failed, skipped)

    @property
    def tasks_run(self) -> int:
        with self._lock:
            return self._tasks_run

    def snapshot(self) -> RunTotals:
        with self._lock:
            return self._totals

    def print_total(self, console: Console) -> bool:
        """Print the framed build total; skipped unless two or more tasks ran.

        Safe to call repeatedly, each call renders the current counters.
        """
        with self._lock:
            tasks_run = self._tasks_run
            totals = self._totals
        if tasks_run < 2:
            return False
        console.lines(total_block(console.style, tasks_run, totals))
        return True
