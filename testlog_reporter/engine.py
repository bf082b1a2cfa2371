"""
Ordering and rendering engine for concurrently delivered test results.

Worker threads report finished tests and finished suites in any interleaving.
The engine keeps exactly one suite "live" at a time and streams its results
as they arrive; every other suite is buffered and rendered as one block once
it is complete and the live suite is out of the way. All state, including the
console's open progress line, is guarded by a single lock so the transcript
reads as if the suites had run one after another.
"""

import logging
import threading
from typing import Iterable, Optional

from .console import Console
from .formatting import (
    group_lines,
    plain_result_line,
    progress_line,
    result_lines,
    run_header,
    run_summary,
    suite_header,
    suite_summary,
)
from .grouping import MethodGroup, split_parameter_suffix
from .models import RunTotals, SuiteAggregate, TestEvent
from .store import SuiteState, SuiteStore, select_next_suite

logger = logging.getLogger(__name__)


class ProgressEngine:
    """Receives test lifecycle events for one run and renders them in order."""

    def __init__(self, task_name: str, console: Console, aggregator=None):
        self.task_name = task_name
        self.console = console
        self.aggregator = aggregator
        self._lock = threading.RLock()
        self._store = SuiteStore()
        self._live: Optional[SuiteState] = None
        self._group: Optional[MethodGroup] = None
        self._totals = RunTotals()
        self._started = False

    @property
    def style(self):
        return self.console.style

    @property
    def live_suite(self) -> Optional[str]:
        with self._lock:
            return self._live.suite_id if self._live else None

    @property
    def pending_suites(self) -> list[str]:
        with self._lock:
            return [s.suite_id for s in self._store.pending()]

    def snapshot(self) -> RunTotals:
        with self._lock:
            return self._totals

    # -- lifecycle ---------------------------------------------------------

    def run_started(self) -> None:
        with self._lock:
            self._store.clear()
            self._live = None
            self._group = None
            self._totals = RunTotals()
            self._started = True
            self.console.lines(run_header(self.style, self.task_name))

    def run_finished(self) -> None:
        """Flush what can be flushed, print the run summary, report totals.

        Complete suites still waiting behind a live suite that never finished
        are flushed here. Suites that never completed stay buffered.
        """
        with self._lock:
            if not self._started:
                return
            self._started = False
            self._close_group()

            while True:
                waiting = [s for s in self._store.pending()
                           if s is not self._live and s.complete]
                state = select_next_suite(waiting)
                if state is None:
                    break
                self._flush_batch(state)

            unfinished = [s.suite_id for s in self._store.pending()]
            if unfinished:
                logger.debug(f"Run {self.task_name} ended with unfinished suites: {unfinished}")

            totals = self._totals
            self.console.lines(run_summary(self.style, totals))
            if self.aggregator is not None:
                self.aggregator.add_results(totals.total, totals.passed, totals.failed, totals.skipped)

    # -- event intake ------------------------------------------------------

    def record_test_result(self, event: TestEvent) -> None:
        with self._lock:
            state = self._store.add_event(event)
            if self._live is None:
                self._select()
            elif self._live is state:
                self._render_live(event)

    def record_suite_aggregate(self, aggregate: SuiteAggregate) -> None:
        with self._lock:
            self._totals = self._totals + RunTotals.from_aggregate(aggregate)
            state = self._store.set_aggregate(aggregate)
            if self._live is state:
                self._finish_live()
            self._select()

    def record_completed_suite(self, aggregate: SuiteAggregate, events: Iterable[TestEvent]) -> None:
        """Take a suite whose results all arrived at once, e.g. from a report file."""
        with self._lock:
            for event in events:
                self._store.add_event(event)
            self.record_suite_aggregate(aggregate)

    # -- selection ---------------------------------------------------------

    def _select(self) -> None:
        while self._live is None:
            state = select_next_suite(self._store.pending())
            if state is None:
                return
            if state.complete:
                self._flush_batch(state)
            else:
                self._promote(state)

    def _promote(self, state: SuiteState) -> None:
        logger.debug(f"Suite {state.suite_id} is now live ({len(state.events)} buffered)")
        self._live = state
        self.console.line()
        self.console.line(suite_header(self.style, state.suite_id))
        for event in list(state.events):
            self._render_live(event)

    def _finish_live(self) -> None:
        state = self._live
        self._close_group()
        self.console.line(suite_summary(self.style, state.aggregate))
        self._store.discard(state.suite_id)
        self._live = None

    def _flush_batch(self, state: SuiteState) -> None:
        logger.debug(f"Flushing suite {state.suite_id} ({len(state.events)} results)")
        self.console.line()
        self.console.line(suite_header(self.style, state.suite_id))
        for event in state.events:
            self._write_event(event)
        self.console.line(suite_summary(self.style, state.aggregate))
        self._store.discard(state.suite_id)

    # -- live rendering ----------------------------------------------------

    def _render_live(self, event: TestEvent) -> None:
        base_name, parameterized = split_parameter_suffix(event.name)
        group = self._group
        if group is not None and parameterized and group.base_name == base_name:
            group.add(event)
            self.console.progress(progress_line(self.style, group))
            return

        self._close_group()
        if parameterized:
            group = MethodGroup(base_name)
            group.add(event)
            self._group = group
            self.console.progress(progress_line(self.style, group))
        else:
            self._write_event(event)

    def _close_group(self) -> None:
        group = self._group
        if group is None:
            return
        self._group = None
        if group.count == 1:
            self._write_event(group.events[0])
            return
        try:
            lines = group_lines(self.style, group)
        except Exception as e:
            logger.error(f"Failed to format group {group.base_name}: {e}")
            lines = [plain_result_line(self.style, event) for event in group.events]
        self.console.lines(lines)

    def _write_event(self, event: TestEvent) -> None:
        try:
            lines = result_lines(self.style, event)
        except Exception as e:
            logger.error(f"Failed to format result of {event.name}: {e}")
            lines = [plain_result_line(self.style, event)]
        self.console.lines(lines)
