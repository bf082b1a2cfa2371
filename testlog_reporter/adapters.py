"""
Test run adapters - one per kind of test execution backend.

A backend that calls back per test ("live") streams results through an
EventChannel; a backend that only leaves result files behind ("report") is
read once its run has finished. Adapters are looked up by kind in an explicit
registry instead of being guessed from task class names.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional, Union

from .channel import EventChannel
from .console import Console
from .engine import ProgressEngine
from .formatting import clean_report_name
from .junit_parser import JUnitParser, first_frame_location
from .models import (
    FailureCause,
    RunTotals,
    SuiteAggregate,
    TestCase,
    TestEvent,
    TestStatus,
    TestSuite,
)

logger = logging.getLogger(__name__)


class TestRunAdapter(ABC):
    """Bridges one test task of a backend to a ProgressEngine."""
    kind = ""

    def __init__(self, task_name: str, console: Console, aggregator=None):
        self.task_name = task_name
        self.engine = ProgressEngine(task_name, console, aggregator)

    @abstractmethod
    def task_started(self) -> None:
        """Called when the task begins executing tests."""

    @abstractmethod
    def task_finished(self) -> None:
        """Called once the task is done; flushes output and reports totals."""

    def snapshot(self) -> RunTotals:
        return self.engine.snapshot()


class LiveTestRunAdapter(TestRunAdapter):
    """Backend with per-test callbacks, possibly from many worker threads."""
    kind = "live"

    def __init__(self, task_name: str, console: Console, aggregator=None):
        super().__init__(task_name, console, aggregator)
        self.channel = EventChannel(self.engine)

    def task_started(self) -> None:
        self.channel.run_started()

    def test_finished(self, suite_id: str, name: str, status: Union[TestStatus, str],
                      start_ms: int = 0, end_ms: int = 0,
                      failures: Iterable[FailureCause] = ()) -> TestEvent:
        if not isinstance(status, TestStatus):
            status = TestStatus.parse(status)
        event = TestEvent(suite_id, name, status, start_ms, end_ms, tuple(failures))
        self.channel.record_test_result(event)
        return event

    def suite_finished(self, suite_id: str, total: int, failed: int = 0, skipped: int = 0,
                       start_ms: int = 0, end_ms: int = 0) -> SuiteAggregate:
        aggregate = SuiteAggregate(suite_id, total, failed, skipped, start_ms, end_ms)
        self.channel.record_suite_aggregate(aggregate)
        return aggregate

    def task_finished(self) -> None:
        self.channel.run_finished()


class ReportTestRunAdapter(TestRunAdapter):
    """Backend that writes JUnit XML files, read after the task has run."""
    kind = "report"

    def __init__(self, task_name: str, console: Console, aggregator=None,
                 results_dir: Optional[Union[str, Path]] = None,
                 parser: Optional[JUnitParser] = None):
        super().__init__(task_name, console, aggregator)
        self.results_dir = Path(results_dir) if results_dir else Path("test-results") / task_name
        self.parser = parser or JUnitParser()

    def task_started(self) -> None:
        self.engine.run_started()

    def task_finished(self) -> None:
        for suite in self.read_suites():
            self.engine.record_completed_suite(*self._suite_results(suite))
        self.engine.run_finished()

    def read_suites(self) -> list[TestSuite]:
        """Parse every XML file in the results directory, skipping broken ones."""
        if not self.results_dir.is_dir():
            logger.info(f"No test results found at {self.results_dir}")
            return []

        suites = []
        for xml_file in sorted(self.results_dir.glob('*.xml')):
            try:
                suites.extend(self.parser.parse_file(xml_file))
            except Exception as e:
                logger.warning(f"Failed to parse test result file {xml_file.name}: {e}")
        return suites

    def _suite_results(self, suite: TestSuite) -> tuple[SuiteAggregate, list[TestEvent]]:
        # Report files carry durations only; lay the cases out back to back.
        clock = 0
        events = []
        for case in suite.test_cases:
            duration = int(round(case.duration_seconds * 1000))
            events.append(TestEvent(
                suite_id=suite.name,
                name=clean_report_name(case.name),
                status=case.status,
                start_ms=clock,
                end_ms=clock + duration,
                failures=self._case_failures(case),
            ))
            clock += duration

        aggregate = SuiteAggregate(
            suite_id=suite.name,
            total=suite.tests,
            failed=suite.failures + suite.errors,
            skipped=suite.skipped,
            start_ms=0,
            end_ms=int(round(suite.time_seconds * 1000)),
        )
        return aggregate, events

    @staticmethod
    def _case_failures(case: TestCase) -> tuple[FailureCause, ...]:
        if case.status != TestStatus.FAILED:
            return ()
        return (FailureCause(
            type_name=case.failure_type or "Failure",
            message=case.failure_message,
            location=first_frame_location(case.stack_trace),
        ),)


ADAPTERS: dict[str, type] = {}


def register_adapter(kind: str, adapter_class: type) -> type:
    ADAPTERS[kind] = adapter_class
    return adapter_class


def create_adapter(kind: str, task_name: str, console: Console, aggregator=None, **kwargs) -> TestRunAdapter:
    try:
        adapter_class = ADAPTERS[kind]
    except KeyError:
        raise KeyError(f"Unknown test run adapter: {kind!r} (known: {sorted(ADAPTERS)})") from None
    return adapter_class(task_name, console, aggregator, **kwargs)


register_adapter(LiveTestRunAdapter.kind, LiveTestRunAdapter)
register_adapter(ReportTestRunAdapter.kind, ReportTestRunAdapter)
