#!/usr/bin/env python3
"""
Core operations shared between the CLI and embedding hosts.
Holds the build-wide session and the event-log replay used to drive the
live adapter from recorded test runs.
"""

import json
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from testlog_reporter.adapters import LiveTestRunAdapter, TestRunAdapter, create_adapter
from testlog_reporter.aggregator import TestAggregator
from testlog_reporter.config import load_config
from testlog_reporter.console import Console, OutputStyle
from testlog_reporter.models import FailureCause, RunTotals, SourceLocation

logger = logging.getLogger(__name__)

# Nested "cause" objects deeper than this in an event log are ignored
MAX_RECORD_CAUSE_DEPTH = 32


class BuildSession:
    """Everything shared by the test tasks of one build.

    Construct one at build start, hand out adapters with ``adapter()``, and
    call ``finish()`` exactly when the build ends to print the build total.
    """

    def __init__(self, console: Optional[Console] = None, config: Optional[dict] = None):
        self.config = load_config() if config is None else config
        self.console = console or Console(style=OutputStyle.from_config(self.config))
        self.aggregator = TestAggregator()
        self.adapters: list[TestRunAdapter] = []
        self._final: Optional[RunTotals] = None

    @property
    def finished(self) -> bool:
        return self._final is not None

    def adapter(self, kind: str, task_name: str, **kwargs) -> TestRunAdapter:
        if self.finished:
            raise RuntimeError("Build session already finished")
        adapter = create_adapter(kind, task_name, self.console, self.aggregator, **kwargs)
        self.adapters.append(adapter)
        return adapter

    def snapshot(self) -> RunTotals:
        return self.aggregator.snapshot()

    def finish(self) -> RunTotals:
        """Print the build total (two or more tasks only) and release adapters."""
        if self._final is not None:
            return self._final
        self.aggregator.print_total(self.console)
        self._final = self.aggregator.snapshot()
        self.adapters.clear()
        return self._final


# =============================================================================
# Event log replay
# =============================================================================

def load_event_log(path) -> list[dict]:
    """Read a JSON-lines event log; unreadable lines are skipped with a warning."""
    records = []
    for line_num, line in enumerate(Path(path).read_text(encoding='utf-8').splitlines(), 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"{path}:{line_num}: invalid JSON: {e}")
            continue
        if not isinstance(record, dict) or record.get('type') not in ('test', 'suite') or not record.get('suite'):
            logger.warning(f"{path}:{line_num}: not a test or suite record, skipping")
            continue
        records.append(record)
    return records


def failure_from_record(data: Optional[dict], depth: int = 0) -> Optional[FailureCause]:
    if not isinstance(data, dict) or depth > MAX_RECORD_CAUSE_DEPTH:
        return None
    location = None
    if data.get('file'):
        line = data.get('line')
        location = SourceLocation(str(data['file']), int(line) if line is not None else None)
    return FailureCause(
        type_name=str(data.get('type') or 'Failure'),
        message=data.get('message'),
        location=location,
        cause=failure_from_record(data.get('cause'), depth + 1),
    )


def _replay_suite(adapter: LiveTestRunAdapter, records: list[dict]) -> int:
    for record in records:
        if record['type'] == 'test':
            failures = [f for f in (failure_from_record(d) for d in record.get('failures') or []) if f]
            adapter.test_finished(
                record['suite'],
                record.get('name', 'unknown'),
                record.get('status', 'passed'),
                int(record.get('start', 0)),
                int(record.get('end', 0)),
                failures,
            )
        else:
            adapter.suite_finished(
                record['suite'],
                int(record.get('total', 0)),
                int(record.get('failed', 0)),
                int(record.get('skipped', 0)),
                int(record.get('start', 0)),
                int(record.get('end', 0)),
            )
    return len(records)


def replay_events(adapter: LiveTestRunAdapter, records: list[dict], workers: int = 4) -> int:
    """Replay recorded events, one worker thread per suite.

    Records of a suite are delivered in file order; suites interleave freely,
    as they would when a test engine runs classes in parallel.
    """
    by_suite: dict[str, list[dict]] = defaultdict(list)
    for record in records:
        by_suite[record['suite']].append(record)

    replayed = 0
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = [pool.submit(_replay_suite, adapter, suite_records)
                   for suite_records in by_suite.values()]
        for fut in as_completed(futures):
            replayed += fut.result()
    logger.debug(f"Replayed {replayed} records across {len(by_suite)} suites")
    return replayed
