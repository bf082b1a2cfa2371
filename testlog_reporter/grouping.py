"""Grouping of consecutive parameterized invocations of the same test."""

import re

from .models import TestEvent, TestStatus

PARAM_SUFFIX_RE = re.compile(r'\[[^\[\]]*\]\s*$')


def split_parameter_suffix(name: str) -> tuple[str, bool]:
    """Return ``(base_name, parameterized)`` for a test display name.

    ``isPrime[3]`` gives ``("isPrime", True)``. A name without a trailing
    bracket suffix, or one that is nothing but the suffix, is its own base.
    """
    match = PARAM_SUFFIX_RE.search(name)
    if not match:
        return name.rstrip(), False
    base = name[:match.start()].rstrip()
    if not base:
        return name.rstrip(), False
    return base, True


class MethodGroup:
    """Run of live results sharing one base name."""

    def __init__(self, base_name: str):
        self.base_name = base_name
        self.events: list[TestEvent] = []

    def add(self, event: TestEvent) -> None:
        self.events.append(event)

    def _count(self, status: TestStatus) -> int:
        return sum(1 for e in self.events if e.status == status)

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def passed(self) -> int:
        return self._count(TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return self._count(TestStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(TestStatus.SKIPPED)

    @property
    def failures(self) -> list[TestEvent]:
        return [e for e in self.events if e.status == TestStatus.FAILED]

    @property
    def duration_ms(self) -> int:
        if not self.events:
            return 0
        start = min(e.start_ms for e in self.events)
        end = max(e.end_ms for e in self.events)
        return max(0, end - start)
