"""
Data models for test progress reporting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TestStatus(Enum):
    """Outcome of a single test case."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @classmethod
    def parse(cls, text: str) -> "TestStatus":
        """Map a status string from a report or event log to a member."""
        key = (text or "").strip().lower()
        if key in ("passed", "pass", "success", "ok"):
            return cls.PASSED
        if key in ("failed", "fail", "failure", "error"):
            return cls.FAILED
        if key in ("skipped", "skip", "ignored", "disabled"):
            return cls.SKIPPED
        raise ValueError(f"Unknown test status: {text!r}")


@dataclass(frozen=True)
class SourceLocation:
    """File and line a failure was raised from."""
    file: str
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class FailureCause:
    """One link of a failure's cause chain."""
    type_name: str
    message: Optional[str] = None
    location: Optional[SourceLocation] = None
    cause: Optional["FailureCause"] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FailureCause":
        """Build a cause chain from a raised exception.

        The first traceback frame is used as location; ``__cause__`` (or an
        implicit ``__context__``) becomes the nested cause. Exception chains
        that loop back on themselves are cut at the first repeat.
        """
        chain = []
        seen = set()
        current = exc
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            chain.append(current)
            current = current.__cause__ or (
                None if current.__suppress_context__ else current.__context__
            )

        result = None
        for item in reversed(chain):
            location = None
            tb = item.__traceback__
            if tb is not None:
                location = SourceLocation(tb.tb_frame.f_code.co_filename, tb.tb_lineno)
            message = str(item) or None
            result = cls(type(item).__name__, message, location, result)
        return result


@dataclass(frozen=True)
class TestEvent:
    """A finished test case as delivered by a worker thread."""

    suite_id: str
    name: str
    status: TestStatus
    start_ms: int = 0
    end_ms: int = 0
    failures: tuple[FailureCause, ...] = ()

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_ms - self.start_ms)


@dataclass(frozen=True)
class SuiteAggregate:
    """Authoritative counts for a finished suite."""
    suite_id: str
    total: int
    failed: int = 0
    skipped: int = 0
    start_ms: int = 0
    end_ms: int = 0

    @property
    def passed(self) -> int:
        return max(0, self.total - self.failed - self.skipped)

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_ms - self.start_ms)


@dataclass(frozen=True)
class RunTotals:
    """Immutable snapshot of total/passed/failed/skipped counters."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_aggregate(cls, aggregate: SuiteAggregate) -> "RunTotals":
        return cls(aggregate.total, aggregate.passed, aggregate.failed, aggregate.skipped)

    def __add__(self, other: "RunTotals") -> "RunTotals":
        if not isinstance(other, RunTotals):
            return NotImplemented
        return RunTotals(
            self.total + other.total,
            self.passed + other.passed,
            self.failed + other.failed,
            self.skipped + other.skipped,
        )

    def as_dict(self) -> dict:
        return {"total": self.total, "passed": self.passed,
                "failed": self.failed, "skipped": self.skipped}


@dataclass
class TestCase:
    """Represents a single test case result read from a report file."""

    name: str
    classname: str
    status: TestStatus
    duration_seconds: float = 0.0
    failure_message: Optional[str] = None
    failure_type: Optional[str] = None
    stack_trace: Optional[str] = None


@dataclass
class TestSuite:
    """Represents a test suite (collection of test cases) read from a report file."""

    name: str
    tests: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0
    time_seconds: float = 0.0
    test_cases: list[TestCase] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return self.tests - self.failures - self.errors - self.skipped
