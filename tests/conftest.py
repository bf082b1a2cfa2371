import io

import pytest

from testlog_reporter.console import Console, OutputStyle
from testlog_reporter.engine import ProgressEngine
from testlog_reporter.models import FailureCause, SuiteAggregate, TestEvent, TestStatus


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def console(stream):
    """Console with ASCII symbols, no colour, no in-place progress."""
    return Console(stream=stream, style=OutputStyle.plain())


@pytest.fixture
def engine(console):
    engine = ProgressEngine("test", console)
    engine.run_started()
    return engine


@pytest.fixture
def make_event():
    def _make(suite, name, status="passed", start=0, end=10, message=None, type_name="AssertionError"):
        status = TestStatus.parse(status)
        failures = ()
        if status == TestStatus.FAILED:
            failures = (FailureCause(type_name, message),)
        return TestEvent(suite, name, status, start, end, failures)
    return _make


@pytest.fixture
def make_aggregate():
    def _make(suite, total, failed=0, skipped=0, start=0, end=100):
        return SuiteAggregate(suite, total, failed, skipped, start, end)
    return _make


@pytest.fixture
def output_lines(stream):
    def _lines():
        return stream.getvalue().splitlines()
    return _lines
