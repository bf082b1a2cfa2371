import logging

import pytest

from testlog_reporter.adapters import (
    ADAPTERS,
    LiveTestRunAdapter,
    ReportTestRunAdapter,
    TestRunAdapter,
    create_adapter,
    register_adapter,
)
from testlog_reporter.aggregator import TestAggregator
from testlog_reporter.models import FailureCause, RunTotals, SourceLocation

GOOD_XML = """<?xml version="1.0" encoding="UTF-8"?>
<testsuite name="com.example.MyTest" tests="3" skipped="1" failures="1" errors="0" time="0.123">
  <testcase name="testSuccess" classname="com.example.MyTest" time="0.05"/>
  <testcase name="testFailed" classname="com.example.MyTest" time="0.03">
    <failure message="Expected 1 but was 2" type="AssertionError">at com.example.MyTest.testFailed(MyTest.kt:17)</failure>
  </testcase>
  <testcase name="testSkipped" classname="com.example.MyTest" time="0.0"><skipped/></testcase>
</testsuite>
"""

JS_XML = """<testsuite name="com.example.JsTest" tests="2" failures="0" errors="1" time="1.5">
  <testcase name="works[js, browser, ChromeHeadless 120.0.0.0 (Linux x86_64)]" time="0.25"/>
  <testcase name="breaks[js, node]" time="0.5"><error message="boom"/></testcase>
</testsuite>
"""


def test_registry_has_both_backends():
    assert ADAPTERS["live"] is LiveTestRunAdapter
    assert ADAPTERS["report"] is ReportTestRunAdapter


def test_unknown_kind_raises(console):
    with pytest.raises(KeyError):
        create_adapter("gradle", "test", console)


def test_register_custom_adapter(console, monkeypatch):
    class NullAdapter(TestRunAdapter):
        kind = "null"

        def task_started(self):
            self.engine.run_started()

        def task_finished(self):
            self.engine.run_finished()

    monkeypatch.setitem(ADAPTERS, "null", None)
    register_adapter("null", NullAdapter)
    adapter = create_adapter("null", "noop", console)

    assert isinstance(adapter, NullAdapter)
    adapter.task_started()
    adapter.task_finished()
    assert adapter.snapshot() == RunTotals()


def test_live_adapter_streams_callbacks(console, output_lines):
    aggregator = TestAggregator()
    adapter = create_adapter("live", "test", console, aggregator)

    adapter.task_started()
    adapter.test_finished("Foo", "t1", "passed", 0, 50)
    adapter.test_finished("Foo", "t2", "failure", 50, 80,
                          [FailureCause("AssertionError", "expected 1 but was 2", SourceLocation("FooTest.java", 9))])
    adapter.suite_finished("Foo", 2, failed=1, start_ms=0, end_ms=80)
    adapter.task_finished()

    lines = output_lines()
    assert "  [FAIL] t2 (30ms)" in lines
    assert "        at FooTest.java:9" in lines
    assert adapter.snapshot() == RunTotals(2, 1, 1, 0)
    assert aggregator.tasks_run == 1


def test_live_adapter_rejects_unknown_status(console):
    adapter = create_adapter("live", "test", console)
    with pytest.raises(ValueError):
        adapter.test_finished("Foo", "t1", "exploded")


def test_report_adapter_renders_each_suite_as_batch(console, output_lines, tmp_path):
    (tmp_path / "TEST-com.example.MyTest.xml").write_text(GOOD_XML, encoding="utf-8")
    adapter = create_adapter("report", "jsTest", console, results_dir=tmp_path)

    adapter.task_started()
    adapter.task_finished()

    lines = output_lines()
    start = lines.index("Running com.example.MyTest")
    assert lines[start:start + 7] == [
        "Running com.example.MyTest",
        "  [OK] testSuccess (50ms)",
        "  [FAIL] testFailed (30ms)",
        "      AssertionError: Expected 1 but was 2",
        "        at MyTest.kt:17",
        "  [SKIP] testSkipped (0ms)",
        "  Tests run: 3, Failures: 1, Skipped: 1, Time: 0.123s",
    ]
    assert adapter.snapshot() == RunTotals(3, 1, 1, 1)


def test_report_adapter_counts_errors_and_cleans_names(console, output_lines, tmp_path):
    (tmp_path / "TEST-js.xml").write_text(JS_XML, encoding="utf-8")
    adapter = create_adapter("report", "jsTest", console, results_dir=tmp_path)

    adapter.task_started()
    adapter.task_finished()

    lines = output_lines()
    assert "  [OK] works [browser] (250ms)" in lines
    assert "  [FAIL] breaks[js, node] (500ms)" in lines
    assert adapter.snapshot() == RunTotals(2, 1, 1, 0)


def test_malformed_report_skipped_with_warning(console, output_lines, tmp_path, caplog):
    (tmp_path / "TEST-a-broken.xml").write_text("garbage, not a report", encoding="utf-8")
    (tmp_path / "TEST-b-good.xml").write_text(GOOD_XML, encoding="utf-8")
    adapter = create_adapter("report", "jsTest", console, results_dir=tmp_path)

    with caplog.at_level(logging.WARNING):
        adapter.task_started()
        adapter.task_finished()

    assert "TEST-a-broken.xml" in caplog.text
    assert "Running com.example.MyTest" in output_lines()
    assert adapter.snapshot().total == 3


def test_missing_results_directory_is_an_empty_run(console, tmp_path):
    aggregator = TestAggregator()
    adapter = create_adapter("report", "nativeTest", console, aggregator, results_dir=tmp_path / "nope")

    adapter.task_started()
    adapter.task_finished()

    assert adapter.snapshot() == RunTotals()
    assert aggregator.tasks_run == 1


def test_report_adapter_default_results_dir(console):
    adapter = ReportTestRunAdapter("jsBrowserTest", console)
    assert adapter.results_dir.as_posix() == "test-results/jsBrowserTest"


TRUNCATED_XML = """<testsuite name="com.example.Cut" tests="3" failures="1">
  <testcase name="one" time="0.01"/>
  <testcase name="two" time="0.01"><failure message="boom">at com.exa"""

MISMATCHED_XML = """<testsuite name="com.example.Mismatched" tests="1">
  <testcase name="only" time="0.01"/>
</testsuit>
"""


def test_truncated_and_mismatched_reports_are_skipped(console, output_lines, tmp_path, caplog):
    (tmp_path / "TEST-a-cut.xml").write_text(TRUNCATED_XML, encoding="utf-8")
    (tmp_path / "TEST-b-good.xml").write_text(GOOD_XML, encoding="utf-8")
    (tmp_path / "TEST-c-mismatched.xml").write_text(MISMATCHED_XML, encoding="utf-8")
    adapter = create_adapter("report", "jsTest", console, results_dir=tmp_path)

    with caplog.at_level(logging.WARNING):
        adapter.task_started()
        adapter.task_finished()

    assert "TEST-a-cut.xml" in caplog.text
    assert "TEST-c-mismatched.xml" in caplog.text
    lines = output_lines()
    assert "Running com.example.Cut" not in lines
    assert "Running com.example.Mismatched" not in lines
    assert "Running com.example.MyTest" in lines
    assert adapter.snapshot() == RunTotals(3, 1, 1, 1)
