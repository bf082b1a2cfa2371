"""
Shared formatting utilities for test progress output.

Every function here returns plain strings (colour applied through the
style); writing them is left to the console.
"""

import re
from typing import Optional

from .console import ANSI_CYAN, ANSI_GREEN, ANSI_RED, ANSI_YELLOW, OutputStyle
from .grouping import MethodGroup
from .models import FailureCause, RunTotals, SuiteAggregate, TestEvent, TestStatus

RESULT_INDENT = "  "
DETAIL_INDENT = "      "
# Hard stop for cause chains built by hand that never repeat an object
MAX_CAUSE_DEPTH = 32

JS_PLATFORM_RE = re.compile(r'\[js, (\w+), [^\]]*\]')


def format_duration(ms: int) -> str:
    """``(42ms)`` below one second, ``(1.5s)`` from there on."""
    ms = max(0, int(ms))
    if ms < 1000:
        return f"({ms}ms)"
    return f"({ms / 1000:.1f}s)"


def format_seconds(ms: int) -> str:
    return f"{max(0, ms) / 1000:.3f}s"


def clean_report_name(name: str) -> str:
    """Keep the platform of Kotlin/JS test names but drop the version noise.

    ``check[js, browser, ChromeHeadless 120.0]`` becomes ``check [browser]``.
    """
    return JS_PLATFORM_RE.sub(lambda m: f" [{m.group(1)}]", name).strip()


def status_symbol(style: OutputStyle, status: TestStatus) -> tuple[str, str]:
    if status == TestStatus.FAILED:
        return style.failed, ANSI_RED
    if status == TestStatus.SKIPPED:
        return style.skipped, ANSI_YELLOW
    return style.passed, ANSI_GREEN


def _cause_header(cause: FailureCause) -> str:
    type_name = cause.type_name or "Failure"
    if cause.message:
        return f"{type_name}: {cause.message}"
    return type_name


def _cause_location(cause: FailureCause) -> str:
    location = cause.location
    if location is None or not location.file:
        return "at unknown"
    return f"at {location}"


def failure_lines(cause: Optional[FailureCause]) -> list[str]:
    """Describe a failure and its cause chain, one string per line.

    Missing pieces are left out; a chain that revisits a link stops there.
    """
    if cause is None:
        return []
    lines = [_cause_header(cause), f"  {_cause_location(cause)}"]
    seen = {id(cause)}
    current = cause.cause
    depth = 0
    while current is not None and id(current) not in seen and depth < MAX_CAUSE_DEPTH:
        seen.add(id(current))
        lines.append(f"Caused by: {_cause_header(current)}")
        lines.append(f"  {_cause_location(current)}")
        current = current.cause
        depth += 1
    return lines


def brief_message(event: TestEvent) -> str:
    if not event.failures:
        return "failed"
    first = event.failures[0]
    return first.message or first.type_name or "failed"


def result_lines(style: OutputStyle, event: TestEvent) -> list[str]:
    """Result line for one test plus failure detail when it failed."""
    symbol, ansi = status_symbol(style, event.status)
    lines = [style.color(f"{RESULT_INDENT}{symbol} {event.name} {format_duration(event.duration_ms)}", ansi)]
    if event.status == TestStatus.FAILED:
        for failure in event.failures:
            lines.extend(style.color(f"{DETAIL_INDENT}{text}", ANSI_RED)
                         for text in failure_lines(failure))
    return lines


def plain_result_line(style: OutputStyle, event: TestEvent) -> str:
    symbol, _ = status_symbol(style, event.status)
    return f"{RESULT_INDENT}{symbol} {event.name}"


def group_counts(group: MethodGroup) -> str:
    text = f"{group.count} runs: {group.passed} passed"
    if group.failed:
        text += f", {group.failed} failed"
    if group.skipped:
        text += f", {group.skipped} skipped"
    return text


def group_lines(style: OutputStyle, group: MethodGroup) -> list[str]:
    """Summary line for a collapsed group plus one line per failing member."""
    if group.failed:
        symbol, ansi = style.failed, ANSI_RED
    elif group.skipped == group.count:
        symbol, ansi = style.skipped, ANSI_YELLOW
    else:
        symbol, ansi = style.passed, ANSI_GREEN
    header = (f"{RESULT_INDENT}{symbol} {group.base_name} "
              f"({group_counts(group)}) {format_duration(group.duration_ms)}")
    lines = [style.color(header, ansi)]
    for event in group.failures:
        lines.append(style.color(f"{DETAIL_INDENT}{event.name}: {brief_message(event)}", ANSI_RED))
    return lines


def progress_line(style: OutputStyle, group: MethodGroup) -> str:
    text = f"{RESULT_INDENT}{style.running} {group.base_name} [{group.count} runs"
    if group.failed:
        text += f", {group.failed} failed"
    text += "]"
    return style.color(text, ANSI_CYAN)


def suite_header(style: OutputStyle, suite_id: str) -> str:
    return style.color(f"Running {suite_id}", ANSI_YELLOW)


def suite_summary(style: OutputStyle, aggregate: SuiteAggregate) -> str:
    if aggregate.failed > 0:
        ansi = ANSI_RED
    elif aggregate.skipped > 0:
        ansi = ANSI_YELLOW
    else:
        ansi = ANSI_GREEN
    return style.color(
        f"{RESULT_INDENT}Tests run: {aggregate.total}, Failures: {aggregate.failed}, "
        f"Skipped: {aggregate.skipped}, Time: {format_seconds(aggregate.duration_ms)}",
        ansi,
    )


def totals_line(style: OutputStyle, totals: RunTotals) -> str:
    symbol = style.passed if totals.failed == 0 else style.failed
    ansi = ANSI_GREEN if totals.failed == 0 else ANSI_RED
    return style.color(
        f"{symbol} Tests: {totals.total}, Passed: {totals.passed}, "
        f"Failed: {totals.failed}, Skipped: {totals.skipped}",
        ansi,
    )


def run_header(style: OutputStyle, task_name: str) -> list[str]:
    return ["", style.line_single, f" T E S T S  ({task_name})", style.line_single]


def run_summary(style: OutputStyle, totals: RunTotals) -> list[str]:
    return [style.line_single, totals_line(style, totals), style.line_single, ""]


def total_block(style: OutputStyle, tasks_run: int, totals: RunTotals) -> list[str]:
    return [
        "",
        style.line_double,
        f" TOTAL ({tasks_run} test tasks)",
        style.line_double,
        totals_line(style, totals),
        style.line_double,
    ]
