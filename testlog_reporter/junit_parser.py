"""
JUnit XML report parser.

Reads the per-suite result files written by test backends that do not report
results while they run (Kotlin/JS, Kotlin/Native, external runners).
Files that are not well-formed XML are rejected with ValueError rather than
read in part.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from .models import SourceLocation, TestCase, TestStatus, TestSuite

logger = logging.getLogger(__name__)

# "at com.example.FooTest.check(FooTest.kt:42)"
JAVA_FRAME_RE = re.compile(r'\(([^()\s:]+):(\d+)\)')
# 'File "tests/test_foo.py", line 12, in test_check'
PYTHON_FRAME_RE = re.compile(r'File "([^"]+)", line (\d+)')


def _int_attr(element, name: str) -> int:
    try:
        return int(float(element.get(name) or 0))
    except (TypeError, ValueError):
        return 0


def _float_attr(element, name: str) -> float:
    try:
        return float(element.get(name) or 0.0)
    except (TypeError, ValueError):
        return 0.0


def first_frame_location(stack_trace: Optional[str]) -> Optional[SourceLocation]:
    """Best-effort location of the first frame in a Java or Python stack trace."""
    if not stack_trace:
        return None
    match = JAVA_FRAME_RE.search(stack_trace) or PYTHON_FRAME_RE.search(stack_trace)
    if not match:
        return None
    return SourceLocation(match.group(1), int(match.group(2)))


class JUnitParser:
    """Parses JUnit-style XML into TestSuite models."""

    def parse_file(self, path) -> list[TestSuite]:
        path = Path(path)
        logger.debug(f"Parsing {path}")
        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            raise ValueError(f"Malformed JUnit XML in {path.name}: {e}") from e
        return self._parse_root(root)

    def parse_string(self, text) -> list[TestSuite]:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise ValueError(f"Malformed JUnit XML: {e}") from e
        return self._parse_root(root)

    def _parse_root(self, root) -> list[TestSuite]:
        elements = list(root.iter('testsuite'))
        if not elements:
            raise ValueError("No <testsuite> element found")
        return [self._parse_suite(element) for element in elements]

    def _parse_suite(self, element) -> TestSuite:
        cases = [self._parse_case(tc) for tc in element.findall('testcase')]
        tests = _int_attr(element, 'tests') if element.get('tests') is not None else len(cases)
        return TestSuite(
            name=element.get('name') or 'unknown',
            tests=tests,
            failures=_int_attr(element, 'failures'),
            errors=_int_attr(element, 'errors'),
            skipped=_int_attr(element, 'skipped'),
            time_seconds=_float_attr(element, 'time'),
            test_cases=cases,
        )

    def _parse_case(self, element) -> TestCase:
        failure = element.find('failure')
        if failure is None:
            failure = element.find('error')
        if failure is not None:
            status = TestStatus.FAILED
        elif element.find('skipped') is not None:
            status = TestStatus.SKIPPED
        else:
            status = TestStatus.PASSED

        case = TestCase(
            name=element.get('name') or 'unknown',
            classname=element.get('classname') or '',
            status=status,
            duration_seconds=_float_attr(element, 'time'),
        )
        if failure is not None:
            case.failure_message = failure.get('message')
            case.failure_type = failure.get('type')
            case.stack_trace = ''.join(failure.itertext()).strip() or None
        return case
