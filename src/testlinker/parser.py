"""JUnit XML report parsing logic."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Optional, Union

from .models import JUnitCase, JUnitFailure, JUnitSuite

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Report file is unreadable, not XML, or not a JUnit report."""
    pass


def _parse_count(element: ET.Element, attribute: str) -> Optional[int]:
    """Read a numeric suite attribute like failures="2"."""
    raw = element.get(attribute)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        raise ParseError(
            f"Invalid {attribute} count [{raw}] in suite [{element.get('name', '')}]"
        ) from None


def parse_failure(element: ET.Element) -> JUnitFailure:
    """Convert a <failure> or <error> element."""
    text = element.text.strip() if element.text else None
    return JUnitFailure(
        type=element.get("type"),
        message=element.get("message"),
        text=text or None,
    )


def parse_test_case(element: ET.Element) -> JUnitCase:
    """Convert a <testcase> element."""
    name = element.get("name")
    if name is None:
        raise ParseError("Found <testcase> without a name attribute")

    failures = tuple(parse_failure(child) for child in element.findall("failure"))
    errors = tuple(parse_failure(child) for child in element.findall("error"))

    return JUnitCase(
        name=name,
        class_name=element.get("classname", ""),
        time=element.get("time", "0"),
        failures=failures,
        errors=errors,
    )


def parse_suite_element(element: ET.Element, use_counts: bool = True) -> JUnitSuite:
    """Convert a single <testsuite> element, ignoring nested suites.

    With use_counts=False the count attributes are ignored and the totals
    come from the direct test cases only.
    """
    test_cases = tuple(parse_test_case(child) for child in element.findall("testcase"))

    failures = _parse_count(element, "failures") if use_counts else None
    errors = _parse_count(element, "errors") if use_counts else None
    tests = _parse_count(element, "tests") if use_counts else None

    return JUnitSuite(
        name=element.get("name", ""),
        test_cases=test_cases,
        failures=failures if failures is not None else sum(c.failure_count for c in test_cases),
        errors=errors if errors is not None else sum(c.error_count for c in test_cases),
        tests=tests if tests is not None else len(test_cases),
        time=element.get("time", "0"),
    )


def _flatten_suites(root: ET.Element) -> list[JUnitSuite]:
    # counts of a suite that wraps other suites already include them
    return [
        parse_suite_element(s, use_counts=s.find("testsuite") is None)
        for s in root.iter("testsuite")
    ]


def merge_suites(name: str, suites: Iterable[JUnitSuite], time: str = "0") -> JUnitSuite:
    """Flatten the suites of a nested document into one suite."""
    suites = list(suites)
    test_cases = tuple(case for suite in suites for case in suite.test_cases)
    return JUnitSuite(
        name=name,
        test_cases=test_cases,
        failures=sum(s.failures for s in suites),
        errors=sum(s.errors for s in suites),
        tests=sum(s.tests for s in suites),
        time=time,
    )


def parse_report(file_path: Union[str, Path]) -> JUnitSuite:
    """Parse a single JUnit report file.

    Accepts both a <testsuite> root and a <testsuites> wrapper. Every nested
    suite (at any depth) contributes its test cases to the returned suite.
    """
    file_path = Path(file_path)

    try:
        with file_path.open("rb") as report:
            root = ET.parse(report).getroot()
    except ET.ParseError as e:
        raise ParseError(f"Malformed XML in {file_path}: {e}") from e
    except OSError as e:
        raise ParseError(f"Could not read {file_path}: {e}") from e

    try:
        if root.tag == "testsuite" and root.find(".//testsuite") is None:
            return parse_suite_element(root)

        if root.tag in ("testsuite", "testsuites"):
            suites = _flatten_suites(root)
            name = root.get("name") or file_path.stem
            return merge_suites(name, suites, time=root.get("time", "0"))
    except ParseError as e:
        raise ParseError(f"Invalid JUnit report {file_path}: {e}") from e

    raise ParseError(
        f"Not a JUnit report {file_path}: unexpected root element <{root.tag}>"
    )


class JUnitParser:
    """Parser collaborator used by the seekers."""

    def parse(self, file_path: Union[str, Path]) -> JUnitSuite:
        logger.debug(f"Parsing JUnit XML {file_path}")
        return parse_report(file_path)
