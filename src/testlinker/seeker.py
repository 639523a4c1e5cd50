"""Seekers that turn JUnit reports into TestLink test results.

A seeker scans a directory for report files, parses each one and matches
its test cases against the automated test cases of a TestLinkReport. The
JUnit class name of a test case is compared with the value of a key custom
field of the TestLink test case; the first TestLink test case that matches
receives the execution status and a TestResult is produced for it.

Bad reports are logged and skipped. Only a failed directory scan or an
unexpected error aborts a seek, as a SeekError.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from .attachment import build_attachment
from .models import (
    Build,
    ExecutionStatus,
    JUnitCase,
    JUnitSuite,
    TestCaseRecord,
    TestLinkReport,
    TestPlan,
    TestResult,
)
from .parser import JUnitParser, ParseError
from .scanner import Scanner

logger = logging.getLogger(__name__)


class SeekErrorKind(Enum):
    """Why a seek was aborted."""
    SCAN_IO = "scan_io"
    INTERNAL = "internal"


class SeekError(Exception):
    """A seek could not complete.

    results holds the test results gathered before the failure. They are
    valid individually, but the seek as a whole must not be trusted.
    """

    def __init__(self, message: str, kind: SeekErrorKind, results: Optional[list[TestResult]] = None):
        super().__init__(message)
        self.kind = kind
        self.results = list(results or [])


def get_execution_status(case: JUnitCase) -> ExecutionStatus:
    """PASSED when the case has neither failures nor errors."""
    if case.failure_count + case.error_count <= 0:
        return ExecutionStatus.PASSED
    return ExecutionStatus.FAILED


def get_notes(case: JUnitCase) -> str:
    """Execution notes describing a JUnit test case."""
    lines = [
        f"name: {case.name}",
        f"classname: {case.class_name}",
        f"errors: {case.error_count}",
        f"failures: {case.failure_count}",
        f"time: {case.time}",
    ]
    return "\n".join(lines) + "\n"


def find_record(
    case: JUnitCase,
    known_records: Iterable[TestCaseRecord],
    key_custom_field: str,
) -> Optional[TestCaseRecord]:
    """First record whose key custom field value equals the case class name."""
    for record in known_records:
        for custom_field in record.custom_fields:
            if custom_field.name == key_custom_field and custom_field.value == case.class_name:
                return record
    return None


def match(
    case: JUnitCase,
    report_file: Union[str, Path],
    known_records: Iterable[TestCaseRecord],
    key_custom_field: str,
    build: Build,
    test_plan: TestPlan,
) -> Optional[TestResult]:
    """Build the TestResult of a JUnit test case, or None if no record matches.

    Sets the execution status of the matched record. The report file is
    attached as evidence; if it cannot be read the result is still returned,
    without attachment and with the error appended to its notes.
    """
    record = find_record(case, known_records, key_custom_field)
    if record is None:
        return None

    record.execution_status = get_execution_status(case)
    notes = get_notes(case)

    attachment = None
    try:
        attachment = build_attachment(record.version_id, report_file)
    except OSError as e:
        notes += (
            "\n\nFailed to add JUnit attachment to this test case execution. "
            f"Error message: {e}"
        )
        logger.warning(f"Failed to attach JUnit report [{report_file}]: {e}")
        logger.debug("Attachment failure details", exc_info=True)

    return TestResult(
        test_case=record,
        build=build,
        test_plan=test_plan,
        notes=notes,
        attachment=attachment,
        class_name=case.class_name,
    )


class TestResultSeeker(ABC):
    """Base class of the per-format report seekers."""

    def __init__(
        self,
        report: TestLinkReport,
        key_custom_field: str,
        scanner: Optional[Scanner] = None,
    ):
        self.report = report
        self.key_custom_field = key_custom_field
        self.scanner = scanner or Scanner()

    @abstractmethod
    def seek(self, directory: Union[str, Path], include_pattern: str) -> list[TestResult]:
        """Find the test results of the report's test cases below directory."""


class JUnitTestResultSeeker(TestResultSeeker):
    """Seeks TestLink test results in JUnit XML reports."""

    def __init__(
        self,
        report: TestLinkReport,
        key_custom_field: str,
        scanner: Optional[Scanner] = None,
        parser: Optional[JUnitParser] = None,
    ):
        super().__init__(report, key_custom_field, scanner)
        self.parser = parser or JUnitParser()

    def seek(self, directory: Union[str, Path], include_pattern: str) -> list[TestResult]:
        results: list[TestResult] = []

        if not include_pattern or not include_pattern.strip():
            logger.info("Empty JUnit include pattern. Skipping JUnit test results.")
            return results

        directory = Path(directory)

        try:
            junit_reports = self.scanner.scan(directory, include_pattern)
        except OSError as e:
            raise SeekError(
                f"IO Error scanning for include pattern [{include_pattern}]: {e}",
                SeekErrorKind.SCAN_IO,
            ) from e
        except Exception as e:
            raise SeekError(
                f"Unknown internal error scanning for include pattern [{include_pattern}]: {e}",
                SeekErrorKind.INTERNAL,
            ) from e

        logger.info(f"Found [{len(junit_reports)}] JUnit reports.")

        try:
            self._do_junit_reports(directory, junit_reports, results)
        except Exception as e:
            raise SeekError(
                f"Unknown internal error processing JUnit reports: {e}",
                SeekErrorKind.INTERNAL,
                results,
            ) from e

        return results

    def _do_junit_reports(
        self,
        directory: Path,
        junit_reports: list[str],
        results: list[TestResult],
    ) -> None:
        for junit_report in junit_reports:
            logger.info(f"Parsing [{junit_report}].")
            junit_file = directory / junit_report

            try:
                junit_suite = self.parser.parse(junit_file)
            except ParseError as e:
                logger.error(f"Failed to parse JUnit report [{junit_file}]: {e}")
                logger.debug("Parse failure details", exc_info=True)
                continue

            self._do_junit_suite(junit_suite, junit_file, results)

    def _do_junit_suite(
        self,
        junit_suite: JUnitSuite,
        junit_file: Path,
        results: list[TestResult],
    ) -> None:
        logger.info(
            f"Inspecting JUnit test suite [{junit_suite.name}]. This suite contains "
            f"[{len(junit_suite.test_cases)}] test cases, [{junit_suite.failures}] "
            f"failures and [{junit_suite.errors}] errors."
        )

        for junit_case in junit_suite.test_cases:
            logger.debug(f"Processing JUnit test [{junit_case.name}].")

            test_result = self.find_test_result(junit_case, junit_file)

            if test_result is not None:
                logger.info(
                    f"Found TestLink automated test case result in JUnit test case "
                    f"[{junit_case.name}]. Status: [{test_result.status.name}]."
                )
                results.append(test_result)
            else:
                logger.info(
                    f"Could not find TestLink automated test case result in JUnit "
                    f"test case [{junit_case.name}]."
                )

    def find_test_result(self, junit_case: JUnitCase, junit_file: Union[str, Path]) -> Optional[TestResult]:
        logger.debug(
            f"Looking for TestLink automated test case custom field "
            f"[{self.key_custom_field}] with value equals [{junit_case.class_name}]."
        )
        return match(
            junit_case,
            junit_file,
            self.report.test_cases,
            self.key_custom_field,
            build=self.report.build,
            test_plan=self.report.test_plan,
        )


def seek_all(
    directory: Union[str, Path],
    jobs: Iterable[tuple[TestResultSeeker, str]],
) -> list[TestResult]:
    """Run several (seeker, include pattern) jobs and merge their results in order."""
    results: list[TestResult] = []
    for seeker, include_pattern in jobs:
        try:
            results.extend(seeker.seek(directory, include_pattern))
        except SeekError as e:
            raise SeekError(str(e), e.kind, results + e.results) from e
    return results
