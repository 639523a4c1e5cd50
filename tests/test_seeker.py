"""Tests for matching JUnit results to TestLink test cases."""

import logging
from unittest.mock import MagicMock

import pytest

from testlinker.models import (
    CustomField,
    ExecutionStatus,
    JUnitCase,
    JUnitFailure,
    JUnitSuite,
    TestLinkReport,
)
from testlinker.parser import ParseError
from testlinker.seeker import (
    JUnitTestResultSeeker,
    SeekError,
    SeekErrorKind,
    find_record,
    get_execution_status,
    get_notes,
    match,
    seek_all,
)

from conftest import FAILING_REPORT, KEY_FIELD, PASSING_REPORT, make_record


@pytest.fixture
def report_file(tmp_path):
    path = tmp_path / "TEST-com.acme.FooTest.xml"
    path.write_text(PASSING_REPORT)
    return path


@pytest.fixture
def seeker(testlink_report):
    return JUnitTestResultSeeker(testlink_report, KEY_FIELD)


class TestExecutionStatus:
    """Tests for status derivation."""

    def test_passed_without_failures_or_errors(self, foo_case):
        assert get_execution_status(foo_case) == ExecutionStatus.PASSED

    def test_failed_with_failure(self, failing_foo_case):
        assert get_execution_status(failing_foo_case) == ExecutionStatus.FAILED

    def test_failed_with_error_only(self):
        case = JUnitCase(name="t", class_name="C", errors=(JUnitFailure(),))
        assert get_execution_status(case) == ExecutionStatus.FAILED


class TestNotes:
    """Tests for execution notes."""

    def test_fixed_order(self, foo_case):
        assert get_notes(foo_case) == (
            "name: testFoo\n"
            "classname: com.acme.FooTest\n"
            "errors: 0\n"
            "failures: 0\n"
            "time: 0.005\n"
        )

    def test_counts(self):
        case = JUnitCase(
            name="t",
            class_name="C",
            time="2",
            failures=(JUnitFailure(),),
            errors=(JUnitFailure(), JUnitFailure()),
        )
        assert "errors: 2\nfailures: 1\n" in get_notes(case)


class TestFindRecord:
    """Tests for key custom field lookup."""

    def test_matches_key_field_value(self, foo_case, foo_record, bar_record):
        assert find_record(foo_case, [bar_record, foo_record], KEY_FIELD) is foo_record

    def test_requires_key_field_name(self, foo_case):
        record = make_record(1, "com.acme.FooTest", key_field="other-field")
        assert find_record(foo_case, [record], KEY_FIELD) is None

    def test_requires_exact_value(self, foo_case):
        record = make_record(1, "com.acme.footest")
        assert find_record(foo_case, [record], KEY_FIELD) is None

    def test_first_record_wins(self, foo_case):
        first = make_record(1, "com.acme.FooTest")
        second = make_record(2, "com.acme.FooTest")
        assert find_record(foo_case, [first, second], KEY_FIELD) is first

    def test_checks_every_custom_field(self, foo_case):
        record = make_record(1, "unrelated")
        record.custom_fields.append(CustomField(KEY_FIELD, "com.acme.FooTest"))
        assert find_record(foo_case, [record], KEY_FIELD) is record

    def test_no_records(self, foo_case):
        assert find_record(foo_case, [], KEY_FIELD) is None


class TestMatch:
    """Tests for match."""

    def test_passed_scenario(self, foo_case, foo_record, report_file, build, test_plan):
        result = match(foo_case, report_file, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)

        assert result is not None
        assert result.test_case is foo_record
        assert result.status == ExecutionStatus.PASSED
        assert foo_record.execution_status == ExecutionStatus.PASSED
        assert result.notes.startswith(
            "name: testFoo\nclassname: com.acme.FooTest\nerrors: 0\nfailures: 0\n"
        )
        assert result.build is build
        assert result.test_plan is test_plan
        assert result.class_name == "com.acme.FooTest"

    def test_failed_scenario(self, failing_foo_case, foo_record, report_file, build, test_plan):
        result = match(failing_foo_case, report_file, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)
        assert result.status == ExecutionStatus.FAILED
        assert foo_record.execution_status == ExecutionStatus.FAILED

    def test_attaches_report(self, foo_case, foo_record, report_file, build, test_plan):
        result = match(foo_case, report_file, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)
        assert result.attachment is not None
        assert result.attachment.file_name == "TEST-com.acme.FooTest.xml"
        assert result.attachment.file_size == report_file.stat().st_size

    def test_no_match_returns_none(self, foo_case, bar_record, report_file, build, test_plan):
        result = match(foo_case, report_file, [bar_record], KEY_FIELD, build=build, test_plan=test_plan)
        assert result is None
        assert bar_record.execution_status == ExecutionStatus.NOT_RUN

    def test_idempotent(self, foo_case, foo_record, report_file, build, test_plan):
        first = match(foo_case, report_file, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)
        second = match(foo_case, report_file, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)
        assert first.notes == second.notes
        assert first.status == second.status
        assert first.attachment == second.attachment

    def test_unreadable_report_keeps_result(self, foo_case, foo_record, tmp_path, build, test_plan):
        missing = tmp_path / "gone.xml"

        result = match(foo_case, missing, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)

        assert result is not None
        assert result.attachment is None
        assert result.status == ExecutionStatus.PASSED
        assert result.notes.startswith(get_notes(foo_case))
        assert "\n\nFailed to add JUnit attachment to this test case execution. Error message: " in result.notes

    def test_attachment_error_is_logged(self, foo_case, foo_record, tmp_path, build, test_plan, caplog):
        caplog.set_level(logging.DEBUG, logger="testlinker")
        match(foo_case, tmp_path / "gone.xml", [foo_record], KEY_FIELD, build=build, test_plan=test_plan)
        assert "Failed to attach JUnit report" in caplog.text

    def test_attachment_built_for_record_version(self, foo_case, foo_record, report_file, build, test_plan, monkeypatch):
        calls = []

        def fake_build_attachment(version_id, path):
            calls.append((version_id, path))
            raise PermissionError("denied")

        monkeypatch.setattr("testlinker.seeker.build_attachment", fake_build_attachment)
        result = match(foo_case, report_file, [foo_record], KEY_FIELD, build=build, test_plan=test_plan)

        assert calls == [(foo_record.version_id, report_file)]
        assert result.notes.endswith("Error message: denied")


class TestSeek:
    """Tests for JUnitTestResultSeeker.seek."""

    @pytest.mark.parametrize("pattern", ["", "   ", "\t\n", None])
    def test_blank_pattern_skips_scan(self, testlink_report, report_dir, pattern):
        scanner = MagicMock()
        seeker = JUnitTestResultSeeker(testlink_report, KEY_FIELD, scanner=scanner)

        assert seeker.seek(report_dir, pattern) == []
        scanner.scan.assert_not_called()

    def test_no_matching_files(self, seeker, report_dir):
        assert seeker.seek(report_dir, "**/*.json") == []

    def test_finds_results_in_file_then_case_order(self, seeker, report_dir):
        results = seeker.seek(report_dir, "**/TEST-*.xml")

        # Bar report sorts before Foo report; the broken and unknown ones add nothing
        assert [r.test_case.id for r in results] == [20, 20, 10, 10]
        assert [r.notes.split("\n")[0] for r in results] == [
            "name: testBar",
            "name: testBarBroken",
            "name: testFoo",
            "name: testFooAgain",
        ]

    def test_sets_statuses(self, seeker, report_dir, foo_record, bar_record):
        seeker.seek(report_dir, "**/TEST-*.xml")
        assert foo_record.execution_status == ExecutionStatus.PASSED
        assert bar_record.execution_status == ExecutionStatus.FAILED

    def test_results_come_from_known_records(self, seeker, report_dir, testlink_report):
        results = seeker.seek(report_dir, "**/TEST-*.xml")
        for result in results:
            assert any(result.test_case is tc for tc in testlink_report.test_cases)
            assert result.build is testlink_report.build
            assert result.test_plan is testlink_report.test_plan

    def test_unmatched_cases_are_excluded(self, seeker, report_dir):
        results = seeker.seek(report_dir, "**/TEST-com.acme.UnknownTest.xml")
        assert results == []

    def test_parse_error_skips_file(self, seeker, report_dir, caplog):
        caplog.set_level(logging.INFO, logger="testlinker")
        results = seeker.seek(report_dir, "**/TEST-broken.xml, **/TEST-com.acme.FooTest.xml")

        assert len(results) == 2
        assert "Failed to parse JUnit report" in caplog.text
        assert "TEST-broken.xml" in caplog.text

    def test_last_report_sets_shared_record_status(self, tmp_path, foo_record, build, test_plan):
        directory = tmp_path / "reports"
        directory.mkdir()
        (directory / "TEST-1.xml").write_text(PASSING_REPORT)
        (directory / "TEST-2.xml").write_text(
            '<testsuite name="again">'
            '<testcase name="testFoo" classname="com.acme.FooTest"><failure/></testcase>'
            '</testsuite>'
        )
        report = TestLinkReport(build=build, test_plan=test_plan, test_cases=[foo_record])

        results = JUnitTestResultSeeker(report, KEY_FIELD).seek(directory, "TEST-*.xml")

        assert len(results) == 3
        assert all(r.test_case is foo_record for r in results)
        assert foo_record.execution_status == ExecutionStatus.FAILED
        assert results[-1].attachment.file_name == "TEST-2.xml"

    def test_missing_directory_is_scan_error(self, seeker, tmp_path):
        with pytest.raises(SeekError) as excinfo:
            seeker.seek(tmp_path / "missing", "**/*.xml")
        assert excinfo.value.kind == SeekErrorKind.SCAN_IO
        assert "**/*.xml" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_unexpected_parser_failure_aborts(self, testlink_report, report_dir):
        parser = MagicMock()
        good_suite = JUnitSuite(
            name="Foo",
            test_cases=(JUnitCase(name="testFoo", class_name="com.acme.FooTest"),),
        )
        parser.parse.side_effect = [good_suite, RuntimeError("defect")]
        seeker = JUnitTestResultSeeker(testlink_report, KEY_FIELD, parser=parser)

        with pytest.raises(SeekError) as excinfo:
            seeker.seek(report_dir, "**/TEST-*.xml")

        assert excinfo.value.kind == SeekErrorKind.INTERNAL
        assert len(excinfo.value.results) == 1
        assert parser.parse.call_count == 2

    def test_parse_error_from_parser_is_recovered(self, testlink_report, report_dir):
        parser = MagicMock()
        parser.parse.side_effect = ParseError("bad")
        seeker = JUnitTestResultSeeker(testlink_report, KEY_FIELD, parser=parser)

        assert seeker.seek(report_dir, "**/TEST-*.xml") == []
        assert parser.parse.call_count == 4

    def test_unexpected_scanner_failure_is_internal(self, testlink_report, report_dir):
        scanner = MagicMock()
        scanner.scan.side_effect = KeyError("defect")
        seeker = JUnitTestResultSeeker(testlink_report, KEY_FIELD, scanner=scanner)

        with pytest.raises(SeekError) as excinfo:
            seeker.seek(report_dir, "**/*.xml")
        assert excinfo.value.kind == SeekErrorKind.INTERNAL

    def test_find_test_result_uses_report(self, seeker, foo_case, report_file, foo_record):
        result = seeker.find_test_result(foo_case, report_file)
        assert result.test_case is foo_record


class TestSeekAll:
    """Tests for running several seekers."""

    def test_merges_in_job_order(self, testlink_report, report_dir):
        seeker = JUnitTestResultSeeker(testlink_report, KEY_FIELD)
        results = seek_all(report_dir, [
            (seeker, "**/TEST-com.acme.FooTest.xml"),
            (seeker, ""),
            (seeker, "**/TEST-com.acme.BarTest.xml"),
        ])
        assert [r.test_case.id for r in results] == [10, 10, 20, 20]

    def test_error_keeps_earlier_results(self, testlink_report, report_dir, tmp_path):
        seeker = JUnitTestResultSeeker(testlink_report, KEY_FIELD)
        failing = MagicMock()
        failing.seek.side_effect = SeekError("scan failed", SeekErrorKind.SCAN_IO)

        with pytest.raises(SeekError) as excinfo:
            seek_all(report_dir, [(seeker, "**/TEST-com.acme.FooTest.xml"), (failing, "**/*.xml")])

        assert excinfo.value.kind == SeekErrorKind.SCAN_IO
        assert len(excinfo.value.results) == 2
