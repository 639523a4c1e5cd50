"""Data models for JUnit reports and TestLink records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ExecutionStatus(Enum):
    """TestLink execution statuses, valued by their API codes."""
    PASSED = "p"
    FAILED = "f"
    BLOCKED = "b"
    NOT_RUN = "n"

    @classmethod
    def from_string(cls, value: str) -> "ExecutionStatus":
        """Create status from a code or a name, case-insensitive."""
        normalized = value.lower().strip()
        for status in cls:
            if normalized in (status.value, status.name.lower()):
                return status
        raise ValueError(f"Unknown execution status: {value}")


@dataclass(frozen=True)
class JUnitFailure:
    """A <failure> or <error> element of a test case."""
    type: Optional[str] = None
    message: Optional[str] = None
    text: Optional[str] = None


@dataclass(frozen=True)
class JUnitCase:
    """Single <testcase> of a JUnit report."""
    name: str
    class_name: str
    time: str = "0"
    failures: tuple[JUnitFailure, ...] = ()
    errors: tuple[JUnitFailure, ...] = ()

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def duration(self) -> float:
        """Elapsed time in seconds, 0.0 when the report value is not numeric."""
        try:
            return float(self.time.replace(",", ""))
        except ValueError:
            return 0.0


@dataclass(frozen=True)
class JUnitSuite:
    """Parsed JUnit report, normalized to one suite."""
    name: str
    test_cases: tuple[JUnitCase, ...] = ()
    failures: int = 0
    errors: int = 0
    tests: int = 0
    time: str = "0"


@dataclass
class CustomField:
    """Named custom field value of a TestLink test case."""
    name: str
    value: str


@dataclass
class Build:
    id: int
    name: str


@dataclass
class TestPlan:
    id: int
    name: str


@dataclass
class TestCaseRecord:
    """Automated test case registered in TestLink."""
    id: int
    name: str
    version_id: int
    external_id: str = ""
    version: int = 1
    custom_fields: list[CustomField] = field(default_factory=list)
    execution_status: ExecutionStatus = ExecutionStatus.NOT_RUN

    def custom_field_value(self, name: str) -> Optional[str]:
        """Value of the first custom field called name, if any."""
        for custom_field in self.custom_fields:
            if custom_field.name == name:
                return custom_field.value
        return None


@dataclass
class TestLinkReport:
    """Build, test plan and the automated test cases known for them."""
    build: Build
    test_plan: TestPlan
    test_cases: list[TestCaseRecord] = field(default_factory=list)


@dataclass
class Attachment:
    """Report file packaged for upload as execution evidence."""
    content: str
    description: str
    file_name: str
    file_size: int
    title: str
    file_type: str

    def to_payload(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "filename": self.file_name,
            "filetype": self.file_type,
            "filesize": self.file_size,
            "content": self.content,
        }


@dataclass
class TestResult:
    """Execution result of one TestLink test case, ready for submission."""
    test_case: TestCaseRecord
    build: Build
    test_plan: TestPlan
    notes: str = ""
    attachment: Optional[Attachment] = None
    class_name: str = ""

    @property
    def status(self) -> ExecutionStatus:
        return self.test_case.execution_status

    def to_payload(self) -> dict:
        """Plain dict in the shape of a TestLink reportTCResult call."""
        return {
            "testcaseid": self.test_case.id,
            "testcaseexternalid": self.test_case.external_id,
            "version_id": self.test_case.version_id,
            "testplanid": self.test_plan.id,
            "buildid": self.build.id,
            "buildname": self.build.name,
            "status": self.status.value,
            "notes": self.notes,
            "attachment": self.attachment.to_payload() if self.attachment else None,
        }
