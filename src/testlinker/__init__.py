"""testlinker - match JUnit reports to TestLink automated test cases."""

__version__ = "1.0.0"

from .models import ExecutionStatus, TestCaseRecord, TestLinkReport, TestResult
from .parser import ParseError, parse_report
from .seeker import JUnitTestResultSeeker, SeekError, SeekErrorKind, match, seek_all

__all__ = [
    "__version__",
    "ExecutionStatus",
    "TestCaseRecord",
    "TestLinkReport",
    "TestResult",
    "ParseError",
    "parse_report",
    "JUnitTestResultSeeker",
    "SeekError",
    "SeekErrorKind",
    "match",
    "seek_all",
]
