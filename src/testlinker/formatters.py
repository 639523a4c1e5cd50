"""Output formatters for matched test results."""

import json

from .models import TestResult


class Formatter:
    """Base class for formatters."""

    def format(self, results: list[TestResult]) -> str:
        raise NotImplementedError


class SummaryFormatter(Formatter):
    """One line per result: status, external id, name and JUnit class."""

    def format(self, results: list[TestResult]) -> str:
        lines = []
        for r in results:
            tc = r.test_case
            key = tc.external_id or str(tc.id)
            marker = "" if r.attachment else "  (no attachment)"
            class_name = f" [{r.class_name}]" if r.class_name else ""
            lines.append(f"{r.status.name:<8} {key}: {tc.name}{class_name}{marker}")
        return "\n".join(lines)


class NotesFormatter(Formatter):
    """Structured blocks with the notes sent with each execution."""

    def format(self, results: list[TestResult]) -> str:
        lines = []
        separator = "-" * 80

        for i, r in enumerate(results):
            if i > 0:
                lines.append("")
            lines.append(separator)
            lines.append(f"Test case: {r.test_case.external_id or r.test_case.id} {r.test_case.name}")
            lines.append(f"Status:    {r.status.name}")
            lines.append(f"Build:     {r.build.name}")
            if r.attachment:
                lines.append(f"Attached:  {r.attachment.file_name} ({r.attachment.file_size} bytes)")
            lines.append("Notes:")
            for note_line in r.notes.rstrip("\n").split("\n"):
                lines.append(f"  {note_line}")

        if lines:
            lines.append(separator)

        return "\n".join(lines)


class JsonFormatter(Formatter):
    """Execution payloads as a JSON list, attachments included."""

    def format(self, results: list[TestResult]) -> str:
        return json.dumps([r.to_payload() for r in results], indent=2)


class IdsFormatter(Formatter):
    """Comma-separated external ids of the matched test cases."""

    def format(self, results: list[TestResult]) -> str:
        return ", ".join(r.test_case.external_id or str(r.test_case.id) for r in results)


FORMATTERS = {
    "summary": SummaryFormatter(),
    "notes": NotesFormatter(),
    "json": JsonFormatter(),
    "ids": IdsFormatter(),
}


def get_formatter(format_name: str) -> Formatter:
    """Get formatter by name, case-insensitive."""
    formatter = FORMATTERS.get(format_name.lower())
    if not formatter:
        valid = ", ".join(FORMATTERS.keys())
        raise ValueError(f"Unknown format: {format_name}. Valid: {valid}")
    return formatter
