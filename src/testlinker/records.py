"""Loading TestLink reports from JSON files."""

import json
from pathlib import Path
from typing import Any, Union

from .models import (
    Build,
    CustomField,
    ExecutionStatus,
    TestCaseRecord,
    TestLinkReport,
    TestPlan,
)


class RecordsError(Exception):
    """Records file is missing, not JSON, or incomplete."""
    pass


def parse_custom_fields(value: Any) -> list[CustomField]:
    """Accept [{"name": ..., "value": ...}] or {"name": "value"}."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [CustomField(name=str(k), value=str(v)) for k, v in value.items()]
    if isinstance(value, list):
        fields = []
        for item in value:
            if not isinstance(item, dict) or "name" not in item:
                raise RecordsError(f"Invalid custom field entry: {item!r}")
            raw = item.get("value")
            fields.append(CustomField(name=str(item["name"]), value="" if raw is None else str(raw)))
        return fields
    raise RecordsError(f"Invalid custom fields: {value!r}")


def parse_test_case(data: dict) -> TestCaseRecord:
    if not isinstance(data, dict):
        raise RecordsError(f"Invalid test case entry: {data!r}")
    status = data.get("execution_status")
    if status is not None and not isinstance(status, str):
        raise RecordsError(f"Invalid execution status {status!r} in test case {data!r}")
    try:
        return TestCaseRecord(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            version_id=int(data["version_id"]),
            external_id=str(data.get("external_id", "")),
            version=int(data.get("version", 1)),
            custom_fields=parse_custom_fields(data.get("custom_fields")),
            execution_status=ExecutionStatus.from_string(status) if status else ExecutionStatus.NOT_RUN,
        )
    except KeyError as e:
        raise RecordsError(f"Test case is missing {e.args[0]!r}: {data!r}") from e
    except (TypeError, ValueError) as e:
        raise RecordsError(f"Invalid test case {data!r}: {e}") from e


def parse_report_data(data: Any) -> TestLinkReport:
    """Build a TestLinkReport from decoded JSON."""
    if not isinstance(data, dict):
        raise RecordsError("Records file must contain a JSON object")

    try:
        build = Build(id=int(data["build"]["id"]), name=str(data["build"].get("name", "")))
        test_plan = TestPlan(id=int(data["test_plan"]["id"]), name=str(data["test_plan"].get("name", "")))
        test_cases = data["test_cases"]
    except KeyError as e:
        raise RecordsError(f"Records file is missing {e.args[0]!r}") from e
    except (TypeError, ValueError, AttributeError) as e:
        raise RecordsError(f"Invalid build or test plan: {e}") from e

    if not isinstance(test_cases, list):
        raise RecordsError("test_cases must be a list")

    return TestLinkReport(
        build=build,
        test_plan=test_plan,
        test_cases=[parse_test_case(tc) for tc in test_cases],
    )


def load_report(path: Union[str, Path]) -> TestLinkReport:
    """Load a TestLinkReport from a JSON records file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RecordsError(f"Could not read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RecordsError(f"Invalid JSON in {path}: {e}") from e
    return parse_report_data(data)
