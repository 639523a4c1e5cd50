"""Pytest fixtures for testlinker tests."""

import json
import pytest

from testlinker.models import (
    Build,
    CustomField,
    JUnitCase,
    JUnitFailure,
    TestCaseRecord,
    TestLinkReport,
    TestPlan,
)

KEY_FIELD = "automated-tests"

PASSING_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuite name="com.acme.FooTest" tests="2" failures="0" errors="0" time="0.012">
  <testcase name="testFoo" classname="com.acme.FooTest" time="0.005"/>
  <testcase name="testFooAgain" classname="com.acme.FooTest" time="0.007"/>
</testsuite>
"""

FAILING_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuite name="com.acme.BarTest" tests="2" failures="1" errors="1" time="1.5">
  <testcase name="testBar" classname="com.acme.BarTest" time="0.5">
    <failure type="junit.framework.AssertionFailedError" message="expected:&lt;1&gt; but was:&lt;2&gt;">stack trace</failure>
  </testcase>
  <testcase name="testBarBroken" classname="com.acme.BarTest" time="1.0">
    <error type="java.lang.NullPointerException" message="boom"/>
  </testcase>
</testsuite>
"""

UNKNOWN_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuite name="com.acme.UnknownTest" tests="1" failures="0" errors="0">
  <testcase name="testNothing" classname="com.acme.UnknownTest" time="0.1"/>
</testsuite>
"""

INFO_XML_REVISION = """<?xml version="1.0" encoding="UTF-8"?>
<info>
<entry kind="dir" path="repo" revision="42">
<url>https://svn.example.com/repo</url>
</entry>
</info>
"""


def make_record(id, class_name, key_field=KEY_FIELD, name=None, **kwargs):
    return TestCaseRecord(
        id=id,
        name=name or f"Test case {id}",
        version_id=id + 1000,
        external_id=f"TL-{id}",
        custom_fields=[CustomField(name=key_field, value=class_name)],
        **kwargs,
    )


@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    """Keep the TestLink cache out of the user's home."""
    monkeypatch.setattr("testlinker.cache.CACHE_DIR", tmp_path / "cache")


@pytest.fixture
def build():
    return Build(id=7, name="build-42")


@pytest.fixture
def test_plan():
    return TestPlan(id=3, name="Regression")


@pytest.fixture
def foo_record():
    return make_record(10, "com.acme.FooTest", name="Foo works")


@pytest.fixture
def bar_record():
    return make_record(20, "com.acme.BarTest", name="Bar works")


@pytest.fixture
def testlink_report(build, test_plan, foo_record, bar_record):
    """Known TestLink test cases for the sample reports."""
    return TestLinkReport(build=build, test_plan=test_plan, test_cases=[foo_record, bar_record])


@pytest.fixture
def foo_case():
    return JUnitCase(name="testFoo", class_name="com.acme.FooTest", time="0.005")


@pytest.fixture
def failing_foo_case():
    return JUnitCase(
        name="testFoo",
        class_name="com.acme.FooTest",
        time="0.005",
        failures=(JUnitFailure(type="AssertionError", message="nope"),),
    )


@pytest.fixture
def report_dir(tmp_path):
    """Directory tree with passing, failing, unknown and broken reports."""
    root = tmp_path / "build"
    reports = root / "target" / "surefire-reports"
    reports.mkdir(parents=True)
    (reports / "TEST-com.acme.BarTest.xml").write_text(FAILING_REPORT)
    (reports / "TEST-com.acme.FooTest.xml").write_text(PASSING_REPORT)
    (reports / "TEST-com.acme.UnknownTest.xml").write_text(UNKNOWN_REPORT)
    (reports / "TEST-broken.xml").write_text("<testsuite><testcase name=")
    (reports / "notes.txt").write_text("not a report")
    return root


@pytest.fixture
def records_file(tmp_path):
    """JSON records file describing the sample TestLink test cases."""
    data = {
        "build": {"id": 7, "name": "build-42"},
        "test_plan": {"id": 3, "name": "Regression"},
        "test_cases": [
            {
                "id": 10,
                "name": "Foo works",
                "version_id": 1010,
                "external_id": "TL-10",
                "custom_fields": [{"name": KEY_FIELD, "value": "com.acme.FooTest"}],
            },
            {
                "id": 20,
                "name": "Bar works",
                "version_id": 1020,
                "external_id": "TL-20",
                "custom_fields": {KEY_FIELD: "com.acme.BarTest"},
            },
        ],
    }
    path = tmp_path / "records.json"
    path.write_text(json.dumps(data))
    return path
