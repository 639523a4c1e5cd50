"""TestLink XML-RPC client for reading automated test cases."""

import logging
import xmlrpc.client
from typing import Any, Optional
from xml.parsers.expat import ExpatError

import httpx

from . import config
from .cache import FileCache
from .models import Build, CustomField, TestCaseRecord, TestLinkReport, TestPlan

logger = logging.getLogger(__name__)

# TestLink execution type of automated test cases
AUTOMATED_EXECUTION_TYPE = 2


class TestLinkClientError(Exception):
    """Error communicating with the TestLink API."""
    pass


def _read_id(data: Any, what: str) -> int:
    try:
        return int(data["id"])
    except (KeyError, TypeError, ValueError) as e:
        raise TestLinkClientError(f"Unexpected {what} in TestLink response: {data!r}") from e


class TestLinkClient:
    """Read-only client for the TestLink XML-RPC API (v1)."""

    def __init__(self, url: Optional[str] = None, dev_key: Optional[str] = None):
        self.url = url if url is not None else config.TESTLINK_URL
        self.dev_key = dev_key if dev_key is not None else config.TESTLINK_DEV_KEY
        self.cache = FileCache("testlink")
        self._client: Optional[httpx.Client] = None

    @property
    def is_configured(self) -> bool:
        """Check if the endpoint and developer key are configured."""
        return bool(self.url and self.dev_key)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers={"Content-Type": "text/xml", "Accept": "text/xml"},
                timeout=30.0,
            )
        return self._client

    def close(self):
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _call(self, method: str, **params) -> Any:
        """Invoke an API method and return its decoded result.

        TestLink reports failures as a list of {code, message} structs
        instead of XML-RPC faults; both are raised as TestLinkClientError.
        """
        if not self.is_configured:
            raise TestLinkClientError("TestLink URL and developer key are not configured")

        params = {"devKey": self.dev_key, **params}
        body = xmlrpc.client.dumps((params,), methodname=method, allow_none=True)

        logger.debug(f"Calling TestLink {method}")
        try:
            response = self._get_client().post(self.url, content=body.encode("utf-8"))
            response.raise_for_status()
            (result,), _ = xmlrpc.client.loads(response.content)
        except httpx.HTTPError as e:
            raise TestLinkClientError(f"Failed to call {method}: {e}") from e
        except xmlrpc.client.Fault as e:
            raise TestLinkClientError(f"{method} failed: {e.faultString}") from e
        except (ExpatError, xmlrpc.client.ResponseError, ValueError) as e:
            raise TestLinkClientError(f"Invalid response to {method}: {e}") from e

        if isinstance(result, list) and result and isinstance(result[0], dict) and "code" in result[0]:
            error = result[0]
            raise TestLinkClientError(
                f"{method} failed with code {error['code']}: {error.get('message', '')}"
            )

        return result

    def check_dev_key(self) -> bool:
        return bool(self._call("tl.checkDevKey"))

    def get_project_by_name(self, project_name: str) -> dict:
        result = self._call("tl.getTestProjectByName", testprojectname=project_name)
        if isinstance(result, list):
            result = result[0] if result else None
        if not result:
            raise TestLinkClientError(f"Test project not found: {project_name}")
        return result

    def get_test_plan_by_name(self, project_name: str, plan_name: str) -> TestPlan:
        result = self._call(
            "tl.getTestPlanByName",
            testprojectname=project_name,
            testplanname=plan_name,
        )
        if isinstance(result, list):
            result = result[0] if result else None
        if not result:
            raise TestLinkClientError(f"Test plan not found: {plan_name}")
        return TestPlan(id=_read_id(result, "test plan"), name=result.get("name", plan_name))

    def get_latest_build(self, plan_id: int) -> Build:
        result = self._call("tl.getLatestBuildForTestPlan", testplanid=plan_id)
        if not result or not isinstance(result, dict):
            raise TestLinkClientError(f"No builds found for test plan {plan_id}")
        return Build(id=_read_id(result, "build"), name=result.get("name", ""))

    def get_build_by_name(self, plan_id: int, build_name: str) -> Build:
        builds = self._call("tl.getBuildsForTestPlan", testplanid=plan_id) or []
        for build in builds:
            if build.get("name") == build_name:
                return Build(id=_read_id(build, "build"), name=build_name)
        raise TestLinkClientError(f"Build not found in test plan {plan_id}: {build_name}")

    def get_automated_test_cases(self, plan_id: int) -> list[dict]:
        """Automated test cases of a plan, one entry per test case.

        The API returns a mapping of test case id to per-platform entries,
        either as a list or as a dict keyed by platform id. The first entry
        is used, in the order TestLink returns them.
        """
        result = self._call(
            "tl.getTestCasesForTestPlan",
            testplanid=plan_id,
            executiontype=AUTOMATED_EXECUTION_TYPE,
        )
        if not result:
            return []
        if not isinstance(result, dict):
            raise TestLinkClientError(f"Unexpected test case list for plan {plan_id}: {result!r}")

        test_cases = []
        for entries in result.values():
            if isinstance(entries, dict):
                entries = list(entries.values())
            if entries:
                test_cases.append(entries[0])
        return test_cases

    def get_custom_field_value(
        self,
        external_id: str,
        version: int,
        project_id: int,
        field_name: str,
    ) -> Optional[str]:
        """Design-time value of a custom field, using cache if available."""
        cache_key = f"{self.url}:{project_id}:{external_id}:{version}:{field_name}"
        cached = self.cache.get(cache_key)
        if cached:
            return cached["value"]

        result = self._call(
            "tl.getTestCaseCustomFieldDesignValue",
            testcaseexternalid=external_id,
            version=version,
            testprojectid=project_id,
            customfieldname=field_name,
            details="value",
        )
        if isinstance(result, dict):
            result = result.get("value")
        value = None if result is None else str(result)

        self.cache.set(cache_key, {"value": value})
        return value

    def fetch_report(
        self,
        project_name: str,
        plan_name: str,
        key_custom_field: str,
        build_name: Optional[str] = None,
    ) -> TestLinkReport:
        """Build a TestLinkReport with the key custom field of every automated test case."""
        project = self.get_project_by_name(project_name)
        project_id = _read_id(project, "test project")
        test_plan = self.get_test_plan_by_name(project_name, plan_name)

        if build_name:
            build = self.get_build_by_name(test_plan.id, build_name)
        else:
            build = self.get_latest_build(test_plan.id)

        test_cases = []
        for entry in self.get_automated_test_cases(test_plan.id):
            try:
                external_id = entry.get("full_external_id") or entry.get("external_id", "")
                version = int(entry.get("version", 1))
                tcase_id = int(entry["tcase_id"])
                tcversion_id = int(entry["tcversion_id"])
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise TestLinkClientError(f"Unexpected test case entry in plan {test_plan.id}: {entry!r}") from e

            value = self.get_custom_field_value(external_id, version, project_id, key_custom_field)

            custom_fields = []
            if value is not None:
                custom_fields.append(CustomField(name=key_custom_field, value=value))

            test_cases.append(TestCaseRecord(
                id=tcase_id,
                name=entry.get("tcase_name", ""),
                version_id=tcversion_id,
                external_id=external_id,
                version=version,
                custom_fields=custom_fields,
            ))

        logger.info(
            f"Found [{len(test_cases)}] automated test cases in test plan "
            f"[{test_plan.name}], build [{build.name}]."
        )
        return TestLinkReport(build=build, test_plan=test_plan, test_cases=test_cases)
