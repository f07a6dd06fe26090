"""Xray Cloud backend: GraphQL for domain operations, REST for imports."""

import logging
from typing import Any

from requests import Session

from ..exceptions import MCPXrayAuthenticationError, XrayError, XrayErrorCode
from ..models import (
    ExecutionFilters,
    ExecutionOptions,
    ExecutionResult,
    ImportOptions,
    ImportResult,
    UpdateTestRunData,
    XrayTest,
    XrayTestExecution,
    XrayTestPlan,
    XrayTestRun,
)
from ..utils.decorators import handle_xray_api_errors
from ..utils.logging import mask_sensitive
from .auth import CloudTokenManager, XrayCloudAuth
from .client import XrayClient, build_execution_jql
from .config import XrayConfig
from .constants import CLOUD_AUTHENTICATE_PATH, CLOUD_GRAPHQL_PATH, IMPORT_ENDPOINTS

logger = logging.getLogger("mcp-xray.cloud")

CREATE_TEST_EXECUTION_WITH_TESTS = """
mutation CreateTestExecution($input: CreateTestExecutionInput!) {
  createTestExecution(input: $input) {
    testExecution {
      issueId
      jira(fields: ["key", "summary"])
    }
    createdTestRuns {
      issueId
    }
  }
}
"""

CREATE_TEST_EXECUTION = """
mutation CreateTestExecution($input: CreateTestExecutionInput!) {
  createTestExecution(input: $input) {
    testExecution {
      issueId
      jira(fields: ["key", "summary"])
    }
  }
}
"""

GET_TEST_EXECUTION = """
query GetTestExecution($issueId: String!) {
  getTestExecution(issueId: $issueId) {
    issueId
    testEnvironments
    jira(fields: ["key", "summary", "status"])
    testRuns(limit: 100) {
      nodes {
        test {
          issueId
          jira(fields: ["key"])
        }
        status {
          name
        }
        comment
        defects
      }
    }
  }
}
"""

UPDATE_TEST_RUN_STATUS = """
mutation UpdateTestRunStatus($input: UpdateTestRunStatusInput!) {
  updateTestRunStatus(input: $input)
}
"""

GET_TEST_EXECUTIONS = """
query GetTestExecutions($jql: String!, $limit: Int) {
  getTestExecutions(jql: $jql, limit: $limit) {
    total
    results {
      issueId
      jira(fields: ["key", "summary", "status", "created"])
    }
  }
}
"""

GET_TEST = """
query GetTest($issueId: String!) {
  getTest(issueId: $issueId) {
    issueId
    jira(fields: ["key", "summary", "status", "labels"])
    testType {
      name
    }
  }
}
"""

GET_TEST_PLAN = """
query GetTestPlan($issueId: String!) {
  getTestPlan(issueId: $issueId) {
    issueId
    jira(fields: ["key", "summary"])
    tests(limit: 100) {
      total
      results {
        issueId
        jira(fields: ["key"])
      }
    }
  }
}
"""

ADD_TESTS_TO_TEST_EXECUTION = """
mutation AddTestsToTestExecution($input: AddTestsToTestExecutionInput!) {
  addTestsToTestExecution(input: $input) {
    addedTests
  }
}
"""


def _require(data: Any, *path: str) -> Any:
    """Walk a nested GraphQL payload, failing with NOT_FOUND on any gap."""
    current = data
    for key in path:
        if not isinstance(current, dict) or current.get(key) is None:
            raise XrayError(
                f"Xray Cloud response is missing '{'.'.join(path)}'",
                XrayErrorCode.NOT_FOUND,
            )
        current = current[key]
    return current


def _optional(data: Any, *path: str) -> Any:
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _status_name(status: Any) -> str | None:
    if isinstance(status, dict):
        return status.get("name")
    return status


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class XrayCloudClient(XrayClient):
    """Client for Xray Cloud.

    Every GraphQL or import request is authorized through ``XrayCloudAuth``,
    which asks the token manager for a valid token before the request is
    sent.
    """

    def __init__(self, config: XrayConfig) -> None:
        super().__init__(config)
        self.base_url = config.cloud_base_url.rstrip("/")
        self.timeout = config.timeout

        logger.debug(
            f"Initializing Xray Cloud client. URL: {self.base_url}, "
            f"Client ID (masked): {mask_sensitive(config.client_id)}"
        )

        self.session = Session()
        self.session.headers.update({"Accept": "application/json"})
        self._configure_session(self.session, "Xray Cloud")

        self.token_manager = CloudTokenManager(self._authenticate)
        self.auth = XrayCloudAuth(self.token_manager)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _authenticate(self) -> str:
        """Exchange the client credentials for a bearer token."""
        response = self.session.post(
            self._url(CLOUD_AUTHENTICATE_PATH),
            json={
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        token = response.json()
        if not isinstance(token, str) or not token:
            raise MCPXrayAuthenticationError(
                "Xray Cloud authentication did not return a token",
                response.status_code,
            )
        return token

    def _graphql(
        self, query: str, variables: dict[str, Any], field: str
    ) -> Any:
        """Run one GraphQL operation and return ``data.<field>``.

        Raises:
            XrayError: INVALID_REQUEST when the envelope carries errors,
                NOT_FOUND when the requested field is absent.
        """
        response = self.session.post(
            self._url(CLOUD_GRAPHQL_PATH),
            json={"query": query, "variables": variables},
            auth=self.auth,
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json() or {}

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e)
                for e in errors
            )
            raise XrayError(
                f"Xray GraphQL error: {messages}",
                XrayErrorCode.INVALID_REQUEST,
                response.status_code,
                {"errors": errors},
            )

        data = payload.get("data")
        if not isinstance(data, dict) or data.get(field) is None:
            raise XrayError(
                f"Xray Cloud returned no data for {field}",
                XrayErrorCode.NOT_FOUND,
                details={"field": field},
            )
        return data[field]

    def _import(
        self,
        format: str,
        content: str,
        options: ImportOptions,
        content_type: str,
    ) -> ImportResult:
        endpoint = IMPORT_ENDPOINTS[format]
        path = f"import/execution/{endpoint}" if endpoint else "import/execution"
        params = options.to_query_params() if endpoint else None
        logger.debug(f"Importing {format} results into {options.project_key}")

        response = self.session.post(
            self._url(path),
            data=content.encode("utf-8"),
            params=params,
            headers={"Content-Type": content_type},
            auth=self.auth,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return ImportResult.from_api_response(
            response.json() if response.content else None
        )

    @handle_xray_api_errors("Xray Cloud")
    def execute_tests(
        self, test_keys: list[str], options: ExecutionOptions
    ) -> ExecutionResult:
        self._require_test_keys(test_keys)
        data = self._graphql(
            CREATE_TEST_EXECUTION_WITH_TESTS,
            {
                "input": _drop_none(
                    {
                        "testIssueIds": test_keys,
                        "testEnvironments": options.test_environments,
                        "testPlanIssueId": options.test_plan_key,
                        "summary": options.summary,
                        "description": options.description,
                    }
                )
            },
            "createTestExecution",
        )
        execution = _require(data, "testExecution")
        return ExecutionResult(
            execution_key=_require(execution, "jira", "key"),
            id=_require(execution, "issueId"),
            summary=_optional(execution, "jira", "summary") or options.summary or "",
            tests=list(test_keys),
        )

    @handle_xray_api_errors("Xray Cloud")
    def get_test_execution(self, execution_key: str) -> XrayTestExecution:
        data = self._graphql(
            GET_TEST_EXECUTION, {"issueId": execution_key}, "getTestExecution"
        )
        runs = []
        for node in _optional(data, "testRuns", "nodes") or []:
            runs.append(
                XrayTestRun(
                    key=_require(node, "test", "jira", "key"),
                    status=_status_name(node.get("status")) or "TODO",
                    comment=node.get("comment") or None,
                    defects=node.get("defects") or None,
                )
            )
        return XrayTestExecution(
            key=_require(data, "jira", "key"),
            id=_require(data, "issueId"),
            summary=_optional(data, "jira", "summary") or "",
            status=_status_name(_optional(data, "jira", "status")),
            test_environments=data.get("testEnvironments") or None,
            tests=runs,
        )

    @handle_xray_api_errors("Xray Cloud")
    def update_test_run(
        self, execution_key: str, test_key: str, data: UpdateTestRunData
    ) -> None:
        self._require_valid_status(data.status)
        self._graphql(
            UPDATE_TEST_RUN_STATUS,
            {
                "input": _drop_none(
                    {
                        "testExecIssueId": execution_key,
                        "testIssueId": test_key,
                        "status": data.status,
                        "comment": data.comment,
                        "defects": data.defects,
                    }
                )
            },
            "updateTestRunStatus",
        )

    @handle_xray_api_errors("Xray Cloud")
    def import_junit(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import("junit", content, options, "application/xml")

    @handle_xray_api_errors("Xray Cloud")
    def import_cucumber(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import("cucumber", content, options, "application/json")

    @handle_xray_api_errors("Xray Cloud")
    def import_xray_json(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import("xray-json", content, options, "application/json")

    @handle_xray_api_errors("Xray Cloud")
    def import_robot(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import("robot", content, options, "application/xml")

    @handle_xray_api_errors("Xray Cloud")
    def import_testng(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import("testng", content, options, "application/xml")

    @handle_xray_api_errors("Xray Cloud")
    def query_executions(self, filters: ExecutionFilters) -> list[XrayTestExecution]:
        data = self._graphql(
            GET_TEST_EXECUTIONS,
            {"jql": build_execution_jql(filters), "limit": filters.limit},
            "getTestExecutions",
        )
        return [
            XrayTestExecution(
                key=_require(result, "jira", "key"),
                id=_require(result, "issueId"),
                summary=_optional(result, "jira", "summary") or "",
                status=_status_name(_optional(result, "jira", "status")),
                start_date=_optional(result, "jira", "created"),
            )
            for result in data.get("results") or []
        ]

    @handle_xray_api_errors("Xray Cloud")
    def get_test(self, test_key: str) -> XrayTest:
        data = self._graphql(GET_TEST, {"issueId": test_key}, "getTest")
        return XrayTest(
            key=_require(data, "jira", "key"),
            id=_require(data, "issueId"),
            summary=_optional(data, "jira", "summary") or "",
            type=_optional(data, "testType", "name") or "Test",
            status=_status_name(_optional(data, "jira", "status")),
            labels=_optional(data, "jira", "labels"),
        )

    @handle_xray_api_errors("Xray Cloud")
    def get_test_plan(self, plan_key: str) -> XrayTestPlan:
        data = self._graphql(GET_TEST_PLAN, {"issueId": plan_key}, "getTestPlan")
        results = _optional(data, "tests", "results")
        return XrayTestPlan(
            key=_require(data, "jira", "key"),
            id=_require(data, "issueId"),
            summary=_optional(data, "jira", "summary") or "",
            tests=[_require(t, "jira", "key") for t in results]
            if results is not None
            else None,
        )

    @handle_xray_api_errors("Xray Cloud")
    def create_test_execution(
        self,
        project_key: str,
        summary: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        options = options or ExecutionOptions()
        data = self._graphql(
            CREATE_TEST_EXECUTION,
            {
                "input": _drop_none(
                    {
                        "projectKey": project_key,
                        "summary": summary,
                        "description": options.description,
                        "testEnvironments": options.test_environments,
                        "testPlanIssueId": options.test_plan_key,
                    }
                )
            },
            "createTestExecution",
        )
        execution = _require(data, "testExecution")
        return ExecutionResult(
            execution_key=_require(execution, "jira", "key"),
            id=_require(execution, "issueId"),
            summary=summary,
            tests=[],
        )

    @handle_xray_api_errors("Xray Cloud")
    def associate_tests_to_execution(
        self, execution_key: str, test_keys: list[str]
    ) -> None:
        self._require_test_keys(test_keys)
        self._graphql(
            ADD_TESTS_TO_TEST_EXECUTION,
            {"input": {"testExecIssueId": execution_key, "testIssueIds": test_keys}},
            "addTestsToTestExecution",
        )
