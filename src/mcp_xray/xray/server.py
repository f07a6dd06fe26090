"""Xray Server / Data Center backend.

Issue CRUD goes through the Jira REST API (``/rest/api/2``) and test
management through the Xray REST API (``/rest/raven/1.0``). Both
``atlassian`` clients share one requests session carrying a fixed
Authorization header.
"""

import base64
import json
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from atlassian import Jira, Xray
from requests import Session

from ..exceptions import MCPXrayConfigurationError, XrayError, XrayErrorCode
from ..models import (
    TEST_EXECUTION_ISSUE_TYPE,
    ExecutionFilters,
    ExecutionOptions,
    ExecutionResult,
    ImportOptions,
    ImportResult,
    UpdateTestRunData,
    XrayTest,
    XrayTestExecution,
    XrayTestPlan,
)
from ..utils.decorators import handle_xray_api_errors
from ..utils.logging import get_masked_session_headers
from .client import XrayClient, build_execution_jql
from .config import XrayConfig
from .constants import IMPORT_ENDPOINTS, XRAY_SERVER_API_PATH, XRAY_SERVER_IMPORT_PATH
from .steps import Step, run_steps

logger = logging.getLogger("mcp-xray.server")

QUERY_FIELDS = "key,summary,status,created"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _authorization_header(config: XrayConfig) -> str:
    if config.auth_type == "token":
        return f"Bearer {config.token}"
    if config.auth_type == "basic":
        credentials = f"{config.username}:{config.password}".encode()
        return f"Basic {base64.b64encode(credentials).decode('ascii')}"
    raise MCPXrayConfigurationError(
        f"Unsupported auth type for Xray Server: {config.auth_type!r}"
    )


def _created_issue(issue: Any) -> dict[str, Any]:
    if not isinstance(issue, dict) or not issue.get("key"):
        raise XrayError(
            "Jira did not return the created issue", XrayErrorCode.UNKNOWN_ERROR
        )
    return issue


class XrayServerClient(XrayClient):
    """Client for self-hosted Jira with the Xray app installed."""

    def __init__(self, config: XrayConfig) -> None:
        super().__init__(config)
        self.base_url = (config.base_url or "").rstrip("/")

        self.session = Session()
        self.session.headers.update(
            {
                "Authorization": _authorization_header(config),
                "Accept": "application/json",
            }
        )
        self._configure_session(self.session, "Xray Server")

        self.jira = Jira(
            url=self.base_url,
            session=self.session,
            cloud=False,
            timeout=config.timeout,
            verify_ssl=config.ssl_verify,
        )
        self.xray = Xray(
            url=self.base_url,
            session=self.session,
            cloud=False,
            timeout=config.timeout,
            verify_ssl=config.ssl_verify,
        )
        logger.debug(
            f"Xray Server client initialized for {self.base_url} "
            f"({config.auth_type} auth). Session headers: "
            f"{get_masked_session_headers(dict(self.session.headers))}"
        )

    def _fetch_concurrently(
        self, first: Callable[[], Any], second: Callable[[], Any]
    ) -> tuple[Any, Any]:
        """Run two independent reads in parallel; either failure fails both."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            first_future = executor.submit(first)
            second_future = executor.submit(second)
            return first_future.result(), second_future.result()

    def _import_info(self, options: ImportOptions) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "project": {"key": options.project_key},
            "summary": f"Test Execution - {_timestamp()}",
            "issuetype": {"name": TEST_EXECUTION_ISSUE_TYPE},
        }
        if options.test_environments:
            fields["testEnvironments"] = options.test_environments
        if options.test_plan_key:
            fields["testPlanKey"] = options.test_plan_key
        if options.fix_version:
            fields["fixVersions"] = [{"name": options.fix_version}]
        return {"fields": fields}

    def _post_raw(
        self,
        path: str,
        content: str,
        content_type: str,
        params: dict[str, str] | None = None,
    ) -> ImportResult:
        response = self.session.post(
            f"{self.base_url}/{path}",
            data=content.encode("utf-8"),
            params=params,
            headers={"Content-Type": content_type},
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        return ImportResult.from_api_response(
            response.json() if response.content else None
        )

    def _import_with_params(
        self, format: str, content: str, options: ImportOptions
    ) -> ImportResult:
        logger.debug(f"Importing {format} results into {options.project_key}")
        return self._post_raw(
            f"{XRAY_SERVER_IMPORT_PATH}/{IMPORT_ENDPOINTS[format]}",
            content,
            "application/xml",
            options.to_query_params(),
        )

    @handle_xray_api_errors("Xray Server")
    def execute_tests(
        self, test_keys: list[str], options: ExecutionOptions
    ) -> ExecutionResult:
        self._require_test_keys(test_keys)
        project_key = test_keys[0].split("-")[0]
        summary = options.summary or f"Test Execution - {_timestamp()}"
        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": TEST_EXECUTION_ISSUE_TYPE},
        }
        if options.description:
            fields["description"] = options.description

        def create_execution(state: dict[str, Any]) -> None:
            state["issue"] = _created_issue(self.jira.create_issue(fields=fields))

        def add_tests(state: dict[str, Any]) -> None:
            self.xray.update_test_execution(state["issue"]["key"], add=list(test_keys))

        def set_environments(state: dict[str, Any]) -> None:
            self.jira.update_issue_field(
                state["issue"]["key"],
                {self.config.test_environments_field: options.test_environments},
            )

        def link_test_plan(state: dict[str, Any]) -> None:
            self.xray.update_test_plan_test_executions(
                options.test_plan_key, add=[state["issue"]["key"]]
            )

        steps = [
            Step("create execution", create_execution),
            Step("add tests", add_tests),
        ]
        if options.test_environments:
            steps.append(Step("set test environments", set_environments))
        if options.test_plan_key:
            steps.append(Step("link test plan", link_test_plan))

        issue = run_steps("execute_tests", steps)["issue"]
        return ExecutionResult(
            execution_key=issue["key"],
            id=issue.get("id", ""),
            summary=summary,
            tests=list(test_keys),
        )

    @handle_xray_api_errors("Xray Server")
    def get_test_execution(self, execution_key: str) -> XrayTestExecution:
        issue, tests = self._fetch_concurrently(
            lambda: self.jira.issue(execution_key),
            lambda: self.xray.get_tests_with_test_execution(
                execution_key, detailed=True
            ),
        )
        return XrayTestExecution.from_api_response(
            issue,
            tests=tests or [],
            environments_field=self.config.test_environments_field,
        )

    @handle_xray_api_errors("Xray Server")
    def update_test_run(
        self, execution_key: str, test_key: str, data: UpdateTestRunData
    ) -> None:
        self._require_valid_status(data.status)
        payload: dict[str, Any] = {"status": data.status}
        if data.comment is not None:
            payload["comment"] = data.comment
        if data.defects:
            payload["defects"] = {"add": data.defects}

        def find_test_run(state: dict[str, Any]) -> None:
            run = self.xray.get(
                f"{XRAY_SERVER_API_PATH}/testrun",
                params={"testExecIssueKey": execution_key, "testIssueKey": test_key},
            )
            if not isinstance(run, dict) or run.get("id") is None:
                raise XrayError(
                    f"No test run for {test_key} in execution {execution_key}",
                    XrayErrorCode.NOT_FOUND,
                )
            state["test_run_id"] = run["id"]

        def update_test_run(state: dict[str, Any]) -> None:
            self.xray.put(
                f"{XRAY_SERVER_API_PATH}/testrun/{state['test_run_id']}",
                data=payload,
            )

        run_steps(
            "update_test_run",
            [
                Step("find test run", find_test_run),
                Step("update test run", update_test_run),
            ],
        )

    @handle_xray_api_errors("Xray Server")
    def import_junit(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import_with_params("junit", content, options)

    @handle_xray_api_errors("Xray Server")
    def import_cucumber(self, content: str, options: ImportOptions) -> ImportResult:
        info = self._import_info(options)
        result = self.xray.post(
            f"{XRAY_SERVER_IMPORT_PATH}/{IMPORT_ENDPOINTS['cucumber']}",
            data={"info": json.dumps(info), "result": content},
        )
        return ImportResult.from_api_response(result)

    @handle_xray_api_errors("Xray Server")
    def import_xray_json(self, content: str, options: ImportOptions) -> ImportResult:
        return self._post_raw(XRAY_SERVER_IMPORT_PATH, content, "application/json")

    @handle_xray_api_errors("Xray Server")
    def import_robot(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import_with_params("robot", content, options)

    @handle_xray_api_errors("Xray Server")
    def import_testng(self, content: str, options: ImportOptions) -> ImportResult:
        return self._import_with_params("testng", content, options)

    @handle_xray_api_errors("Xray Server")
    def query_executions(self, filters: ExecutionFilters) -> list[XrayTestExecution]:
        jql = f"{build_execution_jql(filters)} ORDER BY created DESC"
        result = self.jira.jql(jql, fields=QUERY_FIELDS, limit=filters.limit)
        issues = (result or {}).get("issues") or []
        executions = []
        for issue in issues:
            execution = XrayTestExecution.from_api_response(issue)
            execution.start_date = (issue.get("fields") or {}).get("created")
            executions.append(execution)
        return executions

    @handle_xray_api_errors("Xray Server")
    def get_test(self, test_key: str) -> XrayTest:
        return XrayTest.from_api_response(self.jira.issue(test_key))

    @handle_xray_api_errors("Xray Server")
    def get_test_plan(self, plan_key: str) -> XrayTestPlan:
        issue, tests = self._fetch_concurrently(
            lambda: self.jira.issue(plan_key),
            lambda: self.xray.get_tests_with_test_plan(plan_key),
        )
        return XrayTestPlan.from_api_response(issue, tests=tests or [])

    @handle_xray_api_errors("Xray Server")
    def create_test_execution(
        self,
        project_key: str,
        summary: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        options = options or ExecutionOptions()
        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": TEST_EXECUTION_ISSUE_TYPE},
        }
        if options.description:
            fields["description"] = options.description
        if options.test_environments:
            fields[self.config.test_environments_field] = options.test_environments

        def create_execution(state: dict[str, Any]) -> None:
            state["issue"] = _created_issue(self.jira.create_issue(fields=fields))

        def link_test_plan(state: dict[str, Any]) -> None:
            self.xray.update_test_plan_test_executions(
                options.test_plan_key, add=[state["issue"]["key"]]
            )

        steps = [Step("create execution", create_execution)]
        if options.test_plan_key:
            steps.append(Step("link test plan", link_test_plan))

        issue = run_steps("create_test_execution", steps)["issue"]
        return ExecutionResult(
            execution_key=issue["key"],
            id=issue.get("id", ""),
            summary=summary,
            tests=[],
        )

    @handle_xray_api_errors("Xray Server")
    def associate_tests_to_execution(
        self, execution_key: str, test_keys: list[str]
    ) -> None:
        self._require_test_keys(test_keys)
        self.xray.update_test_execution(execution_key, add=list(test_keys))
