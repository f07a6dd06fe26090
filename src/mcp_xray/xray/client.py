import logging
import os
from abc import ABC, abstractmethod

from requests import Session

from ..exceptions import XrayErrorCode, XrayValidationError
from ..models import (
    TEST_EXECUTION_ISSUE_TYPE,
    TEST_RUN_STATUSES,
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
from ..utils.logging import get_masked_session_headers, log_config_param
from ..utils.ssl import configure_ssl_verification
from .config import XrayConfig

# Configure logging
logger = logging.getLogger("mcp-xray")


def build_execution_jql(filters: ExecutionFilters) -> str:
    """Build the JQL conjunction selecting a project's test executions.

    Status filters are not expressed in JQL; test-run statuses live on the
    runs, not on the execution issue.
    """
    conditions = [
        f"project = {filters.project_key}",
        f'issuetype = "{TEST_EXECUTION_ISSUE_TYPE}"',
    ]
    if filters.test_plan_key:
        conditions.append(f'issue in testPlanTestExecutions("{filters.test_plan_key}")')
    if filters.start_date:
        conditions.append(f'created >= "{filters.start_date}"')
    if filters.end_date:
        conditions.append(f'created <= "{filters.end_date}"')
    if filters.status:
        logger.debug(f"Status filter {filters.status} is not applied to execution queries")
    return " AND ".join(conditions)


class XrayClient(ABC):
    """Capability interface shared by the Xray Cloud and Server backends.

    Every operation either returns a domain model or raises XrayError.
    """

    config: XrayConfig

    def __init__(self, config: XrayConfig) -> None:
        """Initialize the client with a validated configuration.

        Args:
            config: Configuration for the selected deployment
        """
        self.config = config

    def _configure_session(self, session: Session, service_name: str) -> None:
        """Apply SSL, proxy and custom header settings to an HTTP session."""
        configure_ssl_verification(
            service_name=service_name,
            url=self.config.url,
            session=session,
            ssl_verify=self.config.ssl_verify,
        )

        # Proxy configuration
        proxies = {}
        if self.config.http_proxy:
            proxies["http"] = self.config.http_proxy
        if self.config.https_proxy:
            proxies["https"] = self.config.https_proxy
        if proxies:
            session.proxies.update(proxies)
            for k, v in proxies.items():
                log_config_param(
                    logger, service_name, f"{k.upper()}_PROXY", v, sensitive=True
                )
        if self.config.no_proxy and isinstance(self.config.no_proxy, str):
            os.environ["NO_PROXY"] = self.config.no_proxy
            log_config_param(logger, service_name, "NO_PROXY", self.config.no_proxy)

        if self.config.custom_headers:
            session.headers.update(self.config.custom_headers)
            logger.debug(
                f"Added custom headers: {get_masked_session_headers(self.config.custom_headers)}"
            )

    @staticmethod
    def _require_test_keys(test_keys: list[str]) -> None:
        if not test_keys:
            raise XrayValidationError(
                "At least one test key is required", XrayErrorCode.INVALID_REQUEST
            )

    @staticmethod
    def _require_valid_status(status: str) -> None:
        if status not in TEST_RUN_STATUSES:
            allowed = ", ".join(TEST_RUN_STATUSES)
            raise XrayValidationError(
                f'Invalid test run status: "{status}". Expected one of: {allowed}',
                XrayErrorCode.INVALID_REQUEST,
            )

    def import_results(
        self, format: str, content: str, options: ImportOptions
    ) -> ImportResult:
        """Dispatch a results payload to the importer for its format."""
        importers = {
            "junit": self.import_junit,
            "cucumber": self.import_cucumber,
            "xray-json": self.import_xray_json,
            "robot": self.import_robot,
            "testng": self.import_testng,
        }
        importer = importers.get(format)
        if importer is None:
            raise XrayValidationError(
                f"Unsupported import format: {format}", XrayErrorCode.INVALID_INPUT
            )
        return importer(content, options)

    @abstractmethod
    def execute_tests(
        self, test_keys: list[str], options: ExecutionOptions
    ) -> ExecutionResult:
        """Create an execution containing the given tests."""

    @abstractmethod
    def get_test_execution(self, execution_key: str) -> XrayTestExecution:
        """Fetch an execution together with its test runs."""

    @abstractmethod
    def update_test_run(
        self, execution_key: str, test_key: str, data: UpdateTestRunData
    ) -> None:
        """Record a new status for one test within one execution."""

    @abstractmethod
    def import_junit(self, content: str, options: ImportOptions) -> ImportResult:
        """Import JUnit XML results."""

    @abstractmethod
    def import_cucumber(self, content: str, options: ImportOptions) -> ImportResult:
        """Import Cucumber JSON results."""

    @abstractmethod
    def import_xray_json(self, content: str, options: ImportOptions) -> ImportResult:
        """Import results in the native Xray JSON format."""

    @abstractmethod
    def import_robot(self, content: str, options: ImportOptions) -> ImportResult:
        """Import Robot Framework output XML."""

    @abstractmethod
    def import_testng(self, content: str, options: ImportOptions) -> ImportResult:
        """Import TestNG XML results."""

    @abstractmethod
    def query_executions(self, filters: ExecutionFilters) -> list[XrayTestExecution]:
        """List the executions of a project matching the filters."""

    @abstractmethod
    def get_test(self, test_key: str) -> XrayTest:
        """Fetch a single test."""

    @abstractmethod
    def get_test_plan(self, plan_key: str) -> XrayTestPlan:
        """Fetch a test plan and the keys of its tests."""

    @abstractmethod
    def create_test_execution(
        self,
        project_key: str,
        summary: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        """Create an empty execution in a project."""

    @abstractmethod
    def associate_tests_to_execution(
        self, execution_key: str, test_keys: list[str]
    ) -> None:
        """Add tests to an existing execution."""
