"""
Pydantic models for Xray API responses and requests.
"""

from .base import ApiModel
from .constants import (
    DEFAULT_QUERY_LIMIT,
    TEST_EXECUTION_ISSUE_TYPE,
    TEST_RUN_STATUSES,
    TestResultFormat,
    TestRunStatus,
)
from .xray import (
    ExecutionFilters,
    ExecutionOptions,
    ExecutionResult,
    ImportOptions,
    ImportResult,
    IssueReference,
    UpdateTestRunData,
    XrayTest,
    XrayTestExecution,
    XrayTestPlan,
    XrayTestRun,
)

__all__ = [
    "ApiModel",
    "DEFAULT_QUERY_LIMIT",
    "ExecutionFilters",
    "ExecutionOptions",
    "ExecutionResult",
    "ImportOptions",
    "ImportResult",
    "IssueReference",
    "TEST_EXECUTION_ISSUE_TYPE",
    "TEST_RUN_STATUSES",
    "TestResultFormat",
    "TestRunStatus",
    "UpdateTestRunData",
    "XrayTest",
    "XrayTestExecution",
    "XrayTestPlan",
    "XrayTestRun",
]
