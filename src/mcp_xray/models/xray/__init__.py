"""Xray models module."""

from .common import (
    ExecutionResult,
    ImportResult,
    IssueReference,
    XrayTest,
    XrayTestExecution,
    XrayTestPlan,
    XrayTestRun,
)
from .options import (
    ExecutionFilters,
    ExecutionOptions,
    ImportOptions,
    UpdateTestRunData,
)

__all__ = [
    "ExecutionFilters",
    "ExecutionOptions",
    "ExecutionResult",
    "ImportOptions",
    "ImportResult",
    "IssueReference",
    "UpdateTestRunData",
    "XrayTest",
    "XrayTestExecution",
    "XrayTestPlan",
    "XrayTestRun",
]
