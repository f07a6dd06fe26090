"""Constants shared by the Xray models."""

from typing import Final, Literal, get_args

TestRunStatus = Literal["PASS", "FAIL", "EXECUTING", "TODO", "ABORTED"]
TEST_RUN_STATUSES: Final[tuple[str, ...]] = get_args(TestRunStatus)

TestResultFormat = Literal["junit", "cucumber", "xray-json", "robot", "testng"]

TEST_EXECUTION_ISSUE_TYPE: Final = "Test Execution"
DEFAULT_QUERY_LIMIT: Final = 50
