"""Option, filter and update models accepted by the Xray client operations."""

from pydantic import Field

from ..base import ApiModel
from ..constants import DEFAULT_QUERY_LIMIT


class ExecutionOptions(ApiModel):
    """Optional settings for a new test execution."""

    test_plan_key: str | None = None
    test_environments: list[str] | None = None
    summary: str | None = None
    description: str | None = None


class ImportOptions(ApiModel):
    """Metadata submitted together with a results payload."""

    project_key: str
    test_plan_key: str | None = None
    test_environments: list[str] | None = None
    test_exec_key: str | None = None
    revision: str | None = None
    fix_version: str | None = None

    def to_query_params(self) -> dict[str, str]:
        """Metadata as import query parameters, environments joined by ';'."""
        params = {"projectKey": self.project_key}
        if self.test_plan_key:
            params["testPlanKey"] = self.test_plan_key
        if self.test_environments:
            params["testEnvironments"] = ";".join(self.test_environments)
        if self.test_exec_key:
            params["testExecKey"] = self.test_exec_key
        if self.revision:
            params["revision"] = self.revision
        if self.fix_version:
            params["fixVersion"] = self.fix_version
        return params


class ExecutionFilters(ApiModel):
    """Filters for querying test executions of a project."""

    project_key: str
    test_plan_key: str | None = None
    status: list[str] | None = None
    start_date: str | None = None
    end_date: str | None = None
    limit: int = Field(default=DEFAULT_QUERY_LIMIT, ge=1)


class UpdateTestRunData(ApiModel):
    """New result for one test inside an execution."""

    status: str
    comment: str | None = None
    defects: list[str] | None = None
