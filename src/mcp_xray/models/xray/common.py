"""
Common Xray entity models.

Pydantic models for tests, test runs, test executions, test plans and import
results, plus the constructors used to build them from Jira issue payloads.
"""

import logging
from typing import Any

from pydantic import ConfigDict, Field

from ..base import ApiModel

logger = logging.getLogger(__name__)


def _issue_fields(data: dict[str, Any]) -> dict[str, Any]:
    return data.get("fields") or {}


def _name_of(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    return value


class XrayTest(ApiModel):
    """Model representing an Xray test issue."""

    key: str
    id: str
    summary: str
    type: str
    status: str | None = None
    labels: list[str] | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any], **kwargs: Any) -> "XrayTest":
        """Create an XrayTest from a Jira issue response."""
        fields = _issue_fields(data)
        return cls(
            key=data["key"],
            id=data["id"],
            summary=fields.get("summary", ""),
            type=_name_of(fields.get("issuetype")) or "Test",
            status=_name_of(fields.get("status")),
            labels=fields.get("labels"),
        )


class XrayTestRun(ApiModel):
    """The result of one test within one execution.

    Reads keep the upstream status string as-is; writes are restricted to
    TEST_RUN_STATUSES.
    """

    key: str
    status: str
    comment: str | None = None
    defects: list[str] | None = None
    duration: float | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any], **kwargs: Any) -> "XrayTestRun":
        """Create an XrayTestRun from an Xray Server test-execution entry."""
        defects = data.get("defects")
        if defects:
            defects = [d.get("key") if isinstance(d, dict) else d for d in defects]
        return cls(
            key=data["key"],
            status=_name_of(data.get("status")) or "TODO",
            comment=data.get("comment") or None,
            defects=defects or None,
        )


class XrayTestExecution(ApiModel):
    """Model representing an Xray test execution issue."""

    key: str
    id: str
    summary: str
    status: str | None = None
    test_environments: list[str] | None = None
    test_plan_key: str | None = None
    tests: list[XrayTestRun] | None = None
    start_date: str | None = None
    end_date: str | None = None

    @classmethod
    def from_api_response(
        cls, data: dict[str, Any], **kwargs: Any
    ) -> "XrayTestExecution":
        """Create an XrayTestExecution from a Jira issue response.

        Keyword Args:
            tests: Raw Xray test-execution entries to embed as runs.
            environments_field: Issue field holding the test environments.
        """
        fields = _issue_fields(data)
        environments_field = kwargs.get("environments_field")
        raw_tests = kwargs.get("tests")
        return cls(
            key=data["key"],
            id=data["id"],
            summary=fields.get("summary", ""),
            status=_name_of(fields.get("status")),
            test_environments=fields.get(environments_field)
            if environments_field
            else None,
            tests=[XrayTestRun.from_api_response(t) for t in raw_tests]
            if raw_tests is not None
            else None,
        )


class XrayTestPlan(ApiModel):
    """Model representing an Xray test plan issue."""

    key: str
    id: str
    summary: str
    tests: list[str] | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any], **kwargs: Any) -> "XrayTestPlan":
        """Create an XrayTestPlan from a Jira issue response.

        Keyword Args:
            tests: Raw Xray test-plan entries; only their keys are kept.
        """
        fields = _issue_fields(data)
        raw_tests = kwargs.get("tests")
        return cls(
            key=data["key"],
            id=data["id"],
            summary=fields.get("summary", ""),
            tests=[t["key"] for t in raw_tests] if raw_tests is not None else None,
        )


class IssueReference(ApiModel):
    """Reference to an issue created or updated by an import."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    key: str | None = None
    self_: str | None = Field(default=None, alias="self")


class ImportResult(ApiModel):
    """Outcome of submitting a results payload, passed through from upstream."""

    model_config = ConfigDict(extra="allow")

    test_exec_issue: IssueReference | None = None
    # Server groups issues by outcome ({"success": [...], "error": [...]})
    test_issues: list[IssueReference] | dict[str, list[IssueReference]] | None = None
    info_messages: list[str] | None = None
    error_messages: list[str] | None = None

    @classmethod
    def from_api_response(cls, data: Any, **kwargs: Any) -> "ImportResult":
        """Wrap the upstream import response without reinterpreting it."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            return cls.model_validate({"result": data})
        return cls.model_validate(data)


class ExecutionResult(ApiModel):
    """Identity of a created execution plus the tests requested for it."""

    execution_key: str
    id: str
    summary: str
    tests: list[str] = Field(default_factory=list)
