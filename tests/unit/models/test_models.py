"""Tests for the Xray pydantic models."""

import pytest
from pydantic import ValidationError

from mcp_xray.models import (
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
from tests.fixtures.xray_mocks import (
    MOCK_JIRA_EXECUTION_ISSUE,
    MOCK_JIRA_PLAN_ISSUE,
    MOCK_JIRA_TEST_ISSUE,
    MOCK_XRAY_CLOUD_IMPORT_RESPONSE,
    MOCK_XRAY_IMPORT_RESPONSE,
    MOCK_XRAY_TESTS_WITH_TEST_EXECUTION_RESPONSE,
    MOCK_XRAY_TESTS_WITH_TEST_PLAN_RESPONSE,
)


class TestXrayTest:
    def test_from_jira_issue(self):
        test = XrayTest.from_api_response(MOCK_JIRA_TEST_ISSUE)
        assert test.key == "PROJ-1"
        assert test.id == "10001"
        assert test.summary == "Login with valid credentials"
        assert test.type == "Test"
        assert test.status == "Open"
        assert test.labels == ["smoke", "login"]

    def test_missing_fields_fall_back(self):
        test = XrayTest.from_api_response({"key": "PROJ-3", "id": 3})
        assert test.id == "3"
        assert test.summary == ""
        assert test.type == "Test"
        assert test.status is None

    def test_simplified_dict_omits_unset(self):
        test = XrayTest.from_api_response({"key": "PROJ-3", "id": "3"})
        assert test.to_simplified_dict() == {
            "key": "PROJ-3",
            "id": "3",
            "summary": "",
            "type": "Test",
        }


class TestXrayTestExecution:
    def test_from_jira_issue_with_runs(self):
        execution = XrayTestExecution.from_api_response(
            MOCK_JIRA_EXECUTION_ISSUE,
            tests=MOCK_XRAY_TESTS_WITH_TEST_EXECUTION_RESPONSE,
            environments_field="customfield_testEnvironments",
        )
        assert execution.key == "PROJ-50"
        assert execution.status == "In Progress"
        assert execution.test_environments == ["Chrome", "Staging"]
        assert [run.key for run in execution.tests] == ["PROJ-1", "PROJ-2"]
        assert execution.tests[0].comment == "All good"
        assert execution.tests[1].status == "FAIL"
        assert execution.tests[1].defects == ["PROJ-900"]

    def test_without_runs(self):
        execution = XrayTestExecution.from_api_response(MOCK_JIRA_EXECUTION_ISSUE)
        assert execution.tests is None
        assert execution.test_environments is None

    def test_camel_case_output(self):
        execution = XrayTestExecution(
            key="PROJ-50",
            id="10050",
            summary="Nightly",
            test_environments=["Chrome"],
            start_date="2024-05-01",
        )
        data = execution.to_simplified_dict()
        assert data["testEnvironments"] == ["Chrome"]
        assert data["startDate"] == "2024-05-01"
        assert "test_environments" not in data


class TestXrayTestRun:
    def test_reads_keep_upstream_status(self):
        run = XrayTestRun.from_api_response({"key": "PROJ-1", "status": "BLOCKED"})
        assert run.status == "BLOCKED"

    def test_missing_status_defaults_to_todo(self):
        run = XrayTestRun.from_api_response({"key": "PROJ-1"})
        assert run.status == "TODO"
        assert run.defects is None


def test_test_plan_keeps_test_keys():
    plan = XrayTestPlan.from_api_response(
        MOCK_JIRA_PLAN_ISSUE, tests=MOCK_XRAY_TESTS_WITH_TEST_PLAN_RESPONSE
    )
    assert plan.key == "PROJ-70"
    assert plan.summary == "Release 2.0 plan"
    assert plan.tests == ["PROJ-1", "PROJ-2", "PROJ-3"]


class TestImportResult:
    def test_server_response(self):
        result = ImportResult.from_api_response(MOCK_XRAY_IMPORT_RESPONSE)
        assert result.test_exec_issue.key == "PROJ-100"
        data = result.to_simplified_dict()
        assert data["testExecIssue"]["self"].endswith("/issue/10100")
        assert data["testIssues"]["success"][0]["key"] == "PROJ-1"

    def test_unknown_fields_pass_through(self):
        result = ImportResult.from_api_response(MOCK_XRAY_CLOUD_IMPORT_RESPONSE)
        data = result.to_simplified_dict()
        assert data["key"] == "PROJ-100"
        assert data["id"] == "10100"

    def test_empty_response(self):
        assert ImportResult.from_api_response(None).to_simplified_dict() == {}


class TestOptions:
    def test_execution_options_all_optional(self):
        options = ExecutionOptions(summary="Smoke")
        assert options.test_plan_key is None
        assert options.test_environments is None

    def test_execution_options_accept_camel_case(self):
        options = ExecutionOptions.model_validate(
            {"testPlanKey": "PROJ-70", "testEnvironments": ["Chrome"]}
        )
        assert options.test_plan_key == "PROJ-70"
        assert options.test_environments == ["Chrome"]

    def test_import_query_params(self):
        options = ImportOptions(
            project_key="PROJ",
            test_plan_key="PROJ-70",
            test_environments=["Chrome", "Linux"],
            revision="abc123",
        )
        assert options.to_query_params() == {
            "projectKey": "PROJ",
            "testPlanKey": "PROJ-70",
            "testEnvironments": "Chrome;Linux",
            "revision": "abc123",
        }

    def test_every_import_option_is_sent(self):
        options = ImportOptions(
            project_key="PROJ",
            test_plan_key="PROJ-70",
            test_environments=["CI"],
            test_exec_key="PROJ-50",
            revision="abc123",
            fix_version="1.2",
        )
        params = options.to_query_params()

        assert set(params) == {
            ImportOptions.model_fields[name].alias for name in ImportOptions.model_fields
        }
        assert params["testExecKey"] == "PROJ-50"
        assert params["fixVersion"] == "1.2"

    def test_update_data_fields(self):
        assert set(UpdateTestRunData.model_fields) == {"status", "comment", "defects"}

    def test_import_query_params_project_only(self):
        assert ImportOptions(project_key="PROJ").to_query_params() == {
            "projectKey": "PROJ"
        }

    def test_filters_limit_must_be_positive(self):
        assert ExecutionFilters(project_key="PROJ").limit == 50
        with pytest.raises(ValidationError):
            ExecutionFilters(project_key="PROJ", limit=0)


def test_execution_result_defaults_to_no_tests():
    result = ExecutionResult(execution_key="PROJ-99", id="10099", summary="Smoke")
    assert result.tests == []
    assert result.to_simplified_dict()["executionKey"] == "PROJ-99"
