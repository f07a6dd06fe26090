"""Xray FastMCP server instance and tool definitions."""

import asyncio
import json
import logging
from typing import Annotated

from fastmcp import Context, FastMCP
from pydantic import Field

from mcp_xray.models import (
    DEFAULT_QUERY_LIMIT,
    ExecutionFilters,
    ExecutionOptions,
    ImportOptions,
    TestResultFormat,
    TestRunStatus,
    UpdateTestRunData,
)
from mcp_xray.servers.dependencies import get_xray_fetcher
from mcp_xray.utils.decorators import check_write_access, convert_tool_errors
from mcp_xray.utils.errors import validate_project_key, validate_test_key

logger = logging.getLogger(__name__)

xray_mcp = FastMCP(
    name="Xray MCP Service",
    instructions="Xray test management tools for importing results and managing test executions.",
)


def _validate_keys(keys: list[str] | None) -> None:
    for key in keys or []:
        validate_test_key(key)


def _dumps(data: object) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


# Results import


@xray_mcp.tool(tags={"xray", "write"})
@convert_tool_errors
@check_write_access
async def import_test_results(
    ctx: Context,
    format: Annotated[
        TestResultFormat,
        Field(description="Format of the test results to import"),
    ],
    results: Annotated[
        str, Field(description="Test results content as XML or JSON string")
    ],
    projectKey: Annotated[str, Field(description='Jira project key (e.g., "PROJ")')],
    testPlanKey: Annotated[
        str | None,
        Field(
            description='Optional: Test plan key to associate results with (e.g., "PROJ-123")'
        ),
    ] = None,
    testEnvironments: Annotated[
        list[str] | None,
        Field(description='Optional: Test environments (e.g., ["Chrome", "Production"])'),
    ] = None,
    testExecKey: Annotated[
        str | None,
        Field(description="Optional: Existing test execution key to update"),
    ] = None,
) -> str:
    """
    Import automated test execution results from various formats (JUnit, Cucumber, Xray JSON, Robot Framework, TestNG).

    Args:
        ctx: The FastMCP context.
        format: Format of the results payload.
        results: Raw results payload.
        projectKey: Jira project key.
        testPlanKey: Optional test plan key.
        testEnvironments: Optional test environments.
        testExecKey: Optional existing execution to import into.

    Returns:
        JSON string with the import result as returned by Xray.

    Raises:
        ValueError: If in read-only mode or Xray client is unavailable.
    """
    validate_project_key(projectKey)
    if testPlanKey:
        validate_test_key(testPlanKey)
    if testExecKey:
        validate_test_key(testExecKey)

    xray = await get_xray_fetcher(ctx)
    options = ImportOptions(
        project_key=projectKey,
        test_plan_key=testPlanKey,
        test_environments=testEnvironments,
        test_exec_key=testExecKey,
    )
    result = await asyncio.to_thread(xray.import_results, format, results, options)
    return _dumps(result.to_simplified_dict())


# Execution management


@xray_mcp.tool(tags={"xray", "write"})
@convert_tool_errors
@check_write_access
async def execute_tests(
    ctx: Context,
    testKeys: Annotated[
        list[str],
        Field(description='Array of test issue keys (e.g., ["PROJ-123", "PROJ-124"])'),
    ],
    testPlanKey: Annotated[
        str | None,
        Field(description="Optional: Test plan key to associate execution with"),
    ] = None,
    testEnvironments: Annotated[
        list[str] | None,
        Field(description='Optional: Test environments (e.g., ["Chrome", "Production"])'),
    ] = None,
    summary: Annotated[
        str | None,
        Field(description="Optional: Summary/title for the test execution"),
    ] = None,
    description: Annotated[
        str | None,
        Field(description="Optional: Detailed description of the test execution"),
    ] = None,
) -> str:
    """
    Create and execute a test run in Xray for specified test cases.

    Args:
        ctx: The FastMCP context.
        testKeys: Tests to include in the new execution.
        testPlanKey: Optional test plan to link the execution to.
        testEnvironments: Optional test environments.
        summary: Optional execution summary.
        description: Optional execution description.

    Returns:
        Summary of the created execution.

    Raises:
        ValueError: If in read-only mode or Xray client is unavailable.
    """
    _validate_keys(testKeys)
    if testPlanKey:
        validate_test_key(testPlanKey)

    xray = await get_xray_fetcher(ctx)
    options = ExecutionOptions(
        test_plan_key=testPlanKey,
        test_environments=testEnvironments,
        summary=summary,
        description=description,
    )
    result = await asyncio.to_thread(xray.execute_tests, testKeys, options)
    return (
        "Test execution created successfully:\n\n"
        f"Execution Key: {result.execution_key}\n"
        f"Summary: {result.summary}\n"
        f"Tests: {', '.join(result.tests)}"
    )


@xray_mcp.tool(tags={"xray", "read"})
@convert_tool_errors
async def query_test_executions(
    ctx: Context,
    projectKey: Annotated[str, Field(description="Jira project key")],
    testPlanKey: Annotated[
        str | None, Field(description="Optional: Filter by test plan key")
    ] = None,
    status: Annotated[
        list[TestRunStatus] | None,
        Field(description="Optional: Filter by execution status"),
    ] = None,
    startDate: Annotated[
        str | None,
        Field(
            description="Optional: Filter executions created after this date (ISO 8601 format)"
        ),
    ] = None,
    endDate: Annotated[
        str | None,
        Field(
            description="Optional: Filter executions created before this date (ISO 8601 format)"
        ),
    ] = None,
    limit: Annotated[
        int,
        Field(
            description="Optional: Maximum number of results to return (default: 50)",
            ge=1,
        ),
    ] = DEFAULT_QUERY_LIMIT,
) -> str:
    """
    Query and filter test executions in Xray.

    Args:
        ctx: The FastMCP context.
        projectKey: Jira project key.
        testPlanKey: Optional test plan the executions belong to.
        status: Optional status filter.
        startDate: Optional lower bound on creation date.
        endDate: Optional upper bound on creation date.
        limit: Maximum number of results.

    Returns:
        Count of matching executions followed by their JSON representation.

    Raises:
        ValueError: If the Xray client is not configured or available.
    """
    validate_project_key(projectKey)
    if testPlanKey:
        validate_test_key(testPlanKey)

    xray = await get_xray_fetcher(ctx)
    filters = ExecutionFilters(
        project_key=projectKey,
        test_plan_key=testPlanKey,
        status=list(status) if status else None,
        start_date=startDate,
        end_date=endDate,
        limit=limit,
    )
    executions = await asyncio.to_thread(xray.query_executions, filters)
    data = [execution.to_simplified_dict() for execution in executions]
    return f"Found {len(data)} test executions:\n\n{_dumps(data)}"


@xray_mcp.tool(tags={"xray", "read"})
@convert_tool_errors
async def get_test_info(
    ctx: Context,
    testKey: Annotated[str, Field(description='Test issue key (e.g., "PROJ-123")')],
) -> str:
    """
    Retrieve detailed information about a specific test case.

    Args:
        ctx: The FastMCP context.
        testKey: Test issue key.

    Returns:
        JSON string representing the test.

    Raises:
        ValueError: If the Xray client is not configured or available.
    """
    validate_test_key(testKey)
    xray = await get_xray_fetcher(ctx)
    test = await asyncio.to_thread(xray.get_test, testKey)
    return _dumps(test.to_simplified_dict())


@xray_mcp.tool(tags={"xray", "write"})
@convert_tool_errors
@check_write_access
async def create_test_execution(
    ctx: Context,
    projectKey: Annotated[str, Field(description="Jira project key")],
    summary: Annotated[str, Field(description="Execution summary/title")],
    description: Annotated[
        str | None, Field(description="Optional: Detailed description")
    ] = None,
    testPlanKey: Annotated[
        str | None, Field(description="Optional: Test plan key to associate with")
    ] = None,
    testEnvironments: Annotated[
        list[str] | None, Field(description="Optional: Execution environments")
    ] = None,
) -> str:
    """
    Create a new test execution container in Xray.

    Args:
        ctx: The FastMCP context.
        projectKey: Jira project key.
        summary: Execution summary.
        description: Optional description.
        testPlanKey: Optional test plan to link the execution to.
        testEnvironments: Optional test environments.

    Returns:
        Key and summary of the created execution.

    Raises:
        ValueError: If in read-only mode or Xray client is unavailable.
    """
    validate_project_key(projectKey)
    if testPlanKey:
        validate_test_key(testPlanKey)

    xray = await get_xray_fetcher(ctx)
    options = ExecutionOptions(
        test_plan_key=testPlanKey,
        test_environments=testEnvironments,
        description=description,
    )
    result = await asyncio.to_thread(
        xray.create_test_execution, projectKey, summary, options
    )
    return (
        "Test execution created:\n\n"
        f"Key: {result.execution_key}\n"
        f"Summary: {result.summary}"
    )


@xray_mcp.tool(tags={"xray", "write"})
@convert_tool_errors
@check_write_access
async def update_test_execution(
    ctx: Context,
    executionKey: Annotated[
        str, Field(description='Test execution key (e.g., "PROJ-456")')
    ],
    testKey: Annotated[str, Field(description='Test key to update (e.g., "PROJ-123")')],
    status: Annotated[TestRunStatus, Field(description="Test status")],
    comment: Annotated[
        str | None, Field(description="Optional: Comment about the execution")
    ] = None,
    defects: Annotated[
        list[str] | None, Field(description="Optional: Associated defect keys")
    ] = None,
) -> str:
    """
    Update status and details of a test within an execution.

    Args:
        ctx: The FastMCP context.
        executionKey: Execution containing the test.
        testKey: Test whose run is updated.
        status: New run status.
        comment: Optional comment.
        defects: Optional defect keys to link.

    Returns:
        Confirmation message.

    Raises:
        ValueError: If in read-only mode or Xray client is unavailable.
    """
    validate_test_key(executionKey)
    validate_test_key(testKey)
    _validate_keys(defects)

    xray = await get_xray_fetcher(ctx)
    data = UpdateTestRunData(status=status, comment=comment, defects=defects)
    await asyncio.to_thread(xray.update_test_run, executionKey, testKey, data)
    return f"Test {testKey} in execution {executionKey} updated to status: {status}"


@xray_mcp.tool(tags={"xray", "read"})
@convert_tool_errors
async def get_test_plans(
    ctx: Context,
    projectKey: Annotated[str, Field(description="Jira project key")],
    limit: Annotated[
        int,
        Field(description="Optional: Maximum number of results (default: 50)", ge=1),
    ] = DEFAULT_QUERY_LIMIT,
) -> str:
    """
    List test plans in a project.

    Args:
        ctx: The FastMCP context.
        projectKey: Jira project key.
        limit: Maximum number of results.

    Returns:
        JSON list of the project's test executions.

    Raises:
        ValueError: If the Xray client is not configured or available.
    """
    validate_project_key(projectKey)
    xray = await get_xray_fetcher(ctx)
    filters = ExecutionFilters(project_key=projectKey, limit=limit)
    executions = await asyncio.to_thread(xray.query_executions, filters)
    return _dumps([execution.to_simplified_dict() for execution in executions])


@xray_mcp.tool(tags={"xray", "write"})
@convert_tool_errors
@check_write_access
async def associate_tests_to_execution(
    ctx: Context,
    executionKey: Annotated[str, Field(description="Test execution key")],
    testKeys: Annotated[list[str], Field(description="Array of test keys to add")],
) -> str:
    """
    Add test cases to an existing test execution.

    Args:
        ctx: The FastMCP context.
        executionKey: Execution to add the tests to.
        testKeys: Tests to add.

    Returns:
        Confirmation message.

    Raises:
        ValueError: If in read-only mode or Xray client is unavailable.
    """
    validate_test_key(executionKey)
    _validate_keys(testKeys)

    xray = await get_xray_fetcher(ctx)
    await asyncio.to_thread(xray.associate_tests_to_execution, executionKey, testKeys)
    return f"Successfully associated {len(testKeys)} tests to execution {executionKey}"


@xray_mcp.tool(tags={"xray", "read"})
@convert_tool_errors
async def get_test_execution(
    ctx: Context,
    executionKey: Annotated[
        str, Field(description='Test execution key (e.g., "PROJ-456")')
    ],
) -> str:
    """
    Retrieve a test execution together with the status of each of its tests.

    Args:
        ctx: The FastMCP context.
        executionKey: Test execution key.

    Returns:
        JSON string representing the execution and its test runs.

    Raises:
        ValueError: If the Xray client is not configured or available.
    """
    validate_test_key(executionKey)
    xray = await get_xray_fetcher(ctx)
    execution = await asyncio.to_thread(xray.get_test_execution, executionKey)
    return _dumps(execution.to_simplified_dict())


@xray_mcp.tool(tags={"xray", "read"})
@convert_tool_errors
async def get_test_plan(
    ctx: Context,
    testPlanKey: Annotated[str, Field(description='Test plan key (e.g., "PROJ-789")')],
) -> str:
    """
    Retrieve a test plan and the keys of the tests it contains.

    Args:
        ctx: The FastMCP context.
        testPlanKey: Test plan key.

    Returns:
        JSON string representing the test plan.

    Raises:
        ValueError: If the Xray client is not configured or available.
    """
    validate_test_key(testPlanKey)
    xray = await get_xray_fetcher(ctx)
    plan = await asyncio.to_thread(xray.get_test_plan, testPlanKey)
    return _dumps(plan.to_simplified_dict())
