"""Tests for ordered multi-step operations."""

import pytest
import requests

from mcp_xray.exceptions import XrayError, XrayErrorCode
from mcp_xray.xray.steps import Step, run_steps


def test_steps_run_in_order_and_share_state():
    order = []

    def create(state):
        order.append("create")
        state["key"] = "PROJ-99"

    def add(state):
        order.append(f"add to {state['key']}")

    state = run_steps("Create execution", [Step("create", create), Step("add", add)])

    assert order == ["create", "add to PROJ-99"]
    assert state == {"key": "PROJ-99"}


def test_failure_names_step_and_completed_steps():
    calls = []

    def fail(state):
        response = requests.Response()
        response.status_code = 400
        response._content = b'{"errorMessages": ["Test is not valid"]}'
        raise requests.HTTPError("400 Client Error", response=response)

    steps = [
        Step("create execution", lambda state: calls.append("create")),
        Step("add tests", fail),
        Step("link test plan", lambda state: calls.append("link")),
    ]

    with pytest.raises(XrayError) as exc:
        run_steps("Execute tests", steps)

    error = exc.value
    assert calls == ["create"]
    assert error.message.startswith(
        "Execute tests failed at step 'add tests': Invalid request: "
    )
    assert error.code is XrayErrorCode.INVALID_REQUEST
    assert error.status_code == 400
    assert error.details["failed_step"] == "add tests"
    assert error.details["completed_steps"] == ["create execution"]
    assert error.details["upstream"]["status"] == 400
    assert isinstance(error.__cause__, requests.HTTPError)


def test_first_step_failure_has_no_completed_steps():
    def fail(state):
        raise XrayError("Issue does not exist", XrayErrorCode.NOT_FOUND, 404)

    with pytest.raises(XrayError) as exc:
        run_steps("Update test run", [Step("find test run", fail)])

    assert exc.value.code is XrayErrorCode.NOT_FOUND
    assert exc.value.details["completed_steps"] == []
    assert exc.value.message == (
        "Update test run failed at step 'find test run': Issue does not exist"
    )


def test_initial_state_is_passed_through():
    state = run_steps("Noop", [], {"project": "PROJ"})
    assert state == {"project": "PROJ"}
