"""Ordered multi-step operations with per-step failure reporting.

Server operations such as "create an execution and add tests to it" take
several upstream calls. Steps run in order and the first failure stops the
sequence. Earlier steps are not rolled back; the raised error names the
step that failed and lists the ones that completed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..exceptions import XrayError
from ..utils.errors import normalize_xray_error

logger = logging.getLogger("mcp-xray.steps")


@dataclass(frozen=True)
class Step:
    """A named upstream call.

    ``action`` receives the shared state dict and may store values in it for
    later steps.
    """

    name: str
    action: Callable[[dict[str, Any]], Any]


def run_steps(
    operation: str, steps: list[Step], state: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Run steps in order, stopping at the first failure.

    Args:
        operation: Name of the overall operation, used in messages.
        steps: Steps to run.
        state: Initial shared state.

    Returns:
        The shared state after every step has run.

    Raises:
        XrayError: Normalized error of the failed step, with a message naming
            the step and ``details`` holding ``failed_step``,
            ``completed_steps`` and the ``upstream`` details.
    """
    state = {} if state is None else state
    completed: list[str] = []
    for step in steps:
        try:
            step.action(state)
        except Exception as e:
            error = normalize_xray_error(e)
            logger.error(
                f"{operation} failed at step '{step.name}' "
                f"after {completed or 'no completed steps'}: {error.message}"
            )
            raise XrayError(
                f"{operation} failed at step '{step.name}': {error.message}",
                error.code,
                error.status_code,
                {
                    "failed_step": step.name,
                    "completed_steps": list(completed),
                    "upstream": error.details,
                },
            ) from e
        completed.append(step.name)
        logger.debug(f"{operation}: step '{step.name}' completed")
    return state
