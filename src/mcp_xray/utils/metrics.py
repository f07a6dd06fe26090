"""Prometheus metrics for the Xray MCP server.

Counters are process local; aggregate across replicas in Prometheus:
- tool calls per tool and outcome (success / error)
- upstream failures per normalized error code
"""

import os
from typing import Any

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, generate_latest


def _safe_create_metric(metric_class: type[Any], *args: Any, **kwargs: Any) -> Any:
    """Create a metric, reusing the registered collector on duplicate registration."""
    try:
        return metric_class(*args, **kwargs)
    except ValueError as e:
        if "Duplicated timeseries" not in str(e):
            raise
        metric_name = args[0] if args else kwargs.get("name")
        for collector in list(REGISTRY._collector_to_names):
            if getattr(collector, "_name", None) == metric_name:
                return collector
        raise


class XrayMetrics:
    """Metrics collector for tool dispatch and upstream errors."""

    def __init__(self, pod_name: str | None = None) -> None:
        self.pod_name = pod_name or os.environ.get("HOSTNAME", "unknown")

        self.tool_calls = _safe_create_metric(
            Counter,
            "mcp_xray_tool_calls",
            "Tool invocations by tool name and outcome",
            ["tool", "outcome", "pod"],
        )
        self.upstream_errors = _safe_create_metric(
            Counter,
            "mcp_xray_upstream_errors",
            "Normalized upstream failures by error code",
            ["code", "pod"],
        )

    def record_tool_call(self, tool: str, outcome: str) -> None:
        self.tool_calls.labels(tool=tool, outcome=outcome, pod=self.pod_name).inc()

    def record_upstream_error(self, code: str) -> None:
        self.upstream_errors.labels(code=code, pod=self.pod_name).inc()

    def generate_metrics(self) -> tuple[str, str]:
        """Generate Prometheus exposition output.

        Returns:
            Tuple of (metrics_content, content_type)
        """
        return generate_latest().decode("utf-8"), CONTENT_TYPE_LATEST


metrics: XrayMetrics | None = None


def get_metrics() -> XrayMetrics:
    """Return the process-wide metrics instance, creating it on first use."""
    global metrics
    if metrics is None:
        metrics = XrayMetrics()
    return metrics
