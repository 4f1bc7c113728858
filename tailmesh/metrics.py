from __future__ import annotations

from typing import Any

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest

_TAILSCALE_OPS = Counter(
    "tailmesh_tailscale_operations_total",
    "Total tailscale CLI operations",
    labelnames=("action", "result"),
)
_TAILSCALE_LATENCY = Histogram(
    "tailmesh_tailscale_command_seconds",
    "tailscale CLI invocation latency seconds",
    labelnames=("action",),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.3, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
_TAILSCALE_IN_FLIGHT = Gauge(
    "tailmesh_tailscale_commands_in_flight",
    "tailscale CLI invocations currently running",
)


def record_tailscale_operation(*, action: str, ok: bool) -> None:
    _TAILSCALE_OPS.labels(action=action, result="ok" if ok else "error").inc()


def observe_tailscale_command(*, action: str, duration_seconds: float) -> None:
    _TAILSCALE_LATENCY.labels(action=action).observe(duration_seconds)


def track_in_flight() -> Any:
    return _TAILSCALE_IN_FLIGHT.track_inprogress()


def operation_count(*, action: str, ok: bool) -> float:
    value = REGISTRY.get_sample_value(
        "tailmesh_tailscale_operations_total",
        {"action": action, "result": "ok" if ok else "error"},
    )
    return value or 0.0


def render_metrics() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
