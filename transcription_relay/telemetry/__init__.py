"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    UPSTREAM_CALLS,
    UPSTREAM_LATENCY,
    observe_request,
    observe_upstream_call,
)

__all__ = [
    "ERROR_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "UPSTREAM_CALLS",
    "UPSTREAM_LATENCY",
    "observe_request",
    "observe_upstream_call",
]
