"""
Shared OTel helpers for actioncore.

Provides ``add_span_event()`` used by the contract engine and the
exception boundary, plus the lazily created tracer and meter
instruments the tracing phase records into.

Usage::

    from actioncore.otel import add_span_event

    add_span_event("action.contract.violation", {"action.resource": "Greet"})
"""

from __future__ import annotations

from typing import Any, Optional

from opentelemetry import metrics as otel_metrics
from opentelemetry import trace as otel_trace

TRACER_NAME = "actioncore"
METER_NAME = "actioncore"

# Span event names
EVENT_CONTRACT_VIOLATION = "action.contract.violation"
EVENT_EXCEPTION_SUPPRESSED = "action.exception.suppressed"

_instruments: Optional[dict[str, Any]] = None


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool]
) -> None:
    """Add an event to the current OTel span if it is recording.

    Args:
        name: Event name (e.g. ``"action.contract.violation"``).
        attributes: Flat dict of span event attributes.
    """
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def get_tracer() -> otel_trace.Tracer:
    """Return the actioncore tracer from the globally configured provider."""
    return otel_trace.get_tracer(TRACER_NAME)


def get_instruments() -> dict[str, Any]:
    """Create (once) and return the duration histogram and call counter."""
    global _instruments
    if _instruments is None:
        meter = otel_metrics.get_meter(METER_NAME)
        _instruments = {
            "duration": meter.create_histogram(
                name="action.duration",
                unit="ms",
                description="Wall-clock duration of action invocations",
            ),
            "calls": meter.create_counter(
                name="action.calls",
                unit="1",
                description="Number of action invocations by outcome",
            ),
        }
    return _instruments
