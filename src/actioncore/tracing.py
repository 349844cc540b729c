"""
OpenTelemetry span and metrics for each action invocation.

Span ``action.run`` carries:
- action.resource        action class name
- action.nesting_depth   0 for a top-level call
- action.outcome         success / failure / exception (set on unwind)
- action.elapsed_ms      wall-clock duration

Failure and exception outcomes record the exception and set ERROR status.
Every error raised while tracing or emitting metrics is logged as a piping
error; tracing never changes an action's outcome.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from opentelemetry.trace import Status, StatusCode

from actioncore.config import get_config
from actioncore.logger import piping_error, safe_str
from actioncore.otel import get_instruments, get_tracer
from actioncore.types import Outcome

if TYPE_CHECKING:
    from actioncore.pipeline import Invocation

logger = logging.getLogger(__name__)

SPAN_NAME = "action.run"


def tracing_phase(invocation: "Invocation", proceed: Callable[[], None]) -> None:
    try:
        span_cm = get_tracer().start_as_current_span(
            SPAN_NAME,
            attributes={
                "action.resource": invocation.resource,
                "action.nesting_depth": invocation.depth,
            },
            record_exception=False,
            set_status_on_exception=False,
        )
    except Exception as exc:
        piping_error("starting action span", action=invocation.action, exception=exc)
        proceed()
        _emit_metrics(invocation)
        return

    with span_cm as span:
        try:
            proceed()
        finally:
            _finish_span(invocation, span)
            _emit_metrics(invocation)


def _finish_span(invocation: "Invocation", span: Any) -> None:
    try:
        state = invocation.state
        outcome = state.outcome
        span.set_attribute("action.outcome", outcome.value)
        if state.elapsed_ms is not None:
            span.set_attribute("action.elapsed_ms", state.elapsed_ms)
        if outcome is not Outcome.SUCCESS and state.error is not None:
            span.set_status(Status(StatusCode.ERROR, safe_str(state.error)))
            span.record_exception(state.error)
    except Exception as exc:
        piping_error("finishing action span", action=invocation.action, exception=exc)


def _emit_metrics(invocation: "Invocation") -> None:
    state = invocation.state
    attributes = {
        "action.resource": invocation.resource,
        "action.outcome": state.outcome.value,
    }
    try:
        instruments = get_instruments()
        instruments["duration"].record(state.elapsed_ms or 0.0, attributes=attributes)
        instruments["calls"].add(1, attributes=attributes)
    except Exception as exc:
        piping_error("recording action metrics", action=invocation.action, exception=exc)

    hook = get_config().emit_metrics
    if hook is None:
        return
    try:
        hook(resource=invocation.resource, result=invocation.action.result)
    except Exception as exc:
        piping_error("calling emit_metrics", action=invocation.action, exception=exc)
