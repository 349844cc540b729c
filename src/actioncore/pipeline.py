"""
Execution pipeline for a single action invocation.

Phases run outermost first and are composed from an explicit tuple:

- **nesting**: push the action on the running-actions stack
- **tracing**: OTel span and metrics
- **logging**: before / after lifecycle lines
- **timing**: elapsed milliseconds, stored even when everything fails
- **boundary**: the one place exceptions from the action are caught
- **contract**: inbound contract, hooks + work, outbound contract

The first four form the outside zone and must never raise into the caller;
anything they hit is a piping error.  Everything below the boundary may
raise freely: the boundary classifies it, settles the outbound contract,
fires callbacks and, for unclassified exceptions, reports.

Usage::

    pipeline = ExecutionPipeline()
    result = pipeline.run(Greet(name="World"))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import partial, reduce
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from actioncore.config import get_config
from actioncore.contract.schema import filter_sensitive
from actioncore.definition import INHERIT, ActionDefinition
from actioncore.exceptions import ContractViolation, Failure
from actioncore.handlers.registry import fire_callbacks
from actioncore.hooks import EarlyComplete
from actioncore.logger import ActionLogger, piping_error
from actioncore.nesting import nesting_scope
from actioncore.otel import EVENT_EXCEPTION_SUPPRESSED, add_span_event
from actioncore.reporting import build_exception_context, notify_on_exception
from actioncore.retry.gate import current_retry_record, should_report
from actioncore.state import ExecutionState
from actioncore.tracing import tracing_phase
from actioncore.types import EventKind, Outcome

if TYPE_CHECKING:
    from actioncore.action import Action
    from actioncore.result import Result

logger = logging.getLogger(__name__)


@dataclass
class Invocation:
    """Everything the phases share for one run."""

    action: "Action"
    state: ExecutionState
    definition: ActionDefinition
    resource: str
    depth: int = 0


Proceed = Callable[[], None]
Phase = Callable[[Invocation, Proceed], None]


# ---------------------------------------------------------------------------
# Outside zone
# ---------------------------------------------------------------------------


def nesting_phase(invocation: Invocation, proceed: Proceed) -> None:
    with nesting_scope(invocation.action) as depth:
        invocation.depth = depth
        proceed()


def _log_levels(definition: ActionDefinition) -> tuple[Optional[str], Optional[str]]:
    config = get_config()
    calls = config.log_calls_level if definition.log_calls == INHERIT else definition.log_calls
    errors = config.log_errors_level if definition.log_errors == INHERIT else definition.log_errors
    return calls, errors


def logging_phase(invocation: Invocation, proceed: Proceed) -> None:
    definition = invocation.definition
    calls_level, errors_level = _log_levels(definition)
    action_log = ActionLogger(invocation.resource, depth=invocation.depth)

    if calls_level:
        try:
            action_log.before(
                filter_sensitive(invocation.state.provided, definition.expects),
                calls_level,
            )
        except Exception as exc:
            piping_error("logging before execution", action=invocation.action, exception=exc)

    try:
        proceed()
    finally:
        state = invocation.state
        level = calls_level
        if not level and errors_level and state.outcome is not Outcome.SUCCESS:
            level = errors_level
        if level:
            try:
                action_log.after(
                    state.outcome.value,
                    state.elapsed_ms,
                    filter_sensitive(state.exposed, definition.exposes),
                    level,
                )
            except Exception as exc:
                piping_error("logging after execution", action=invocation.action, exception=exc)


def timing_phase(invocation: Invocation, proceed: Proceed) -> None:
    start = time.perf_counter()
    try:
        proceed()
    finally:
        invocation.state.elapsed_ms = (time.perf_counter() - start) * 1000.0


# ---------------------------------------------------------------------------
# Inside zone
# ---------------------------------------------------------------------------


def boundary_phase(invocation: Invocation, proceed: Proceed) -> None:
    action = invocation.action
    state = invocation.state
    entries = invocation.definition.callbacks

    try:
        proceed()
    except Failure as failure:
        state.record_failure(failure)
        _settle_outbound(invocation)
        fire_callbacks(entries, EventKind.ERROR, action, failure)
        fire_callbacks(entries, EventKind.FAILURE, action, failure)
    except Exception as error:
        if isinstance(error, ContractViolation):
            logger.debug("%s raised %s: %s", invocation.resource, type(error).__name__, error)
        state.record_exception(error)
        _settle_outbound(invocation)
        fire_callbacks(entries, EventKind.ERROR, action, error)
        try:
            _report_exception(invocation, error)
        except Exception as exc:
            piping_error("reporting exception", action=action, exception=exc)
    else:
        fire_callbacks(entries, EventKind.SUCCESS, action)


def _settle_outbound(invocation: Invocation) -> None:
    """Run the outbound contract on an error path so defaults still apply."""
    state = invocation.state
    if not state.inbound_passed or state.outbound_attempted:
        return
    try:
        invocation.definition.contract_engine().apply_outbound(state, invocation.action)
    except Exception as exc:
        # classification already set; first writer wins
        state.record_exception(exc)


def _report_exception(invocation: Invocation, error: BaseException) -> None:
    action = invocation.action
    record = current_retry_record()

    if record is not None:
        mode = invocation.definition.async_exception_reporting
        if not should_report(mode, record.attempt, record.max_retries):
            add_span_event(
                EVENT_EXCEPTION_SUPPRESSED,
                {
                    "action.resource": invocation.resource,
                    "retry.adapter": record.adapter,
                    "retry.attempt": record.attempt,
                    "retry.max_retries": record.max_retries,
                },
            )
            logger.debug(
                "Not reporting %s from %s on attempt %d of %d",
                type(error).__name__,
                invocation.resource,
                record.attempt,
                record.max_retries + 1,
            )
            return

    fire_callbacks(invocation.definition.callbacks, EventKind.EXCEPTION, action, error)
    try:
        context = build_exception_context(action, record)
    except Exception as exc:
        piping_error("building exception context", action=action, exception=exc)
        context = {}
    notify_on_exception(error, action=action, context=context)


def contract_phase(invocation: Invocation, proceed: Proceed) -> None:
    action = invocation.action
    state = invocation.state
    definition = invocation.definition
    engine = definition.contract_engine()

    engine.apply_inbound(state, action)

    signal = definition.hook_chain().run(action, action.call)
    if isinstance(signal, EarlyComplete):
        state.mark_early_success(signal.message)

    engine.apply_outbound(state, action)
    proceed()


DEFAULT_PHASES: tuple[Phase, ...] = (
    nesting_phase,
    tracing_phase,
    logging_phase,
    timing_phase,
    boundary_phase,
    contract_phase,
)


def _terminal() -> None:
    return None


class ExecutionPipeline:
    """Composes the phase tuple and runs actions through it."""

    def __init__(self, phases: Sequence[Phase] = DEFAULT_PHASES) -> None:
        self.phases = tuple(phases)

    def run(self, action: "Action") -> "Result":
        klass = type(action)
        invocation = Invocation(
            action=action,
            state=action._state,
            definition=klass.definition,
            resource=klass.__qualname__,
        )
        runner = reduce(
            lambda inner, phase: partial(phase, invocation, inner),
            reversed(self.phases),
            _terminal,
        )
        runner()
        return action.result
