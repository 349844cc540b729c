"""
Global exception reporting.

Builds the context handed to the configured ``on_exception`` hook and calls
it.  Reporting never raises: a broken reporter is logged as a piping error.

Two entry points:
- ``notify_on_exception()`` from the exception boundary, for an exception
  raised while the action ran
- ``report_exhausted_job()`` from a job backend's death / discard handler,
  for a job that was dropped after its last retry
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from actioncore.config import get_config
from actioncore.contract.schema import filter_sensitive
from actioncore.handlers.invoker import accepted_keywords
from actioncore.logger import piping_error, safe_str
from actioncore.retry.gate import RetryRecord

logger = logging.getLogger(__name__)


def _definition_of(action: Any) -> Any:
    klass = action if isinstance(action, type) else type(action)
    return getattr(klass, "definition", None)


def retry_command(action: Any, inputs: Mapping[str, Any]) -> str:
    """Copy-pasteable ``module.Class.run(...)`` call reproducing an invocation."""
    klass = action if isinstance(action, type) else type(action)
    args = ", ".join(f"{key}={value!r}" for key, value in inputs.items())
    return f"{klass.__module__}.{klass.__qualname__}.run({args})"


def build_exception_context(
    action: Any,
    record: Optional[RetryRecord] = None,
) -> dict[str, Any]:
    """
    Context for the exception reporter.

    Returns:
        ``{"inputs", "outputs"}`` with sensitive values filtered, plus
        ``"async"`` when a retry record is in scope and ``"retry_command"``
        when enabled in config.
    """
    definition = _definition_of(action)
    state = getattr(action, "_state", None)
    provided = state.provided if state is not None else {}
    exposed = state.exposed if state is not None else {}

    context: dict[str, Any] = {
        "inputs": filter_sensitive(provided, definition.expects) if definition else {},
        "outputs": filter_sensitive(exposed, definition.exposes) if definition else {},
    }
    if record is not None:
        context["async"] = record.to_dict()
    if get_config().include_retry_command_in_exceptions:
        fields = definition.expects if definition else ()
        safe = filter_sensitive(provided, fields)
        raw_inputs = {
            c.name: safe[c.name]
            for c in fields
            if c.on is None and c.name in safe and not c.sensitive
        }
        context["retry_command"] = retry_command(action, raw_inputs)
    return context


def notify_on_exception(
    error: BaseException,
    action: Any = None,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Log the handled exception and pass it to the configured ``on_exception`` hook."""
    if isinstance(action, DiscardedJobAction):
        owner = action.action_class.__name__
    else:
        owner = type(action).__name__ if action is not None else "unknown"
    logger.warning("Handled exception (%s): %s", owner, _describe(error))

    hook = get_config().on_exception
    if hook is None:
        return

    try:
        hook(error, **accepted_keywords(hook, {"action": action, "context": context or {}}))
    except Exception as exc:
        piping_error("calling on_exception", action=action, exception=exc)


def _describe(error: BaseException) -> str:
    detail = f"{type(error).__name__}: {safe_str(error)}"
    cause = error.__cause__
    if cause is not None:
        detail += f" (caused by {type(cause).__name__}: {safe_str(cause)})"
    return detail


class DiscardedJobResult:
    """Minimal result view for a job that never produced a real Result."""

    def __init__(self, exception: Optional[BaseException]) -> None:
        self.exception = exception

    @property
    def ok(self) -> bool:
        return False

    @property
    def error(self) -> str:
        text = safe_str(self.exception) if self.exception is not None else ""
        if text:
            return text
        return "Job was discarded"


class DiscardedJobAction:
    """Stands in for the action instance when reporting a discarded job."""

    def __init__(self, action_class: type, exception: Optional[BaseException]) -> None:
        self.action_class = action_class
        self.result = DiscardedJobResult(exception)

    def log(self, message: str, level: str = "warning") -> None:
        logger.warning("[DiscardedJob %s] %s", self.action_class.__qualname__, message)


def report_exhausted_job(
    error: BaseException,
    action_class: type,
    record: RetryRecord,
    job_inputs: Mapping[str, Any],
    extra_context: Optional[Mapping[str, Any]] = None,
) -> None:
    """Report a job dropped after its final retry through the global hook."""
    try:
        definition = _definition_of(action_class)
        extra = dict(extra_context or {})
        async_info = record.to_dict()
        async_info.update(extra.pop("async", None) or {})

        context: dict[str, Any] = {
            "inputs": filter_sensitive(job_inputs, definition.expects) if definition else {},
            "async": async_info,
        }
        context.update(extra)

        notify_on_exception(
            error,
            action=DiscardedJobAction(action_class, error),
            context=context,
        )
    except Exception as exc:
        piping_error("reporting exhausted job", exception=exc)
