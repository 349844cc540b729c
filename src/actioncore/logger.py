"""
Structured logging for action lifecycle events.

Writes one line per event to the ``actioncore.actions`` logger, either as
human readable text or as a JSON object (``log_format="json"``) for log
shippers.

Logged events:
- action.before   (inputs, when call logging is enabled)
- action.after    (outcome, elapsed time and exposed values)
- action.log      (explicit ``Action.log()`` calls)

Errors raised by logging, tracing, callbacks and reporters never change an
action's outcome; they are reported through ``piping_error()`` instead.

Usage:
    from actioncore.logger import ActionLogger

    log = ActionLogger(resource="Greet", depth=0)
    log.before({"name": "World"}, level="info")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from actioncore.config import get_config

logger = logging.getLogger(__name__)

_action_logger = logging.getLogger("actioncore.actions")
_action_logger.setLevel(logging.DEBUG)

if not _action_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _action_logger.addHandler(handler)


def level_number(level: str) -> int:
    """Map a level name ("info", "warn", ...) to its logging constant."""
    name = level.upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


class ActionLogger:
    """
    Lifecycle logger bound to one action invocation.

    Text lines are prefixed with the action name and indented by nesting
    depth so nested calls read as a tree in the console.
    """

    def __init__(
        self,
        resource: str,
        depth: int = 0,
        service_name: Optional[str] = None,
    ):
        self.resource = resource
        self.depth = depth
        self.service_name = service_name or get_config().service_name
        self._logger = _action_logger

    def _emit(self, event: str, message: str, level: str, **extra_fields: Any) -> None:
        config = get_config()
        if config.log_format == "json":
            entry: Dict[str, Any] = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level,
                "event": event,
                "service": self.service_name,
                "action": self.resource,
                "nesting_depth": self.depth,
                "message": message,
            }
            entry.update(extra_fields)
            line = json.dumps(entry, default=str)
        else:
            indent = "  " * self.depth if not config.production else ""
            line = f"{indent}[{self.resource}] {message}"

        self._logger.log(level_number(level), line)

    def before(self, inputs: Dict[str, Any], level: str) -> None:
        """Log the pre-call line."""
        self._emit(
            "action.before",
            f"About to execute with: {inputs!r}",
            level,
            inputs=inputs,
        )

    def after(
        self,
        outcome: str,
        elapsed_ms: Optional[float],
        outputs: Dict[str, Any],
        level: str,
    ) -> None:
        """Log the post-call line with outcome, elapsed time and exposed values."""
        elapsed = round(elapsed_ms or 0.0, 2)
        message = f"Execution completed (with outcome: {outcome}) in {elapsed} milliseconds"
        if outputs:
            message += f". Set: {outputs!r}"
        self._emit(
            "action.after",
            message,
            level,
            outcome=outcome,
            elapsed_ms=elapsed,
            outputs=outputs,
        )

    def log(self, message: str, level: str = "info") -> None:
        self._emit("action.log", message, level)


def safe_str(value: Any) -> str:
    """``str(value)``, or a placeholder when the object cannot render itself."""
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def piping_error(
    desc: str,
    action: Any = None,
    exception: Optional[BaseException] = None,
) -> None:
    """
    Log (and normally swallow) an error raised outside the action's own work.

    Re-raises when ``raise_piping_errors_in_dev`` is set and the environment
    is development, so misbehaving callbacks surface during local work.
    """
    config = get_config()
    if exception is not None and config.raise_piping_errors_in_dev and config.env == "development":
        raise exception

    owner = f" ({type(action).__name__})" if action is not None else ""
    if exception is not None:
        logger.warning(
            "Ignoring exception raised while %s%s: %s - %s",
            desc,
            owner,
            type(exception).__name__,
            safe_str(exception),
        )
    else:
        logger.warning("Ignoring problem while %s%s", desc, owner)
