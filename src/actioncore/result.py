"""
Read-only outcome of one action invocation.

``Result`` is what ``Action.run()`` returns.  It never raises for declared
names: outbound fields read as attributes or items, and the outcome
properties below are always available.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from actioncore.facade import FieldView
from actioncore.handlers.resolvers import resolve_error, resolve_success
from actioncore.types import Outcome

if TYPE_CHECKING:
    from actioncore.action import Action
    from actioncore.state import ExecutionState

_UNRESOLVED = object()


class Result:
    """Outcome, messages and exposed values of a finished invocation."""

    def __init__(self, action: "Action", state: "ExecutionState") -> None:
        self._action = action
        self._state = state
        definition = type(action).definition
        self._definition = definition
        self._outputs = FieldView(
            type(action).__qualname__,
            state.exposed,
            definition.outbound_names,
            "result",
            "exposes",
        )
        self._error: Any = _UNRESOLVED
        self._success: Any = _UNRESOLVED

    @property
    def outcome(self) -> Outcome:
        return self._state.outcome

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def exception(self) -> Optional[BaseException]:
        return None if self.ok else self._state.error

    @property
    def error(self) -> Optional[str]:
        if self.ok:
            return None
        if self._error is _UNRESOLVED:
            self._error = resolve_error(self._definition.messages, self._action, self._state.error)
        return self._error

    @property
    def success(self) -> Optional[str]:
        if not self.ok:
            return None
        if self._success is not _UNRESOLVED:
            return self._success
        message = resolve_success(
            self._definition.messages, self._action, self._state.early_message
        )
        # still running: done() or later exposures may change the message
        if self._state.finalized:
            self._success = message
        return message

    @property
    def message(self) -> Optional[str]:
        return self.success if self.ok else self.error

    @property
    def elapsed_ms(self) -> Optional[float]:
        return self._state.elapsed_ms

    @property
    def finalized(self) -> bool:
        return self._state.finalized

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._outputs[name]

    def __getitem__(self, name: str) -> Any:
        return self._outputs[name]

    def as_dict(self) -> dict[str, Any]:
        """Plain dict suitable for JSON output (CLI, logs)."""
        return {
            "ok": self.ok,
            "outcome": self.outcome.value,
            "message": self.message,
            "error": self.error,
            "success": self.success,
            "exception": type(self.exception).__name__ if self.exception else None,
            "elapsed_ms": self.elapsed_ms,
            "finalized": self.finalized,
            "outputs": self._outputs.to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"<Result {type(self._action).__qualname__} outcome={self.outcome.value} "
            f"message={self.message!r}>"
        )
