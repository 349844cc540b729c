"""
Callback and message entries, and callback dispatch.

Entries are declared on an ``ActionDefinition`` and never mutated.  All
matching callbacks fire in declaration order; an error in one callback is
logged as a piping error and does not stop the others.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from actioncore.exceptions import ContractViolation
from actioncore.handlers.invoker import invoke_handler
from actioncore.handlers.matcher import Matcher
from actioncore.logger import piping_error
from actioncore.types import EventKind

MESSAGE_KINDS = (EventKind.SUCCESS, EventKind.ERROR)


class CallbackEntry(BaseModel):
    """A callback fired on an outcome event."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    event_kind: EventKind
    handler: Any = Field(..., description="Callable taking the action, or a method name")
    matcher: Optional[Matcher] = None

    @model_validator(mode="after")
    def check_handler(self) -> "CallbackEntry":
        if not (isinstance(self.handler, str) or callable(self.handler)):
            raise ContractViolation(
                f"{self.event_kind.value} callback must be callable or a method name"
            )
        return self

    @property
    def conditional(self) -> bool:
        return self.matcher is not None


class MessageEntry(BaseModel):
    """
    A success or error message.

    ``handler`` is a static string or a callable taking the action (and
    optionally the exception) that returns the message.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    event_kind: EventKind
    handler: Any = None
    prefix: Optional[str] = None
    matcher: Optional[Matcher] = None

    @model_validator(mode="after")
    def check_entry(self) -> "MessageEntry":
        if self.event_kind not in MESSAGE_KINDS:
            raise ContractViolation(
                f"Messages can only be declared for success or error, not {self.event_kind.value}"
            )
        has_source = self.matcher is not None and self.matcher.source is not None
        if has_source and self.event_kind is not EventKind.ERROR:
            raise ContractViolation("from_ only applies to error messages")
        if self.handler is None and self.prefix is None and not has_source:
            raise ContractViolation("Provide a message, a callable, or a prefix")
        return self

    @property
    def conditional(self) -> bool:
        return self.matcher is not None

    @property
    def static(self) -> bool:
        return self.matcher is None and isinstance(self.handler, str)


def fire_callbacks(
    entries: Iterable[CallbackEntry],
    kind: EventKind,
    action: Any,
    exception: Optional[BaseException] = None,
) -> int:
    """Fire every matching callback in declaration order; returns how many ran cleanly."""
    fired = 0
    for entry in entries:
        if entry.event_kind is not kind:
            continue
        try:
            if entry.matcher is not None and not entry.matcher.matches(action, exception):
                continue
            invoke_handler(entry.handler, action, exception)
            fired += 1
        except Exception as exc:
            piping_error(f"running {kind.value} callback", action=action, exception=exc)
    return fired
