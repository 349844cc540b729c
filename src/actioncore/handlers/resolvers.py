"""
Resolves the success or error message shown on a ``Result``.

Precedence:
1. a message the action supplied itself (``done("...")`` on success, or
   ``fail("...")`` on failure, unless the failure was re-raised from a
   nested action)
2. conditional entries, most recently declared first
3. unconditional entries, first declared first
4. the fallback text
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from actioncore.exceptions import Failure
from actioncore.handlers.invoker import call_with_exception
from actioncore.handlers.registry import MessageEntry
from actioncore.logger import piping_error
from actioncore.types import EventKind

DEFAULT_ERROR = "Something went wrong"
DEFAULT_SUCCESS = "Action completed successfully"


def _present(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


class MessageResolver:
    """Resolve one event kind's message for a finished action."""

    def __init__(
        self,
        entries: Iterable[MessageEntry],
        kind: EventKind,
        action: Any,
        exception: Optional[BaseException] = None,
    ) -> None:
        self.entries = [e for e in entries if e.event_kind is kind]
        self.kind = kind
        self.action = action
        self.exception = exception

    @property
    def fallback(self) -> str:
        return DEFAULT_SUCCESS if self.kind is EventKind.SUCCESS else DEFAULT_ERROR

    def resolve(self) -> str:
        conditional = [e for e in self.entries if e.conditional]
        for entry in reversed(conditional):
            message = self._message_from(entry)
            if message:
                return message

        for entry in self.entries:
            if entry.conditional:
                continue
            message = self._message_from(entry)
            if message:
                return message

        return self.fallback

    def _message_from(self, entry: MessageEntry) -> Optional[str]:
        try:
            if entry.matcher is not None and not entry.matcher.matches(self.action, self.exception):
                return None
            body = self._body(entry)
        except Exception as exc:
            piping_error(
                f"determining {self.kind.value} message",
                action=self.action,
                exception=exc,
            )
            return None

        if body is None:
            return None
        return f"{entry.prefix}{body}" if entry.prefix else body

    def _body(self, entry: MessageEntry) -> Optional[str]:
        if entry.handler is not None:
            return self._invoke(entry.handler)
        if self.exception is not None:
            return _present(str(self.exception))
        if entry.prefix is not None:
            # prefix-only success message borrows the default static message
            default = self._default_entry()
            return self._invoke(default.handler) if default is not None else None
        return None

    def _default_entry(self) -> Optional[MessageEntry]:
        for entry in self.entries:
            if entry.static and self._invoke(entry.handler):
                return entry
        return None

    def _invoke(self, handler: Any) -> Optional[str]:
        if isinstance(handler, str):
            return _present(handler)
        if callable(handler):
            return _present(call_with_exception(handler, (self.action,), self.exception))
        return _present(handler)


def user_error_message(exception: Optional[BaseException]) -> Optional[str]:
    """The action's own ``fail()`` message, if it should win over declared entries."""
    if not isinstance(exception, Failure):
        return None
    if exception.default_message:
        return None
    # raised by the framework while re-raising a nested action's failure
    if exception.__cause__ is not None:
        return None
    return exception.message


def resolve_error(
    entries: Iterable[MessageEntry],
    action: Any,
    exception: Optional[BaseException],
) -> str:
    return user_error_message(exception) or MessageResolver(
        entries, EventKind.ERROR, action, exception
    ).resolve()


def resolve_success(
    entries: Iterable[MessageEntry],
    action: Any,
    early_message: Optional[str] = None,
) -> str:
    return _present(early_message) or MessageResolver(
        entries, EventKind.SUCCESS, action
    ).resolve()
