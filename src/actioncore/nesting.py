"""
Tracks which actions are currently running in this thread or task.

The stack lives in a ContextVar and is restored by token on every exit
path, so nested ``run()`` calls never leak depth into their callers.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

_running: ContextVar[tuple[Any, ...]] = ContextVar("actioncore_running", default=())


@contextmanager
def nesting_scope(action: Any) -> Iterator[int]:
    """Push ``action`` for the duration of the block; yields its depth (0 = top level)."""
    stack = _running.get()
    token = _running.set(stack + (action,))
    try:
        yield len(stack)
    finally:
        _running.reset(token)


def nesting_depth() -> int:
    """Number of actions currently running."""
    return len(_running.get())


def current_action() -> Optional[Any]:
    stack = _running.get()
    return stack[-1] if stack else None


def running_actions() -> tuple[Any, ...]:
    return _running.get()
