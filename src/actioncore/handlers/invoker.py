"""
Calls user handlers with the arguments they are able to accept.

The action is always passed first (or bound, for method names).  The
exception, when there is one, is passed as ``exception=`` if the handler
accepts that keyword (or ``**kwargs``), otherwise positionally if the
handler takes one more positional argument, otherwise not at all.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Iterable, Optional

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
_KEYWORD = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)


def _signature(fn: Callable[..., Any]) -> Optional[inspect.Signature]:
    try:
        return inspect.signature(fn)
    except (TypeError, ValueError):
        return None


def accepts_keyword(fn: Callable[..., Any], name: str) -> bool:
    sig = _signature(fn)
    if sig is None:
        return False
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            return True
        if param.name == name and param.kind in _KEYWORD:
            return True
    return False


def accepted_keywords(fn: Callable[..., Any], candidates: dict[str, Any]) -> dict[str, Any]:
    """Subset of ``candidates`` that ``fn`` can take as keyword arguments."""
    return {k: v for k, v in candidates.items() if accepts_keyword(fn, k)}


def _positional_capacity(fn: Callable[..., Any]) -> int:
    sig = _signature(fn)
    if sig is None:
        return 0
    count = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return 1 << 16
        if param.kind in _POSITIONAL:
            count += 1
    return count


def call_with_exception(
    fn: Callable[..., Any],
    leading: Iterable[Any],
    exception: Optional[BaseException],
) -> Any:
    args = tuple(leading)
    if exception is None:
        return fn(*args)
    if accepts_keyword(fn, "exception"):
        return fn(*args, exception=exception)
    if _positional_capacity(fn) > len(args):
        return fn(*args, exception)
    return fn(*args)


def invoke_handler(
    handler: Any,
    action: Any,
    exception: Optional[BaseException] = None,
) -> Any:
    """Run a callback-style handler: method name or callable taking the action."""
    if isinstance(handler, str):
        return call_with_exception(getattr(action, handler), (), exception)
    if callable(handler):
        return call_with_exception(handler, (action,), exception)
    return handler
