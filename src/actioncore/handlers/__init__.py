"""
Outcome callbacks and success/error messages.
"""

from actioncore.handlers.invoker import accepted_keywords, call_with_exception, invoke_handler
from actioncore.handlers.matcher import Matcher
from actioncore.handlers.registry import CallbackEntry, MessageEntry, fire_callbacks
from actioncore.handlers.resolvers import (
    DEFAULT_ERROR,
    DEFAULT_SUCCESS,
    MessageResolver,
    resolve_error,
    resolve_success,
)

__all__ = [
    "CallbackEntry",
    "DEFAULT_ERROR",
    "DEFAULT_SUCCESS",
    "Matcher",
    "MessageEntry",
    "MessageResolver",
    "accepted_keywords",
    "call_with_exception",
    "fire_callbacks",
    "invoke_handler",
    "resolve_error",
    "resolve_success",
]
