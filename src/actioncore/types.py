"""
Core enums shared across actioncore.

Using these instead of bare strings keeps the pipeline, the result view,
the handler registry and the retry gate in agreement on spelling.
"""

from __future__ import annotations

from enum import Enum


class Direction(str, Enum):
    """Which side of the contract a field belongs to."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class Outcome(str, Enum):
    """Three-way classification of a completed invocation."""

    SUCCESS = "success"
    FAILURE = "failure"
    EXCEPTION = "exception"


class Classification(str, Enum):
    """Terminal classification recorded on an ExecutionState."""

    UNSET = "unset"
    EARLY_SUCCESS = "early_success"
    BUSINESS_FAILURE = "business_failure"
    EXCEPTION = "exception"


class EventKind(str, Enum):
    """Event kinds callbacks and messages can be registered for."""

    SUCCESS = "success"
    ERROR = "error"
    FAILURE = "failure"
    EXCEPTION = "exception"


class ReportingMode(str, Enum):
    """When an exception raised inside a retrying job is reported."""

    EVERY_ATTEMPT = "every_attempt"
    FIRST_AND_EXHAUSTED = "first_and_exhausted"
    ONLY_EXHAUSTED = "only_exhausted"
