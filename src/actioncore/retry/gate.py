"""
Retry-attempt aware exception reporting for background jobs.

A job backend adapter wraps each delivery attempt in ``retry_scope()`` with
a ``RetryRecord`` describing the attempt.  When an action raises an
unclassified exception inside that scope, ``should_report()`` decides
whether the global reporter hears about it, so a job that retries twenty
times does not page twenty times.

Usage::

    from actioncore.retry import RetryRecord, retry_scope

    record = RetryRecord.build(adapter="celery", attempt=3, max_retries=5, job_id=job.id)
    with retry_scope(record):
        SendInvoice.run(**job.kwargs)
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from actioncore.config import get_config, get_default_reporting_mode
from actioncore.types import ReportingMode


class RetryRecord(BaseModel):
    """Metadata for one delivery attempt of a background job."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    adapter: str = Field(..., min_length=1, description="Job backend name")
    attempt: int = Field(..., ge=1, description="1-based delivery attempt")
    max_retries: int = Field(..., ge=0, description="Retries allowed after the first attempt")
    job_id: Optional[str] = Field(None, description="Backend job identifier")

    @classmethod
    def build(
        cls,
        adapter: str,
        attempt: int,
        max_retries: int,
        job_id: Optional[str] = None,
    ) -> "RetryRecord":
        """Create a record, applying the configured ``async_max_retries`` override."""
        override = get_config().async_max_retries
        return cls(
            adapter=adapter,
            attempt=attempt,
            max_retries=override if override is not None else max_retries,
            job_id=job_id,
        )

    @property
    def first_attempt(self) -> bool:
        return self.attempt == 1

    @property
    def retries_exhausted(self) -> bool:
        return self.attempt > self.max_retries

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        data["first_attempt"] = self.first_attempt
        data["retries_exhausted"] = self.retries_exhausted
        return data


def should_report(
    mode: Union[ReportingMode, str, None],
    attempt: int,
    max_retries: int,
) -> bool:
    """
    Decide whether an exception on this attempt reaches the global reporter.

    Args:
        mode: Reporting mode; ``None`` uses the configured default
        attempt: 1-based attempt number
        max_retries: Retries allowed after the first attempt

    Returns:
        True when the exception should be reported
    """
    resolved = ReportingMode(mode) if mode is not None else get_default_reporting_mode()

    if resolved is ReportingMode.EVERY_ATTEMPT:
        return True
    if resolved is ReportingMode.FIRST_AND_EXHAUSTED:
        return attempt == 1 or attempt > max_retries
    if resolved is ReportingMode.ONLY_EXHAUSTED:
        return attempt > max_retries
    return True


_current_record: ContextVar[Optional[RetryRecord]] = ContextVar(
    "actioncore_retry_record", default=None
)


@contextmanager
def retry_scope(record: RetryRecord) -> Iterator[RetryRecord]:
    """Make ``record`` the current retry record for the duration of the block."""
    token = _current_record.set(record)
    try:
        yield record
    finally:
        _current_record.reset(token)


def current_retry_record() -> Optional[RetryRecord]:
    return _current_record.get()
