"""
Retry context and the reporting gate for background-job attempts.
"""

from actioncore.retry.gate import (
    RetryRecord,
    current_retry_record,
    retry_scope,
    should_report,
)

__all__ = ["RetryRecord", "current_retry_record", "retry_scope", "should_report"]
