"""
Centralized configuration for actioncore.

Uses Pydantic BaseSettings for environment variable integration
and validation. All process-wide knobs are defined here.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (ACTIONCORE_*)
3. .env file
4. Default values

Example:
    from actioncore.config import get_config

    config = get_config()
    print(config.async_exception_reporting)  # first_and_exhausted

    # Override at runtime (e.g. install a global exception reporter)
    config = get_config(on_exception=sentry_sdk.capture_exception)
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from actioncore.types import ReportingMode

LogLevelName = Literal["debug", "info", "warning", "error", "critical"]


class ActionCoreConfig(BaseSettings):
    """
    Central configuration for actioncore.

    All plain settings can be overridden via environment variables
    prefixed with ACTIONCORE_.  The two hooks (``on_exception`` and
    ``emit_metrics``) can only be supplied in code.

    Example:
        export ACTIONCORE_ENV=production
        export ACTIONCORE_ASYNC_EXCEPTION_REPORTING=only_exhausted
    """

    model_config = SettingsConfigDict(
        env_prefix="ACTIONCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service identification
    service_name: str = Field(
        default="actioncore",
        description="Service name for tracer/meter attribution",
    )
    env: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment; controls log decoration and piping-error strictness",
    )

    # Logging
    log_level: LogLevelName = Field(
        default="info",
        description="Level for explicit action.log() calls",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Lifecycle log output format (json for log shippers, text for console)",
    )
    log_calls_level: Optional[LogLevelName] = Field(
        default="info",
        description="Level for before/after lifecycle lines; None disables them",
    )
    log_errors_level: Optional[LogLevelName] = Field(
        default=None,
        description="Level for after-lines of non-ok results when call logging is off",
    )

    # Async exception reporting
    async_exception_reporting: ReportingMode = Field(
        default=ReportingMode.FIRST_AND_EXHAUSTED,
        description="When exceptions raised inside retrying jobs are reported",
    )
    async_max_retries: Optional[int] = Field(
        default=None,
        ge=0,
        description="Overrides each adapter's own max retry count when set",
    )
    include_retry_command_in_exceptions: bool = Field(
        default=False,
        description="Attach a copy-pasteable retry command to exception context",
    )

    # Piping errors (errors in logging/tracing/callbacks)
    raise_piping_errors_in_dev: bool = Field(
        default=False,
        description="Re-raise swallowed piping errors when env is development",
    )

    # Hooks
    on_exception: Optional[Callable[..., Any]] = Field(
        default=None,
        exclude=True,
        description="Global reporter called as on_exception(error, action=, context=)",
    )
    emit_metrics: Optional[Callable[..., Any]] = Field(
        default=None,
        exclude=True,
        description="Called as emit_metrics(resource=, result=) after every run",
    )

    @field_validator("log_calls_level", "log_errors_level", mode="before")
    @classmethod
    def blank_level_disables(cls, v: Any) -> Any:
        """Treat empty strings (e.g. ACTIONCORE_LOG_CALLS_LEVEL=) as disabled."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def production(self) -> bool:
        return self.env == "production"


# Global singleton
_config: Optional[ActionCoreConfig] = None


def get_config(**overrides: Any) -> ActionCoreConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        ActionCoreConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = ActionCoreConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def get_default_reporting_mode() -> ReportingMode:
    """Get the process-wide async exception reporting mode."""
    return get_config().async_exception_reporting
