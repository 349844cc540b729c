"""
actioncore - units of work with declared contracts and uniform outcomes.

An action declares what it expects and exposes, runs through a fixed
pipeline (contract checks, hooks, tracing, logging, timing) and always
returns a ``Result`` classified as success, failure or exception.

Example:
    from actioncore import Action, ActionDefinition, expects, exposes

    class Greet(Action):
        definition = ActionDefinition(
            expects=[expects("name", type=str)],
            exposes=[exposes("greeting", type=str)],
        )

        def call(self):
            self.expose(greeting=f"Hello, {self.inputs.name}!")

    result = Greet.run(name="World")
    print(result.greeting)  # Hello, World!
"""

__version__ = "0.1.0"

from actioncore.action import Action
from actioncore.config import ActionCoreConfig, get_config, reset_config
from actioncore.definition import (
    ActionDefinition,
    error_message,
    expects,
    exposes,
    on_error,
    on_exception,
    on_failure,
    on_success,
    success_message,
)
from actioncore.exceptions import (
    ContractViolation,
    DefaultAssignmentError,
    DuplicateFieldError,
    Failure,
    InboundValidationError,
    OutboundValidationError,
    PreprocessingError,
    ReservedFieldError,
    UndeclaredFieldError,
    UnknownExposureError,
    ValidationError,
)
from actioncore.hooks import Continue, EarlyComplete
from actioncore.result import Result
from actioncore.retry import RetryRecord, current_retry_record, retry_scope, should_report
from actioncore.types import Outcome, ReportingMode

__all__ = [
    "__version__",
    "Action",
    "ActionCoreConfig",
    "ActionDefinition",
    "Continue",
    "ContractViolation",
    "DefaultAssignmentError",
    "DuplicateFieldError",
    "EarlyComplete",
    "Failure",
    "InboundValidationError",
    "Outcome",
    "OutboundValidationError",
    "PreprocessingError",
    "ReportingMode",
    "ReservedFieldError",
    "Result",
    "RetryRecord",
    "UndeclaredFieldError",
    "UnknownExposureError",
    "ValidationError",
    "current_retry_record",
    "error_message",
    "expects",
    "exposes",
    "get_config",
    "on_error",
    "on_exception",
    "on_failure",
    "on_success",
    "reset_config",
    "retry_scope",
    "should_report",
    "success_message",
]
