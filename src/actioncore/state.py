"""
Per-invocation mutable execution state.

One ``ExecutionState`` is created for every ``Action.run()``.  It holds the
provided inputs, the values exposed so far and the terminal classification.

Classification rules:
- BUSINESS_FAILURE and EXCEPTION are first-writer-wins; later writes are
  ignored.
- EARLY_SUCCESS may still be downgraded to EXCEPTION (a failing outbound
  contract after ``done()``).
- ``finalized`` flips only after the outbound contract passes, after which
  nothing more can be exposed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from actioncore.exceptions import ContractViolation, Failure
from actioncore.types import Classification, Outcome


@dataclass
class ExecutionState:
    """Mutable state for a single action invocation."""

    provided: Dict[str, Any] = field(default_factory=dict)
    exposed: Dict[str, Any] = field(default_factory=dict)
    classification: Classification = Classification.UNSET
    early_message: Optional[str] = None
    error: Optional[BaseException] = None
    elapsed_ms: Optional[float] = None
    finalized: bool = False
    inbound_passed: bool = False
    outbound_attempted: bool = False

    @property
    def outcome(self) -> Outcome:
        if self.classification is Classification.BUSINESS_FAILURE:
            return Outcome.FAILURE
        if self.classification is Classification.EXCEPTION:
            return Outcome.EXCEPTION
        return Outcome.SUCCESS

    @property
    def terminal(self) -> bool:
        return self.classification in (
            Classification.BUSINESS_FAILURE,
            Classification.EXCEPTION,
        )

    def mark_early_success(self, message: Optional[str] = None) -> bool:
        if self.classification is not Classification.UNSET:
            return False
        self.classification = Classification.EARLY_SUCCESS
        self.early_message = message
        return True

    def record_failure(self, failure: Failure) -> bool:
        if self.terminal:
            return False
        self.classification = Classification.BUSINESS_FAILURE
        self.error = failure
        return True

    def record_exception(self, error: BaseException) -> bool:
        if self.terminal:
            return False
        self.classification = Classification.EXCEPTION
        self.error = error
        self.early_message = None
        return True

    def expose(self, key: str, value: Any) -> None:
        if self.finalized:
            raise ContractViolation(
                f"Cannot expose '{key}': outbound contract already finalized"
            )
        self.exposed[key] = value

    def finalize(self) -> None:
        self.finalized = True
