"""
Exception taxonomy for actioncore.

Contract violations (preprocessing, defaults, validation, declaration
mistakes) all derive from ``ContractViolation``.  ``Failure`` is the
expected, user-signalled business failure.  Early completion is *not* an
exception; see ``actioncore.hooks.EarlyComplete``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from actioncore.contract.rules import FieldViolation


class Failure(Exception):
    """Raised by ``Action.fail()`` to halt execution with an expected failure."""

    DEFAULT_MESSAGE = "Execution was halted"

    def __init__(self, message: Optional[str] = None, source: Any = None) -> None:
        self._message = message
        self.source = source
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self._message is None or not str(self._message).strip():
            return self.DEFAULT_MESSAGE
        return str(self._message)

    @property
    def default_message(self) -> bool:
        return self.message == self.DEFAULT_MESSAGE

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.message!r}>"


class ContractViolation(Exception):
    """Base class for contract definition and contract application errors."""


def _describe_field(field: str, on: Optional[str]) -> str:
    if on is None:
        return f"field '{field}'"
    return f"subfield '{field}' on '{on}'"


class PreprocessingError(ContractViolation):
    """A field's preprocess transform raised."""

    def __init__(self, field: str, error: BaseException, on: Optional[str] = None) -> None:
        self.field = field
        self.on = on
        super().__init__(f"Error preprocessing {_describe_field(field, on)}: {error}")


class DefaultAssignmentError(ContractViolation):
    """Computing a field's default raised."""

    def __init__(self, field: str, error: BaseException, on: Optional[str] = None) -> None:
        self.field = field
        self.on = on
        super().__init__(f"Error applying default for {_describe_field(field, on)}: {error}")


class ValidationError(ContractViolation):
    """One or more fields violated their declared rules."""

    direction = "contract"

    def __init__(self, violations: Sequence["FieldViolation"]) -> None:
        self.violations = list(violations)
        super().__init__(self.message)

    @property
    def fields(self) -> list[str]:
        seen: list[str] = []
        for violation in self.violations:
            if violation.field not in seen:
                seen.append(violation.field)
        return seen

    @property
    def message(self) -> str:
        return "; ".join(v.full_message for v in self.violations)

    def __str__(self) -> str:
        return self.message


class InboundValidationError(ValidationError):
    direction = "inbound"


class OutboundValidationError(ValidationError):
    direction = "outbound"


class DuplicateFieldError(ContractViolation):
    """A field name was declared twice in the same direction."""

    def __init__(self, direction: str, fields: Sequence[str]) -> None:
        self.fields = list(fields)
        super().__init__(
            f"Duplicate {direction} field(s) declared: {', '.join(self.fields)}"
        )


class ReservedFieldError(ContractViolation):
    """A field name collides with a name the framework reserves."""

    def __init__(self, name: str, direction: str) -> None:
        self.name = name
        super().__init__(f"Cannot declare {direction} field with reserved name: {name}")


class UnknownExposureError(ContractViolation):
    """``expose()`` was called with a key that is not a declared outbound field."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Attempted to expose unknown key '{key}': "
            f"be sure to declare it with exposes(\"{key}\")"
        )


class UndeclaredFieldError(ContractViolation, AttributeError):
    """An undeclared field was read through a FieldView."""

    def __init__(self, owner: str, name: str, view: str, declaration: str) -> None:
        super().__init__(
            f"Field '{name}' is not available on {view}! "
            f"{owner} may be missing a declaration like: {declaration}(\"{name}\")"
        )
        self.owner = owner
        self.field = name
