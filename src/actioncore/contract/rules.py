"""
Validation rules applied to a single field value.

Rules run in a fixed order: presence, then type, inclusion and the custom
check.  Blank values that the field permits short-circuit the remaining
rules, so ``optional`` and ``allow_blank`` behave like "skip when empty".

Blank means ``None``, a whitespace-only string, or an empty container.
``False`` and ``0`` are never blank.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Mapping, Sized
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict

from actioncore.contract.schema import BOOLEAN, PARAMS, UUID, FieldContract

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class FieldViolation(BaseModel):
    """One rule violation for one field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str
    rule: str
    message: str

    @property
    def full_message(self) -> str:
        return f"{self.field} {self.message}"


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bytes, bytearray)):
        return not value.strip()
    if isinstance(value, Sized) and not isinstance(value, (int, float)):
        return len(value) == 0
    return False


# ---------------------------------------------------------------------------
# Type checks
# ---------------------------------------------------------------------------

_TYPE_CHECKERS: dict[str, Callable[[Any], bool]] = {
    BOOLEAN: lambda v: isinstance(v, bool),
    UUID: lambda v: isinstance(v, uuid.UUID)
    or (isinstance(v, str) and bool(_UUID_PATTERN.match(v))),
    PARAMS: lambda v: isinstance(v, Mapping),
}

_TYPE_LABELS = {BOOLEAN: "boolean", UUID: "uuid", PARAMS: "mapping"}


def _type_label(declared: Any) -> str:
    if isinstance(declared, str):
        return _TYPE_LABELS[declared]
    if isinstance(declared, tuple):
        return "one of: " + ", ".join(_type_label(t) for t in declared)
    return getattr(declared, "__name__", repr(declared))


def _matches_type(declared: Any, value: Any) -> bool:
    if isinstance(declared, tuple):
        return any(_matches_type(t, value) for t in declared)
    if isinstance(declared, str):
        return _TYPE_CHECKERS[declared](value)
    # bool is an int subclass; a declared int does not accept True/False
    if isinstance(value, bool) and declared is not bool and issubclass(bool, declared):
        return declared is object
    return isinstance(value, declared)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def check_presence(contract: FieldContract, value: Any) -> Optional[str]:
    if contract.presence_required and is_blank(value):
        return "can't be blank"
    return None


def check_type(contract: FieldContract, value: Any) -> Optional[str]:
    if contract.type is None:
        return None
    if _matches_type(contract.type, value):
        return None
    label = _type_label(contract.type)
    if label.startswith("one of"):
        return f"is not {label}"
    return f"is not a {label}"


def check_inclusion(contract: FieldContract, value: Any) -> Optional[str]:
    if contract.inclusion is None:
        return None
    try:
        included = value in contract.inclusion
    except TypeError:
        included = False
    return None if included else "is not included in the list"


def check_custom(contract: FieldContract, value: Any) -> Optional[str]:
    if contract.check is None:
        return None
    try:
        outcome = contract.check(value)
    except Exception as exc:
        return f"failed validation: {exc}"
    if outcome is None or outcome is True:
        return None
    if outcome is False:
        return "is invalid"
    if isinstance(outcome, str):
        return outcome or None
    if isinstance(outcome, (list, tuple, set, frozenset)):
        messages = [str(item) for item in outcome if item]
        return "; ".join(messages) or None
    return str(outcome) if outcome else None


_RULES: tuple[tuple[str, Callable[[FieldContract, Any], Optional[str]]], ...] = (
    ("type", check_type),
    ("inclusion", check_inclusion),
    ("check", check_custom),
)


def validate_value(contract: FieldContract, value: Any) -> list[FieldViolation]:
    """Run every rule for ``contract`` against ``value``; returns all violations."""
    message = check_presence(contract, value)
    if message is not None:
        return [FieldViolation(field=contract.name, rule="presence", message=message)]

    if value is None and (contract.optional or contract.allow_blank):
        return []
    if contract.type != BOOLEAN and is_blank(value) and (contract.optional or contract.allow_blank):
        return []

    violations: list[FieldViolation] = []
    for rule, fn in _RULES:
        message = fn(contract, value)
        if message is not None:
            violations.append(FieldViolation(field=contract.name, rule=rule, message=message))
    return violations
