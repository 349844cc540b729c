"""
Pydantic v2 models for action field contracts.

A ``FieldContract`` declares one named value an action either expects
(inbound) or exposes (outbound), together with its validation rules, its
default and, for inbound fields, an optional preprocessing transform.

All models use ``extra="forbid"`` and are frozen: a contract never changes
after the action class that declares it has been built.

Usage::

    from actioncore.contract.schema import FieldContract
    from actioncore.types import Direction

    name = FieldContract(name="name", direction=Direction.INBOUND, type=str)
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from actioncore.contract.paths import assign, contains, field_paths
from actioncore.exceptions import ContractViolation
from actioncore.types import Direction

FILTERED = "[FILTERED]"

# Named types understood in addition to Python classes
BOOLEAN = "boolean"
UUID = "uuid"
PARAMS = "params"
NAMED_TYPES = frozenset({BOOLEAN, UUID, PARAMS})


class _NoDefault:
    """Marker for "no static default declared" (``None`` is a valid default)."""

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __copy__(self) -> "_NoDefault":
        return self

    def __deepcopy__(self, memo: Any) -> "_NoDefault":
        return self


NO_DEFAULT: Any = _NoDefault()


class FieldContract(BaseModel):
    """Declaration of a single inbound or outbound action field."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Field name")
    direction: Direction = Field(..., description="inbound (expects) or outbound (exposes)")
    on: Optional[str] = Field(
        None, description="Inbound parent field this subfield is read from"
    )
    type: Any = Field(
        None,
        description="Python class, tuple of classes, or one of 'boolean', 'uuid', 'params'",
    )
    optional: bool = Field(False, description="Allow None (and blank) values")
    allow_blank: bool = Field(False, description="Skip the presence check for blank values")
    inclusion: Optional[Any] = Field(
        None, description="Container the value must be a member of"
    )
    check: Optional[Callable[..., Any]] = Field(
        None,
        description="Custom validator; returns False, an error message or a list of messages when invalid",
    )
    default: Any = Field(NO_DEFAULT, description="Static default")
    default_factory: Optional[Callable[..., Any]] = Field(
        None, description="Computed default, called with the action instance"
    )
    preprocess: Optional[Callable[[Any], Any]] = Field(
        None, description="Inbound-only transform applied before defaults"
    )
    blank_triggers_default: bool = Field(
        False, description="Blank values (not just None/missing) receive the default"
    )
    sensitive: bool = Field(False, description="Replace the value with [FILTERED] in logs")
    description: Optional[str] = Field(None, description="Human-readable description")

    @model_validator(mode="after")
    def check_options(self) -> "FieldContract":
        parts = self.name.split(".") if self.on is not None else [self.name]
        if not all(part.isidentifier() for part in parts):
            raise ContractViolation(f"Field name must be a valid identifier: {self.name!r}")
        if self.on is not None:
            if self.direction is Direction.OUTBOUND:
                raise ContractViolation(
                    f"Field '{self.name}': on= is only supported on inbound fields"
                )
            if not self.on.isidentifier():
                raise ContractViolation(
                    f"Field '{self.name}': on= must name a single field, got {self.on!r}"
                )
        if self.default is not NO_DEFAULT and self.default_factory is not None:
            raise ContractViolation(
                f"Field '{self.name}' declares both default and default_factory"
            )
        if self.preprocess is not None and self.direction is Direction.OUTBOUND:
            raise ContractViolation(
                f"Field '{self.name}': preprocess is only supported on inbound fields"
            )
        if isinstance(self.type, str) and self.type not in NAMED_TYPES:
            raise ContractViolation(
                f"Field '{self.name}': unknown type name {self.type!r} "
                f"(expected one of {', '.join(sorted(NAMED_TYPES))})"
            )
        return self

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT or self.default_factory is not None

    @property
    def presence_required(self) -> bool:
        """Blank values are rejected unless the field is optional, allows blank, or is boolean."""
        return not (self.optional or self.allow_blank or self.type == BOOLEAN)

    def resolve_default(self, action: Any) -> Any:
        if self.default_factory is not None:
            return self.default_factory(action)
        return self.default


def _through_mappings(values: Mapping[str, Any], path: tuple[str, ...]) -> bool:
    current: Any = values
    for key in path[:-1]:
        if not isinstance(current, Mapping):
            return False
        current = current.get(key)
    return isinstance(current, Mapping)


def filter_sensitive(
    values: Mapping[str, Any], fields: Iterable[FieldContract]
) -> dict[str, Any]:
    """
    Return the declared ``values`` with sensitive fields replaced by ``[FILTERED]``.

    Sensitive subfields are filtered inside a copy of their parent value.
    """
    fields = tuple(fields)
    filtered: dict[str, Any] = {}
    for contract in fields:
        if contract.on is not None or contract.name not in values:
            continue
        filtered[contract.name] = FILTERED if contract.sensitive else values[contract.name]

    paths = field_paths(fields)
    for contract in fields:
        if contract.on is None or not contract.sensitive:
            continue
        path = paths[contract.name]
        if filtered.get(path[0], FILTERED) is FILTERED or not contains(filtered, path):
            continue
        if _through_mappings(filtered, path):
            assign(filtered, path, FILTERED)
        else:
            # never write into caller objects; hide the whole parent instead
            filtered[path[0]] = FILTERED
    return filtered
