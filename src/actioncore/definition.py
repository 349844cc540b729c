"""
Immutable declaration of everything an action class is built from.

An ``ActionDefinition`` holds the inbound and outbound field contracts, the
lifecycle hooks, outcome callbacks and messages, and per-action logging and
reporting overrides.  It is validated once, when the action class body is
executed, and never mutated afterwards; ``extend()`` builds a child
definition for subclasses.

Usage::

    from actioncore.definition import ActionDefinition, expects, exposes, success_message

    class Greet(Action):
        definition = ActionDefinition(
            expects=[expects("name", type=str)],
            exposes=[exposes("greeting", type=str)],
            messages=[success_message("Greeted")],
        )
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from actioncore.contract.engine import ContractEngine
from actioncore.contract.paths import Path, field_paths
from actioncore.contract.schema import NO_DEFAULT, FieldContract
from actioncore.exceptions import ContractViolation, DuplicateFieldError, ReservedFieldError
from actioncore.handlers.matcher import Matcher
from actioncore.handlers.registry import CallbackEntry, MessageEntry
from actioncore.hooks import HookChain
from actioncore.logger import level_number
from actioncore.types import Direction, EventKind, ReportingMode

INHERIT = "inherit"

# Names readable on Result itself; an outbound field may not shadow them
RESERVED_OUTBOUND = frozenset(
    {
        "ok",
        "error",
        "success",
        "message",
        "outcome",
        "exception",
        "elapsed_ms",
        "finalized",
        "as_dict",
    }
)

_SEQUENCE_FIELDS = ("expects", "exposes", "before", "around", "after", "callbacks", "messages")


def _flatten(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        return (value,)
    items: list[Any] = []
    for item in value:
        if isinstance(item, (list, tuple)):
            items.extend(item)
        else:
            items.append(item)
    return tuple(items)


def _check_parents(contracts: tuple[FieldContract, ...]) -> None:
    declared: set[str] = set()
    for contract in contracts:
        if contract.on is not None and contract.on not in declared:
            raise ContractViolation(
                f"expects(\"{contract.name}\", on=\"{contract.on}\") needs '{contract.on}' "
                f"to be declared first, e.g. expects(\"{contract.on}\")"
            )
        declared.add(contract.name)


class ActionDefinition(BaseModel):
    """Frozen declaration of an action's contracts, hooks and handlers."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    expects: tuple[FieldContract, ...] = Field(default=(), description="Inbound fields")
    exposes: tuple[FieldContract, ...] = Field(default=(), description="Outbound fields")
    before: tuple[Any, ...] = Field(default=(), description="Hooks run before the work")
    around: tuple[Any, ...] = Field(default=(), description="Hooks wrapping the work")
    after: tuple[Any, ...] = Field(default=(), description="Hooks run after the work")
    callbacks: tuple[CallbackEntry, ...] = Field(default=())
    messages: tuple[MessageEntry, ...] = Field(default=())
    log_calls: Optional[str] = Field(
        default=INHERIT,
        description="Lifecycle log level; 'inherit' uses config, None disables",
    )
    log_errors: Optional[str] = Field(
        default=INHERIT,
        description="After-line level for non-ok results when call logging is off",
    )
    async_exception_reporting: Optional[ReportingMode] = Field(
        default=None,
        description="Overrides the configured reporting mode for this action",
    )

    @field_validator(*_SEQUENCE_FIELDS, mode="before")
    @classmethod
    def flatten_sequences(cls, v: Any) -> tuple[Any, ...]:
        return _flatten(v)

    @field_validator("before", "around", "after")
    @classmethod
    def hooks_are_callable(cls, v: tuple[Any, ...]) -> tuple[Any, ...]:
        for hook in v:
            if not (isinstance(hook, str) or callable(hook)):
                raise ContractViolation(f"Hook must be callable or a method name, got {hook!r}")
        return v

    @field_validator("log_calls", "log_errors")
    @classmethod
    def known_level(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == INHERIT:
            return v
        level_number(v)
        return v.lower()

    @model_validator(mode="after")
    def check_fields(self) -> "ActionDefinition":
        for direction, contracts in (
            (Direction.INBOUND, self.expects),
            (Direction.OUTBOUND, self.exposes),
        ):
            for contract in contracts:
                if contract.direction is not direction:
                    raise ContractViolation(
                        f"Field '{contract.name}' is {contract.direction.value} "
                        f"but was declared as {direction.value}"
                    )
                if contract.name.startswith("_"):
                    raise ReservedFieldError(contract.name, direction.value)
                if direction is Direction.OUTBOUND and contract.name in RESERVED_OUTBOUND:
                    raise ReservedFieldError(contract.name, direction.value)

            if direction is Direction.INBOUND:
                _check_parents(contracts)

            counts = Counter(c.name for c in contracts)
            duplicates = [name for name, count in counts.items() if count > 1]
            if duplicates:
                raise DuplicateFieldError(direction.value, duplicates)
        return self

    @property
    def inbound_names(self) -> frozenset[str]:
        return frozenset(c.name for c in self.expects)

    @property
    def outbound_names(self) -> frozenset[str]:
        return frozenset(c.name for c in self.exposes)

    @property
    def subfield_paths(self) -> dict[str, Path]:
        """Key paths of inbound subfields, by field name."""
        paths = field_paths(self.expects)
        return {c.name: paths[c.name] for c in self.expects if c.on is not None}

    def contract_engine(self) -> ContractEngine:
        return ContractEngine(self.expects, self.exposes)

    def hook_chain(self) -> HookChain:
        return HookChain(self.before, self.around, self.after)

    def extend(self, **changes: Any) -> "ActionDefinition":
        """
        Build a child definition.

        Sequence options (fields, hooks, callbacks, messages) are appended to
        the parent's; scalar options replace the parent's value.
        """
        data = {name: getattr(self, name) for name in type(self).model_fields}
        for key, value in changes.items():
            if key not in data:
                raise ContractViolation(f"Unknown definition option: {key}")
            if key in _SEQUENCE_FIELDS:
                data[key] = tuple(data[key]) + _flatten(value)
            else:
                data[key] = value
        return type(self)(**data)


# ---------------------------------------------------------------------------
# Declaration helpers
# ---------------------------------------------------------------------------


def _fields(
    direction: Direction,
    names: tuple[str, ...],
    options: dict[str, Any],
) -> tuple[FieldContract, ...]:
    if not names:
        raise ContractViolation(f"Declare at least one {direction.value} field name")
    validate = options.pop("validate", None)
    if validate is not None:
        options["check"] = validate
    return tuple(FieldContract(name=name, direction=direction, **options) for name in names)


def expects(
    *names: str,
    on: Optional[str] = None,
    type: Any = None,
    optional: bool = False,
    allow_blank: bool = False,
    inclusion: Any = None,
    validate: Optional[Callable[[Any], Any]] = None,
    default: Any = NO_DEFAULT,
    default_factory: Optional[Callable[[Any], Any]] = None,
    preprocess: Optional[Callable[[Any], Any]] = None,
    blank_triggers_default: bool = False,
    sensitive: bool = False,
    description: Optional[str] = None,
) -> tuple[FieldContract, ...]:
    """
    Declare one or more inbound fields sharing the same options.

    With ``on="parent"`` the fields are subfields read from the declared
    inbound field ``parent`` (a mapping or object); dotted names reach
    further down, e.g. ``expects("geo.lat", on="address")``.
    """
    return _fields(
        Direction.INBOUND,
        names,
        dict(
            on=on,
            type=type,
            optional=optional,
            allow_blank=allow_blank,
            inclusion=inclusion,
            validate=validate,
            default=default,
            default_factory=default_factory,
            preprocess=preprocess,
            blank_triggers_default=blank_triggers_default,
            sensitive=sensitive,
            description=description,
        ),
    )


def exposes(
    *names: str,
    type: Any = None,
    optional: bool = False,
    allow_blank: bool = False,
    inclusion: Any = None,
    validate: Optional[Callable[[Any], Any]] = None,
    default: Any = NO_DEFAULT,
    default_factory: Optional[Callable[[Any], Any]] = None,
    blank_triggers_default: bool = False,
    sensitive: bool = False,
    description: Optional[str] = None,
) -> tuple[FieldContract, ...]:
    """Declare one or more outbound fields sharing the same options."""
    return _fields(
        Direction.OUTBOUND,
        names,
        dict(
            type=type,
            optional=optional,
            allow_blank=allow_blank,
            inclusion=inclusion,
            validate=validate,
            default=default,
            default_factory=default_factory,
            blank_triggers_default=blank_triggers_default,
            sensitive=sensitive,
            description=description,
        ),
    )


def _callback(kind: EventKind, handler: Any, if_: Any, unless: Any) -> CallbackEntry:
    return CallbackEntry(event_kind=kind, handler=handler, matcher=Matcher.build(if_, unless))


def on_success(handler: Any, *, if_: Any = None, unless: Any = None) -> CallbackEntry:
    return _callback(EventKind.SUCCESS, handler, if_, unless)


def on_error(handler: Any, *, if_: Any = None, unless: Any = None) -> CallbackEntry:
    """Fires for both business failures and exceptions."""
    return _callback(EventKind.ERROR, handler, if_, unless)


def on_failure(handler: Any, *, if_: Any = None, unless: Any = None) -> CallbackEntry:
    return _callback(EventKind.FAILURE, handler, if_, unless)


def on_exception(handler: Any, *, if_: Any = None, unless: Any = None) -> CallbackEntry:
    """Fires for unclassified exceptions, subject to the retry reporting gate."""
    return _callback(EventKind.EXCEPTION, handler, if_, unless)


def success_message(
    message: Any = None,
    *,
    prefix: Optional[str] = None,
    if_: Any = None,
    unless: Any = None,
) -> MessageEntry:
    return MessageEntry(
        event_kind=EventKind.SUCCESS,
        handler=message,
        prefix=prefix,
        matcher=Matcher.build(if_, unless),
    )


def error_message(
    message: Any = None,
    *,
    prefix: Optional[str] = None,
    if_: Any = None,
    unless: Any = None,
    from_: Any = None,
) -> MessageEntry:
    return MessageEntry(
        event_kind=EventKind.ERROR,
        handler=message,
        prefix=prefix,
        matcher=Matcher.build(if_, unless, from_),
    )
