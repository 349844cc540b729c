"""
Applies inbound and outbound field contracts to an execution state.

Inbound, in strict order:
1. preprocessing of provided keys
2. defaults for missing / ``None`` (optionally blank) values
3. validation of every field, aggregated into one error

Subfields declared with ``on=`` are read and written through their parent's
value (see ``actioncore.contract.paths``).  A parent is always declared
before its subfields, so it is preprocessed and defaulted first.

Outbound:
1. pass-through of provided values for outbound fields not yet exposed
2. defaults
3. validation, aggregated
4. finalize

Usage::

    engine = ContractEngine(definition.expects, definition.exposes)
    engine.apply_inbound(state, action)
    ...
    engine.apply_outbound(state, action)
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional, Sequence

from actioncore.contract.paths import Path, assign, contains, extract, field_paths
from actioncore.contract.rules import FieldViolation, is_blank, validate_value
from actioncore.contract.schema import FieldContract
from actioncore.exceptions import (
    DefaultAssignmentError,
    Failure,
    InboundValidationError,
    OutboundValidationError,
    PreprocessingError,
)
from actioncore.otel import EVENT_CONTRACT_VIOLATION, add_span_event
from actioncore.state import ExecutionState
from actioncore.types import Direction

logger = logging.getLogger(__name__)

__all__ = ["ContractEngine", "FieldViolation", "needs_default"]


def needs_default(
    contract: FieldContract,
    values: MutableMapping[str, Any],
    path: Optional[Path] = None,
) -> bool:
    """A default fires when the key is absent or ``None`` (or blank, if opted in)."""
    if not contract.has_default:
        return False
    path = path or (contract.name,)
    if not contains(values, path):
        return True
    value = extract(values, path)
    if value is None:
        return True
    return contract.blank_triggers_default and is_blank(value)


class ContractEngine:
    """Runs the inbound and outbound contract algorithms for one definition."""

    def __init__(
        self,
        inbound: Sequence[FieldContract],
        outbound: Sequence[FieldContract],
    ) -> None:
        self.inbound = tuple(inbound)
        self.outbound = tuple(outbound)
        self.inbound_paths = field_paths(self.inbound)
        self.outbound_paths = field_paths(self.outbound)

    # -- inbound ------------------------------------------------------------

    def apply_inbound(self, state: ExecutionState, action: Any) -> None:
        values = state.provided

        for contract in self.inbound:
            path = self.inbound_paths[contract.name]
            if contract.preprocess is None or not contains(values, path):
                continue
            try:
                assign(values, path, contract.preprocess(extract(values, path)))
            except Failure:
                raise
            except Exception as exc:
                raise PreprocessingError(contract.name, exc, on=contract.on) from exc

        self._apply_defaults(self.inbound, values, action, self.inbound_paths)

        violations = self._validate(self.inbound, values, self.inbound_paths)
        if violations:
            self._record_violations(action, Direction.INBOUND, violations)
            raise InboundValidationError(violations)

        state.inbound_passed = True

    # -- outbound -----------------------------------------------------------

    def apply_outbound(self, state: ExecutionState, action: Any) -> None:
        state.outbound_attempted = True
        exposed = state.exposed

        for contract in self.outbound:
            if contract.name not in exposed and contract.name in state.provided:
                exposed[contract.name] = state.provided[contract.name]

        self._apply_defaults(self.outbound, exposed, action, self.outbound_paths)

        violations = self._validate(self.outbound, exposed, self.outbound_paths)
        if violations:
            self._record_violations(action, Direction.OUTBOUND, violations)
            raise OutboundValidationError(violations)

        state.finalize()

    # -- shared -------------------------------------------------------------

    def _apply_defaults(
        self,
        contracts: Sequence[FieldContract],
        values: MutableMapping[str, Any],
        action: Any,
        paths: dict[str, Path],
    ) -> None:
        for contract in contracts:
            path = paths[contract.name]
            if not needs_default(contract, values, path):
                continue
            try:
                assign(values, path, contract.resolve_default(action))
            except Failure:
                raise
            except Exception as exc:
                raise DefaultAssignmentError(contract.name, exc, on=contract.on) from exc

    def _validate(
        self,
        contracts: Sequence[FieldContract],
        values: MutableMapping[str, Any],
        paths: dict[str, Path],
    ) -> list[FieldViolation]:
        violations: list[FieldViolation] = []
        for contract in contracts:
            value = extract(values, paths[contract.name])
            violations.extend(validate_value(contract, value))
        return violations

    def _record_violations(
        self,
        action: Any,
        direction: Direction,
        violations: Sequence[FieldViolation],
    ) -> None:
        resource = type(action).__qualname__
        logger.debug(
            "%s contract violated for %s: %s",
            direction.value,
            resource,
            "; ".join(v.full_message for v in violations),
        )
        add_span_event(
            EVENT_CONTRACT_VIOLATION,
            {
                "action.resource": resource,
                "contract.direction": direction.value,
                "contract.fields": ",".join(sorted({v.field for v in violations})),
                "contract.violation_count": len(violations),
            },
        )
