"""
Field contracts: declaration, validation rules and the inbound/outbound engine.
"""

from actioncore.contract.engine import ContractEngine, needs_default
from actioncore.contract.rules import FieldViolation, is_blank, validate_value
from actioncore.contract.schema import (
    FILTERED,
    NO_DEFAULT,
    FieldContract,
    filter_sensitive,
)

__all__ = [
    "ContractEngine",
    "FieldContract",
    "FieldViolation",
    "FILTERED",
    "NO_DEFAULT",
    "filter_sensitive",
    "is_blank",
    "needs_default",
    "validate_value",
]
