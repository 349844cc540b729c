"""
Key paths into provided values, for subfields declared with ``on=``.

A subfield's path is its parent's path followed by the parts of its own
(possibly dotted) name, e.g. ``expects("city", on="address")`` reads
``provided["address"]["city"]``.  Levels may be mappings or plain objects.

Writes never mutate a mapping the caller passed in: every mapping along the
path is copied before it is updated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from actioncore.contract.schema import FieldContract

Path = tuple[str, ...]


def field_paths(contracts: Iterable["FieldContract"]) -> dict[str, Path]:
    """Map each field name to its full key path."""
    paths: dict[str, Path] = {}
    for contract in contracts:
        if contract.on is None:
            paths[contract.name] = (contract.name,)
        else:
            parent = paths.get(contract.on, (contract.on,))
            paths[contract.name] = parent + tuple(contract.name.split("."))
    return paths


def _child(level: Any, key: str) -> Any:
    if isinstance(level, Mapping):
        return level.get(key)
    return getattr(level, key, None)


def extract(values: Mapping[str, Any], path: Path) -> Any:
    """Value at ``path``, or None when any level along it is missing."""
    current: Any = values
    for key in path:
        if current is None:
            return None
        current = _child(current, key)
    return current


def contains(values: Mapping[str, Any], path: Path) -> bool:
    """True when the final key exists (objects count only a non-None attribute)."""
    current: Any = values
    for key in path[:-1]:
        current = _child(current, key)
        if current is None:
            return False
    last = path[-1]
    if isinstance(current, Mapping):
        return last in current
    return getattr(current, last, None) is not None


def _assign(level: Any, path: Path, value: Any) -> Any:
    key, rest = path[0], path[1:]
    if rest:
        child = _child(level, key)
        value = _assign({} if child is None else child, rest, value)
    if isinstance(level, Mapping):
        updated = dict(level)
        updated[key] = value
        return updated
    setattr(level, key, value)
    return level


def assign(values: dict[str, Any], path: Path, value: Any) -> None:
    """Set the value at ``path``, creating empty mappings for missing levels."""
    if len(path) == 1:
        values[path[0]] = value
        return
    root = values.get(path[0])
    values[path[0]] = _assign({} if root is None else root, path[1:], value)
