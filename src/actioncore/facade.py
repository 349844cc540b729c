"""
Read-only, allow-listed views over an invocation's values.

``action.inputs`` and the outbound side of ``Result`` are ``FieldView``s:
only names declared on the action's definition can be read, and any other
name raises ``UndeclaredFieldError`` pointing at the missing declaration.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping, Optional

from actioncore.contract.paths import Path, contains, extract
from actioncore.exceptions import UndeclaredFieldError


class FieldView:
    """Attribute and item access to declared fields of a live mapping."""

    __slots__ = ("_owner", "_values", "_allowed", "_view", "_declaration", "_paths")

    def __init__(
        self,
        owner: str,
        values: Mapping[str, Any],
        allowed: Iterable[str],
        view: str,
        declaration: str,
        paths: Optional[Mapping[str, Path]] = None,
    ) -> None:
        object.__setattr__(self, "_owner", owner)
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_allowed", frozenset(allowed))
        object.__setattr__(self, "_view", view)
        object.__setattr__(self, "_declaration", declaration)
        object.__setattr__(self, "_paths", dict(paths or {}))

    def _read(self, name: str) -> Any:
        if name not in self._allowed:
            raise UndeclaredFieldError(self._owner, name, self._view, self._declaration)
        path = self._paths.get(name)
        if path is not None:
            return extract(self._values, path)
        return self._values.get(name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._read(name)

    def __getitem__(self, name: str) -> Any:
        return self._read(name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{self._view} is read-only")

    def __contains__(self, name: object) -> bool:
        if name not in self._allowed:
            return False
        path = self._paths.get(name)
        if path is not None:
            return contains(self._values, path)
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def keys(self) -> list[str]:
        return [name for name in self._values if name in self._allowed]

    def to_dict(self) -> dict[str, Any]:
        return {name: self._values[name] for name in self.keys()}

    def __repr__(self) -> str:
        return f"<FieldView {self._owner}.{self._view} {self.to_dict()!r}>"
