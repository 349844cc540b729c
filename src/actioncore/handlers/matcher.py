"""
Conditions attached to callbacks and messages (``if_``, ``unless``, ``from_``).
"""

from __future__ import annotations

from typing import Any, Optional

from actioncore.exceptions import ContractViolation, Failure
from actioncore.handlers.invoker import invoke_handler


def _is_exception_class(rule: Any) -> bool:
    return isinstance(rule, type) and issubclass(rule, BaseException)


def _from_source(source: Any, allowed: tuple[Any, ...]) -> bool:
    if source is None:
        return False
    klass = type(source)
    for candidate in allowed:
        if isinstance(candidate, str):
            if candidate in (klass.__qualname__, f"{klass.__module__}.{klass.__qualname__}"):
                return True
        elif isinstance(source, candidate):
            return True
    return False


class Matcher:
    """
    Decides whether an entry applies to the current action / exception.

    ``rule`` may be an exception class (or tuple of them), a method name,
    or a callable taking the action (and optionally the exception).
    ``source`` restricts the entry to ``Failure`` raised by a nested action
    of the given class(es); a string matches the class name, bare or
    module-qualified.
    """

    def __init__(
        self,
        rule: Any = None,
        *,
        negate: bool = False,
        source: Optional[tuple[Any, ...]] = None,
    ) -> None:
        self.rule = rule
        self.negate = negate
        self.source = source

    @classmethod
    def build(cls, if_: Any = None, unless: Any = None, from_: Any = None) -> Optional["Matcher"]:
        if if_ is not None and unless is not None:
            raise ContractViolation("Cannot combine if_ and unless on the same entry")
        if from_ is not None and (if_ is not None or unless is not None):
            raise ContractViolation("Cannot combine from_ with if_ or unless")
        if if_ is None and unless is None and from_ is None:
            return None

        source = None
        if from_ is not None:
            source = tuple(from_) if isinstance(from_, (tuple, list)) else (from_,)
            for klass in source:
                if not (isinstance(klass, type) or (isinstance(klass, str) and klass)):
                    raise ContractViolation(
                        f"from_ expects action classes or class names, got {klass!r}"
                    )

        return cls(if_ if if_ is not None else unless, negate=unless is not None, source=source)

    def matches(self, action: Any, exception: Optional[BaseException] = None) -> bool:
        if self.source is not None:
            if not isinstance(exception, Failure) or not _from_source(exception.source, self.source):
                return False
            if self.rule is None:
                return True

        result = bool(self._evaluate(action, exception))
        return not result if self.negate else result

    def _evaluate(self, action: Any, exception: Optional[BaseException]) -> Any:
        rule = self.rule
        if _is_exception_class(rule):
            return isinstance(exception, rule)
        if isinstance(rule, tuple) and rule and all(_is_exception_class(r) for r in rule):
            return isinstance(exception, rule)
        if isinstance(rule, str) or callable(rule):
            return invoke_handler(rule, action, exception)
        return rule

    def __repr__(self) -> str:
        kind = "unless" if self.negate else "if"
        return f"Matcher({kind}={self.rule!r}, source={self.source!r})"
