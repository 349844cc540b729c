"""
Before / around / after hook chain wrapped around an action's work.

Hooks are callables taking the action (``fn(action)``; around hooks take
``fn(action, proceed)``) or strings naming a method on the action.

Execution model:
- around hooks nest; the first declared is the outermost
- before hooks run in declaration order
- the work runs
- after hooks run in reverse declaration order

Any hook or the work itself may return ``EarlyComplete`` (``action.done()``)
to end the invocation successfully.  After hooks are skipped in that case,
and the signal is carried out through every enclosing around hook even when
the hook discards the value returned by ``proceed()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union


@dataclass(frozen=True)
class Continue:
    """Normal completion; ``value`` is whatever the work returned."""

    value: Any = None


@dataclass(frozen=True)
class EarlyComplete:
    """Successful early completion with an optional success message."""

    message: Optional[str] = None


Signal = Union[Continue, EarlyComplete]
Hook = Union[Callable[..., Any], str]


def call_hook(action: Any, hook: Hook, *args: Any) -> Any:
    if isinstance(hook, str):
        return getattr(action, hook)(*args)
    return hook(action, *args)


class HookChain:
    """Runs hooks and the work, returning a ``Signal``."""

    def __init__(
        self,
        before: Sequence[Hook] = (),
        around: Sequence[Hook] = (),
        after: Sequence[Hook] = (),
    ) -> None:
        self.before = tuple(before)
        self.around = tuple(around)
        self.after = tuple(after)

    def run(self, action: Any, work: Callable[[], Any]) -> Signal:
        def core() -> Signal:
            for hook in self.before:
                returned = call_hook(action, hook)
                if isinstance(returned, EarlyComplete):
                    return returned

            value = work()
            if isinstance(value, EarlyComplete):
                return value

            for hook in reversed(self.after):
                returned = call_hook(action, hook)
                if isinstance(returned, EarlyComplete):
                    return returned
            return Continue(value)

        chain: Callable[[], Signal] = core
        for hook in reversed(self.around):
            chain = self._wrap(action, hook, chain)
        return chain()

    @staticmethod
    def _wrap(action: Any, hook: Hook, inner: Callable[[], Signal]) -> Callable[[], Signal]:
        def wrapped() -> Signal:
            seen: list[Signal] = []

            def proceed() -> Signal:
                signal = inner()
                seen.append(signal)
                return signal

            returned = call_hook(action, hook, proceed)
            if isinstance(returned, EarlyComplete):
                return returned
            for signal in seen:
                if isinstance(signal, EarlyComplete):
                    return signal
            if seen:
                return seen[-1]
            # proceed() never called: the hook skipped the work
            return Continue(returned)

        return wrapped
