"""
Base class for actions.

Subclass ``Action``, attach an ``ActionDefinition`` and implement
``call()``.  Run it with ``run()`` (never raises, returns a ``Result``) or
``run_strict()`` (raises the captured exception when not ok).

Example::

    class Greet(Action):
        definition = ActionDefinition(
            expects=[expects("name", type=str)],
            exposes=[exposes("greeting", type=str)],
        )

        def call(self):
            self.expose(greeting=f"Hello, {self.inputs.name}!")

    result = Greet.run(name="World")
    assert result.ok and result.greeting == "Hello, World!"
"""

from __future__ import annotations

from typing import Any, ClassVar, NoReturn, Optional

from actioncore.config import get_config
from actioncore.definition import ActionDefinition
from actioncore.exceptions import Failure, UnknownExposureError
from actioncore.facade import FieldView
from actioncore.hooks import EarlyComplete
from actioncore.logger import ActionLogger
from actioncore.nesting import current_action, nesting_depth
from actioncore.pipeline import ExecutionPipeline
from actioncore.result import Result
from actioncore.state import ExecutionState

_pipeline = ExecutionPipeline()


class Action:
    """A unit of work with declared inputs, outputs and outcome semantics."""

    definition: ClassVar[ActionDefinition] = ActionDefinition()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not isinstance(cls.definition, ActionDefinition):
            raise TypeError(
                f"{cls.__qualname__}.definition must be an ActionDefinition, "
                f"got {type(cls.definition).__name__}"
            )

    def __init__(self, **inputs: Any) -> None:
        definition = type(self).definition
        self._state = ExecutionState(provided=dict(inputs))
        self._result: Optional[Result] = None
        self.inputs = FieldView(
            type(self).__qualname__,
            self._state.provided,
            definition.inbound_names,
            "inputs",
            "expects",
            definition.subfield_paths,
        )

    # -- user API -----------------------------------------------------------

    def call(self) -> Any:
        """The action's work. Override in subclasses."""
        return None

    def expose(self, **values: Any) -> None:
        allowed = type(self).definition.outbound_names
        for key in values:
            if key not in allowed:
                raise UnknownExposureError(key)
        for key, value in values.items():
            self._state.expose(key, value)

    def fail(self, message: Optional[str] = None) -> NoReturn:
        raise Failure(message, source=self)

    def done(self, message: Optional[str] = None) -> EarlyComplete:
        """Complete successfully right away; use as ``return self.done("...")``."""
        return EarlyComplete(message)

    def log(self, message: str, level: Optional[str] = None) -> None:
        depth = max(nesting_depth() - 1, 0)
        ActionLogger(type(self).__qualname__, depth=depth).log(
            message, level or get_config().log_level
        )

    @property
    def result(self) -> Result:
        if self._result is None:
            self._result = Result(self, self._state)
        return self._result

    # -- entry points -------------------------------------------------------

    @classmethod
    def run(cls, **inputs: Any) -> Result:
        """Run the action; every exception is captured on the returned Result."""
        return _pipeline.run(cls(**inputs))

    @classmethod
    def run_strict(cls, **inputs: Any) -> Result:
        """
        Run the action and raise unless the result is ok.

        Inside another running action, a business failure is re-raised as a
        new ``Failure`` whose ``source`` is this action, so the caller's
        ``error_message(from_=...)`` entries can match it.
        """
        action = cls(**inputs)
        result = _pipeline.run(action)
        if result.ok:
            return result

        error = result.exception
        if isinstance(error, Failure) and current_action() is not None:
            raise Failure(result.error, source=action) from error
        raise error
