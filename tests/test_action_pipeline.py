"""
End-to-end tests: actions run through the full pipeline.

These exercise the observable guarantees of Action.run() / run_strict():
classification, messages, callbacks, nesting and lifecycle logging.
"""

from __future__ import annotations

import logging

import pytest

from actioncore import (
    Action,
    ActionDefinition,
    Failure,
    InboundValidationError,
    OutboundValidationError,
    Outcome,
    UndeclaredFieldError,
    UnknownExposureError,
    error_message,
    expects,
    exposes,
    on_error,
    on_exception,
    on_failure,
    on_success,
    success_message,
)
from actioncore.config import get_config
from actioncore.nesting import nesting_depth


# ============================================================================
# Sample actions
# ============================================================================


class Greet(Action):
    definition = ActionDefinition(
        expects=expects("name", type=str),
        exposes=exposes("greeting", type=str),
    )

    def call(self):
        self.expose(greeting=f"Hello, {self.inputs.name}!")


class Refuse(Action):
    definition = ActionDefinition(
        exposes=[exposes("status", type=str, default="rejected"), exposes("receipt", type=str)],
    )

    def call(self):
        self.fail("Card declined")


class Crash(Action):
    def call(self):
        raise RuntimeError("disk full")


class Flags(Action):
    definition = ActionDefinition(exposes=exposes("enabled", type=bool))

    def call(self):
        self.expose(enabled=False)


class ShortCircuit(Action):
    definition = ActionDefinition(exposes=exposes("count", type=int, optional=True))

    def call(self):
        return self.done("Nothing to do")


class DoneThenBroken(Action):
    definition = ActionDefinition(exposes=exposes("count", type=int))

    def call(self):
        return self.done("Nothing to do")


class UnprintableError(Exception):
    def __str__(self):
        raise RuntimeError("cannot render")


class RaisesUnprintable(Action):
    def call(self):
        raise UnprintableError()


class PeeksThenDone(Action):
    def call(self):
        self.result.success
        return self.done("custom done")


class ReadsUndeclared(Action):
    definition = ActionDefinition(expects=expects("a", type=int))

    def call(self):
        return self.inputs.b


class ExposesUnknown(Action):
    def call(self):
        self.expose(surprise=1)


class Charge(Action):
    definition = ActionDefinition(expects=expects("amount", type=int))

    def call(self):
        if self.inputs.amount > 100:
            self.fail("card declined")
        if self.inputs.amount < 0:
            raise ValueError("negative amount")


class Checkout(Action):
    definition = ActionDefinition(
        expects=expects("amount", type=int),
        messages=error_message(prefix="Payment failed: ", from_=Charge),
    )

    def call(self):
        Charge.run_strict(amount=self.inputs.amount)


class PlainCheckout(Action):
    definition = ActionDefinition(expects=expects("amount", type=int))

    def call(self):
        Charge.run_strict(amount=self.inputs.amount)


class Ship(Action):
    definition = ActionDefinition(
        expects=[
            expects("address", type=dict),
            expects("city", on="address", type=str, preprocess=str.title),
            expects("country", on="address", default="NO"),
        ],
        exposes=exposes("label", type=str),
    )

    def call(self):
        self.expose(label=f"{self.inputs.city}, {self.inputs.country}")


class DepthProbe(Action):
    definition = ActionDefinition(exposes=exposes("depth", type=int))

    def call(self):
        self.expose(depth=nesting_depth())


class NestingOuter(Action):
    definition = ActionDefinition(exposes=[exposes("outer", "inner", type=int)])

    def call(self):
        inner = DepthProbe.run()
        self.expose(outer=nesting_depth(), inner=inner.depth)


# ============================================================================
# Classification
# ============================================================================


class TestOutcomes:
    def test_success(self):
        result = Greet.run(name="World")
        assert result.ok is True
        assert result.outcome is Outcome.SUCCESS
        assert result.greeting == "Hello, World!"
        assert result["greeting"] == "Hello, World!"
        assert result.success == "Action completed successfully"
        assert result.error is None
        assert result.exception is None
        assert result.finalized is True

    def test_missing_input_is_exception(self):
        result = Greet.run()
        assert result.ok is False
        assert result.outcome is Outcome.EXCEPTION
        assert isinstance(result.exception, InboundValidationError)
        assert result.exception.fields == ["name"]
        assert result.error

    def test_failure(self, reporter):
        result = Refuse.run()
        assert result.outcome is Outcome.FAILURE
        assert result.error == "Card declined"
        assert isinstance(result.exception, Failure)
        reporter.assert_not_called()

    def test_exception_reported(self, reporter):
        result = Crash.run()
        assert result.outcome is Outcome.EXCEPTION
        assert isinstance(result.exception, RuntimeError)
        assert result.error == "Something went wrong"
        reporter.assert_called_once()
        assert reporter.call_args.args == (result.exception,)
        assert reporter.call_args.kwargs["action"].__class__ is Crash

    def test_false_output_preserved(self):
        result = Flags.run()
        assert result.ok is True
        assert result.enabled is False

    def test_elapsed_recorded_when_inbound_fails(self):
        result = Greet.run()
        assert result.elapsed_ms is not None
        assert result.elapsed_ms >= 0

    def test_outbound_defaults_on_failure_path(self):
        result = Refuse.run()
        assert result.outcome is Outcome.FAILURE
        assert result.status == "rejected"
        assert result.receipt is None


class TestEarlyCompletion:
    def test_done_message(self):
        result = ShortCircuit.run()
        assert result.ok is True
        assert result.success == "Nothing to do"
        assert result.message == "Nothing to do"

    def test_success_read_during_call_does_not_stick(self):
        result = PeeksThenDone.run()
        assert result.ok is True
        assert result.success == "custom done"

    def test_outbound_failure_after_done_is_exception(self):
        result = DoneThenBroken.run()
        assert result.outcome is Outcome.EXCEPTION
        assert isinstance(result.exception, OutboundValidationError)
        assert result.success is None


class TestUnprintableException:
    def test_run_does_not_raise(self, reporter):
        result = RaisesUnprintable.run()
        assert result.outcome is Outcome.EXCEPTION
        assert isinstance(result.exception, UnprintableError)
        assert result.error == "Something went wrong"
        reporter.assert_called_once()

    def test_handled_exception_log_uses_placeholder(self, caplog):
        caplog.set_level(logging.WARNING, logger="actioncore.reporting")
        RaisesUnprintable.run()
        assert "Handled exception (RaisesUnprintable): UnprintableError: <unprintable UnprintableError>" in caplog.text

    def test_span_still_marked_as_error(self, span_exporter):
        RaisesUnprintable.run()
        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["action.outcome"] == "exception"
        assert span.status.status_code.name == "ERROR"

    def test_reporter_failure_is_swallowed(self):
        def on_exception(error, **kwargs):
            raise UnprintableError()

        get_config(on_exception=on_exception)
        assert RaisesUnprintable.run().outcome is Outcome.EXCEPTION


class TestFieldAccess:
    def test_undeclared_input(self):
        result = ReadsUndeclared.run(a=1, b=2)
        assert isinstance(result.exception, UndeclaredFieldError)
        assert 'expects("b")' in str(result.exception)

    def test_undeclared_output(self):
        result = Greet.run(name="x")
        with pytest.raises(UndeclaredFieldError):
            result.farewell

    def test_unknown_exposure(self):
        result = ExposesUnknown.run()
        assert isinstance(result.exception, UnknownExposureError)
        assert result.exception.key == "surprise"


class TestSubfields:
    def test_inputs_read_through_parent(self):
        result = Ship.run(address={"city": "oslo"})
        assert result.ok, result.error
        assert result.label == "Oslo, NO"

    def test_subfield_violation_is_exception(self):
        result = Ship.run(address={"country": "SE"})
        assert isinstance(result.exception, InboundValidationError)
        assert "city can't be blank" in str(result.exception)

    def test_callers_address_untouched(self):
        address = {"city": "oslo"}
        Ship.run(address=address)
        assert address == {"city": "oslo"}


class TestNesting:
    def test_depth_inside_and_restored(self):
        result = NestingOuter.run()
        assert result.outer == 1
        assert result.inner == 2
        assert nesting_depth() == 0

    def test_depth_restored_after_exception(self):
        Crash.run()
        assert nesting_depth() == 0


# ============================================================================
# Strict mode
# ============================================================================


class TestRunStrict:
    def test_returns_result_when_ok(self):
        assert Greet.run_strict(name="x").greeting == "Hello, x!"

    def test_raises_failure(self):
        with pytest.raises(Failure, match="Card declined"):
            Refuse.run_strict()

    def test_raises_exception(self):
        with pytest.raises(RuntimeError, match="disk full"):
            Crash.run_strict()

    def test_nested_failure_matches_from(self):
        result = Checkout.run(amount=500)
        assert result.outcome is Outcome.FAILURE
        assert result.error == "Payment failed: card declined"
        assert isinstance(result.exception.source, Charge)
        assert isinstance(result.exception.__cause__, Failure)

    def test_nested_failure_without_from_entry(self):
        result = PlainCheckout.run(amount=500)
        assert result.outcome is Outcome.FAILURE
        assert result.error == "Something went wrong"

    def test_nested_exception_propagates_as_is(self):
        result = Checkout.run(amount=-1)
        assert result.outcome is Outcome.EXCEPTION
        assert isinstance(result.exception, ValueError)


# ============================================================================
# Callbacks and messages
# ============================================================================


def _recording_action(events):
    class Recorded(Action):
        definition = ActionDefinition(
            expects=expects("mode", type=str),
            callbacks=[
                on_success(lambda action: events.append("success")),
                on_error(lambda action, exception: events.append(("error", type(exception)))),
                on_failure(lambda action: events.append("failure")),
                on_exception(lambda action: events.append("exception")),
                on_error("note_key_error", if_=KeyError),
            ],
        )

        def note_key_error(self):
            events.append("key_error")

        def call(self):
            if self.inputs.mode == "fail":
                self.fail("no")
            if self.inputs.mode == "key":
                raise KeyError("k")
            if self.inputs.mode == "boom":
                raise RuntimeError("boom")

    return Recorded


class TestCallbacks:
    def test_success(self):
        events = []
        _recording_action(events).run(mode="ok")
        assert events == ["success"]

    def test_failure_order(self, reporter):
        events = []
        _recording_action(events).run(mode="fail")
        assert events == [("error", Failure), "failure"]
        reporter.assert_not_called()

    def test_exception_order(self, reporter):
        events = []
        _recording_action(events).run(mode="boom")
        assert events == [("error", RuntimeError), "exception"]
        reporter.assert_called_once()

    def test_conditional_callback(self):
        events = []
        _recording_action(events).run(mode="key")
        assert events == [("error", KeyError), "key_error", "exception"]

    def test_callback_errors_do_not_change_outcome(self):
        def broken(action):
            raise RuntimeError("callback bug")

        class Fine(Action):
            definition = ActionDefinition(callbacks=on_success(broken))

        assert Fine.run().ok is True


class TestMessages:
    def test_conditional_beats_static(self):
        class Save(Action):
            definition = ActionDefinition(
                expects=expects("draft", type=bool, default=False),
                messages=[
                    success_message("Saved"),
                    success_message("Saved draft", if_=lambda action: action.inputs.draft),
                ],
            )

        assert Save.run().success == "Saved"
        assert Save.run(draft=True).success == "Saved draft"

    def test_error_message_for_exception_class(self):
        class Fetch(Action):
            definition = ActionDefinition(
                messages=[
                    error_message("Could not fetch"),
                    error_message(lambda action, exception: f"Timed out: {exception}", if_=TimeoutError),
                ],
            )

            def call(self):
                raise TimeoutError("5s")

        assert Fetch.run().error == "Timed out: 5s"

    def test_fail_message_wins(self):
        class Pay(Action):
            definition = ActionDefinition(messages=error_message("Payment failed"))

            def call(self):
                self.fail("Insufficient funds")

        assert Pay.run().error == "Insufficient funds"

    def test_default_fail_uses_declared(self):
        class Pay(Action):
            definition = ActionDefinition(messages=error_message("Payment failed"))

            def call(self):
                self.fail()

        assert Pay.run().error == "Payment failed"


# ============================================================================
# Hooks
# ============================================================================


class TestHooks:
    def test_order(self):
        events = []

        def around(action, proceed):
            events.append("around:start")
            proceed()
            events.append("around:end")

        class Hooked(Action):
            definition = ActionDefinition(
                before=[lambda action: events.append("before")],
                around=around,
                after=[lambda action: events.append("after:1"), lambda action: events.append("after:2")],
            )

            def call(self):
                events.append("call")

        assert Hooked.run().ok is True
        assert events == ["around:start", "before", "call", "after:2", "after:1", "around:end"]

    def test_before_hook_can_complete_early(self):
        class Cached(Action):
            definition = ActionDefinition(before=lambda action: action.done("From cache"))

            def call(self):
                raise AssertionError("not reached")

        result = Cached.run()
        assert result.ok is True
        assert result.success == "From cache"


# ============================================================================
# Lifecycle logging
# ============================================================================


class TestLifecycleLogging:
    def test_before_and_after_lines(self, caplog):
        caplog.set_level(logging.DEBUG, logger="actioncore.actions")
        Greet.run(name="World")
        messages = [r.getMessage() for r in caplog.records if r.name == "actioncore.actions"]
        assert messages[0] == "[Greet] About to execute with: {'name': 'World'}"
        assert messages[1].startswith("[Greet] Execution completed (with outcome: success) in ")
        assert messages[1].endswith("milliseconds. Set: {'greeting': 'Hello, World!'}")

    def test_sensitive_inputs_filtered(self, caplog):
        class SignIn(Action):
            definition = ActionDefinition(expects=expects("password", type=str, sensitive=True))

        caplog.set_level(logging.DEBUG, logger="actioncore.actions")
        SignIn.run(password="hunter2")
        assert "hunter2" not in caplog.text
        assert "[FILTERED]" in caplog.text

    def test_log_calls_disabled(self, caplog):
        class Quiet(Action):
            definition = ActionDefinition(log_calls=None, log_errors=None)

        caplog.set_level(logging.DEBUG, logger="actioncore.actions")
        Quiet.run()
        assert not [r for r in caplog.records if r.name == "actioncore.actions"]

    def test_errors_logged_when_calls_disabled(self, caplog):
        class QuietCrash(Action):
            definition = ActionDefinition(log_calls=None, log_errors="warn")

            def call(self):
                raise RuntimeError("x")

        caplog.set_level(logging.DEBUG, logger="actioncore.actions")
        QuietCrash.run()
        (record,) = [r for r in caplog.records if r.name == "actioncore.actions"]
        assert record.levelno == logging.WARNING
        assert "outcome: exception" in record.getMessage()
