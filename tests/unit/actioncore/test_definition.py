"""Tests for ActionDefinition validation, helpers and extend()."""

from __future__ import annotations

import pytest

from actioncore.definition import (
    INHERIT,
    ActionDefinition,
    error_message,
    expects,
    exposes,
    on_error,
    on_exception,
    on_failure,
    on_success,
    success_message,
)
from actioncore.exceptions import (
    ContractViolation,
    DuplicateFieldError,
    ReservedFieldError,
)
from actioncore.types import Direction, EventKind, ReportingMode


class TestHelpers:
    def test_expects_multiple_names_share_options(self):
        fields = expects("first", "last", type=str)
        assert [f.name for f in fields] == ["first", "last"]
        assert all(f.direction is Direction.INBOUND and f.type is str for f in fields)

    def test_validate_maps_to_check(self):
        (field,) = expects("email", validate=lambda v: None)
        assert field.check is not None

    def test_exposes_direction(self):
        (field,) = exposes("greeting")
        assert field.direction is Direction.OUTBOUND

    def test_requires_a_name(self):
        with pytest.raises(ContractViolation):
            expects(type=str)

    @pytest.mark.parametrize(
        "helper,kind",
        [
            (on_success, EventKind.SUCCESS),
            (on_error, EventKind.ERROR),
            (on_failure, EventKind.FAILURE),
            (on_exception, EventKind.EXCEPTION),
        ],
    )
    def test_callback_helpers(self, helper, kind):
        entry = helper("notify")
        assert entry.event_kind is kind
        assert entry.matcher is None

    def test_callback_with_condition(self):
        entry = on_error("notify", if_=ValueError)
        assert entry.conditional is True

    def test_callback_handler_must_be_callable(self):
        with pytest.raises(ContractViolation):
            on_success(42)


class TestActionDefinition:
    def test_empty(self):
        definition = ActionDefinition()
        assert definition.expects == ()
        assert definition.log_calls == INHERIT

    def test_flattens_helper_tuples(self):
        definition = ActionDefinition(
            expects=[expects("a", "b"), expects("c")],
            exposes=exposes("out"),
        )
        assert [f.name for f in definition.expects] == ["a", "b", "c"]
        assert definition.outbound_names == frozenset({"out"})

    def test_duplicate_inbound(self):
        with pytest.raises(DuplicateFieldError, match="name"):
            ActionDefinition(expects=[expects("name"), expects("name", type=str)])

    def test_subfield_parent_must_be_declared_first(self):
        with pytest.raises(ContractViolation, match="needs 'address' to be declared first"):
            ActionDefinition(expects=[expects("city", on="address"), expects("address")])

    def test_subfield_parent_declared(self):
        definition = ActionDefinition(
            expects=[expects("address", type=dict), expects("city", "geo.lat", on="address")]
        )
        assert definition.subfield_paths == {
            "city": ("address", "city"),
            "geo.lat": ("address", "geo", "lat"),
        }

    def test_duplicate_subfield(self):
        with pytest.raises(DuplicateFieldError, match="city"):
            ActionDefinition(
                expects=[
                    expects("address"),
                    expects("city", on="address"),
                    expects("city", on="address", type=str),
                ]
            )

    def test_same_name_both_directions_allowed(self):
        definition = ActionDefinition(expects=expects("name"), exposes=exposes("name"))
        assert definition.inbound_names == definition.outbound_names

    @pytest.mark.parametrize("name", ["ok", "error", "message", "outcome", "elapsed_ms"])
    def test_reserved_outbound(self, name):
        with pytest.raises(ReservedFieldError, match=name):
            ActionDefinition(exposes=exposes(name))

    def test_reserved_name_fine_inbound(self):
        definition = ActionDefinition(expects=expects("message"))
        assert "message" in definition.inbound_names

    def test_underscore_names_reserved(self):
        with pytest.raises(ReservedFieldError):
            ActionDefinition(expects=expects("_private"))

    def test_wrong_direction_rejected(self):
        with pytest.raises(ContractViolation, match="declared as inbound"):
            ActionDefinition(expects=exposes("x"))

    def test_hooks_must_be_callable(self):
        with pytest.raises(ContractViolation):
            ActionDefinition(before=[42])

    def test_log_level_validated(self):
        assert ActionDefinition(log_calls="DEBUG").log_calls == "debug"
        assert ActionDefinition(log_calls=None).log_calls is None
        with pytest.raises(Exception):
            ActionDefinition(log_calls="chatty")

    def test_unknown_option_rejected(self):
        with pytest.raises(Exception):
            ActionDefinition(expect=expects("x"))

    def test_frozen(self):
        definition = ActionDefinition()
        with pytest.raises(Exception):
            definition.log_calls = None


class TestExtend:
    def test_sequences_appended(self):
        parent = ActionDefinition(
            expects=expects("a"),
            messages=[success_message("parent")],
        )
        child = parent.extend(expects=expects("b"), messages=[error_message("child")])
        assert [f.name for f in child.expects] == ["a", "b"]
        assert len(child.messages) == 2
        assert [f.name for f in parent.expects] == ["a"]

    def test_scalars_replaced(self):
        parent = ActionDefinition(async_exception_reporting=ReportingMode.EVERY_ATTEMPT)
        child = parent.extend(async_exception_reporting=ReportingMode.ONLY_EXHAUSTED, log_calls=None)
        assert child.async_exception_reporting is ReportingMode.ONLY_EXHAUSTED
        assert child.log_calls is None

    def test_duplicates_detected_across_extend(self):
        parent = ActionDefinition(expects=expects("a"))
        with pytest.raises(DuplicateFieldError):
            parent.extend(expects=expects("a"))

    def test_unknown_option(self):
        with pytest.raises(ContractViolation, match="Unknown definition option"):
            ActionDefinition().extend(hooks=[])
