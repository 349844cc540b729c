"""Tests for the running-actions stack."""

from __future__ import annotations

import pytest

from actioncore.nesting import current_action, nesting_depth, nesting_scope, running_actions


class TestNestingScope:
    def test_depths(self):
        assert nesting_depth() == 0
        with nesting_scope("outer") as outer_depth:
            assert outer_depth == 0
            with nesting_scope("inner") as inner_depth:
                assert inner_depth == 1
                assert current_action() == "inner"
                assert running_actions() == ("outer", "inner")
            assert current_action() == "outer"
        assert nesting_depth() == 0
        assert current_action() is None

    def test_restored_on_exception(self):
        with pytest.raises(ValueError):
            with nesting_scope("outer"):
                raise ValueError("boom")
        assert nesting_depth() == 0
