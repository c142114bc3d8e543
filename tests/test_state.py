from __future__ import annotations

from dataclasses import dataclass

import pytest
from frozendict import frozendict

from pureloop import ProgramState, State, Waiter


@dataclass(frozen=True)
class Named(Waiter):
    name: str


@dataclass(frozen=True)
class Counter(ProgramState):
    count: int = 0


class TestProgramState:
    def test_satisfies_state_protocol(self):
        state = ProgramState()
        assert isinstance(state, State)
        assert state.waiters() == ()
        assert state.fatal_error() is None
        assert state.healthy

    def test_coerces_pending_and_data(self):
        state = ProgramState(pending=[Named("a")], data={"k": 1})
        assert state.pending == (Named("a"),)
        assert isinstance(state.data, frozendict)

    def test_data_helpers_return_new_values(self):
        state = ProgramState()
        updated = state.set("k", 1)

        assert state.get("k") is None
        assert updated.get("k") == 1
        assert updated.discard("k").get("k", "missing") == "missing"
        assert updated.discard("absent") is updated

    def test_add_waiter_keeps_insertion_order(self):
        state = ProgramState().add_waiter(Named("a")).add_waiter(Named("b"))
        assert [w.name for w in state.waiters()] == ["a", "b"]

    def test_remove_waiter_removes_first_equal_entry(self):
        state = ProgramState(pending=(Named("a"), Named("b"), Named("a")))

        removed = state.remove_waiter(Named("a"))

        assert removed.pending == (Named("b"), Named("a"))
        assert state.remove_waiter(Named("zzz")) is state

    def test_replace_waiter_keeps_position(self):
        state = ProgramState(pending=(Named("a"), Named("b"), Named("c")))

        replaced = state.replace_waiter(Named("b"), Named("B"))

        assert replaced.pending == (Named("a"), Named("B"), Named("c"))

    def test_replace_missing_waiter_appends(self):
        state = ProgramState(pending=(Named("a"),))
        assert state.replace_waiter(Named("x"), Named("y")).pending == (Named("a"), Named("y"))

    def test_fail_sets_fatal_once(self):
        state = ProgramState().fail("first")

        assert state.fatal_error() == "first"
        assert not state.healthy
        assert state.fail("second").fatal_error() == "first"

    def test_fail_rejects_none(self):
        with pytest.raises(ValueError):
            ProgramState().fail(None)

    def test_subclass_survives_helpers(self):
        state = Counter(count=3).set("k", "v").add_waiter(Named("a")).fail("done")

        assert isinstance(state, Counter)
        assert state.count == 3
        assert state.get("k") == "v"
        assert state.fatal_error() == "done"
