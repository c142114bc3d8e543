"""Tests for pure event routing."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pureloop import (
    Emit,
    Event,
    ProgramState,
    Ready,
    Route,
    TransitionError,
    Waiter,
    dispatch,
    route,
    step,
)


@dataclass(frozen=True)
class Ping(Event):
    kind: str = "ping"

    def update(self, state):
        return state.set("default", self.kind), ()


@dataclass(frozen=True)
class Handled(Ready):
    name: str
    event: Event

    def update(self, state):
        return state.set("handled_by", self.name), (Emit(self.event),)


@dataclass(frozen=True)
class KindWaiter(Waiter):
    """Claims events whose ``kind`` is in ``kinds`` and records every query."""

    name: str
    kinds: tuple[str, ...]
    queries: list[str] = field(default_factory=list, compare=False, hash=False)

    def expected(self, event):
        self.queries.append(self.name)
        if getattr(event, "kind", None) in self.kinds:
            return Handled(self.name, event)
        return None


@dataclass(frozen=True)
class Claimable(Event):
    """Event that claims waiters from its own side via ``route``."""

    def route(self, waiter):
        if isinstance(waiter, PassiveWaiter):
            return Handled("routed", self)
        return None

    def update(self, state):
        return state.set("default", "claimable"), ()


@dataclass(frozen=True)
class PassiveWaiter(Waiter):
    pass


class TestRouting:
    def test_first_matching_waiter_wins(self):
        first = KindWaiter("first", ("pong",))
        second = KindWaiter("second", ("ping",))
        third = KindWaiter("third", ("ping",))
        state = ProgramState(pending=(first, second, third))

        new_state, effects = dispatch(state, Ping())

        assert new_state.get("handled_by") == "second"
        assert effects == (Emit(Ping()),)
        assert first.queries == ["first"]
        assert second.queries == ["second"]
        assert third.queries == []

    def test_unclaimed_event_uses_its_own_transition(self):
        waiter = KindWaiter("only", ("pong",))
        state = ProgramState(pending=(waiter,))

        new_state, effects = dispatch(state, Ping())

        assert new_state.get("default") == "ping"
        assert new_state.get("handled_by") is None
        assert effects == ()
        assert new_state.pending == (waiter,)

    def test_waiter_takes_precedence_over_default(self):
        state = ProgramState(pending=(KindWaiter("w", ("ping",)),))

        new_state, _ = dispatch(state, Ping())

        assert new_state.get("handled_by") == "w"
        assert new_state.get("default") is None

    def test_empty_pending_list(self):
        new_state, effects = dispatch(ProgramState(), Ping("tick"))
        assert new_state.get("default") == "tick"
        assert effects == ()

    def test_event_side_route_is_consulted_by_default_waiter(self):
        state = ProgramState(pending=(PassiveWaiter(),))

        new_state, _ = dispatch(state, Claimable())

        assert new_state.get("handled_by") == "routed"

    def test_order_is_never_changed(self):
        waiters = tuple(KindWaiter(str(i), ("ping",)) for i in range(3))
        state = ProgramState(pending=waiters)

        new_state, _ = dispatch(state, Ping())

        assert new_state.pending == waiters
        assert new_state.get("handled_by") == "0"


class TestRouteAndStep:
    def test_route_reports_index_and_waiter(self):
        miss = KindWaiter("miss", ("x",))
        hit = KindWaiter("hit", ("ping",))
        found = route(ProgramState(pending=(miss, hit)), Ping())

        assert isinstance(found, Route)
        assert found.index == 1
        assert found.waiter is hit
        assert found.ready == Handled("hit", Ping())

    def test_route_returns_none_when_unclaimed(self):
        assert route(ProgramState(pending=(KindWaiter("a", ("x",)),)), Ping()) is None

    def test_step_records_route(self):
        state = ProgramState(pending=(KindWaiter("a", ("ping",)),))
        claimed = step(state, Ping())
        unclaimed = step(ProgramState(), Ping())

        assert claimed.claimed
        assert claimed.route.index == 0
        assert not unclaimed.claimed
        assert unclaimed.route is None


class TestDeterminism:
    def test_same_input_same_output(self):
        state = ProgramState(pending=(KindWaiter("a", ("pong",)),)).set("n", 1)

        first = dispatch(state, Ping())
        second = dispatch(state, Ping())

        assert first == second

    def test_input_state_is_not_modified(self):
        state = ProgramState(pending=(KindWaiter("a", ("ping",)),))

        dispatch(state, Ping())

        assert state.get("handled_by") is None


class TestTransitionContract:
    def test_non_pair_result_is_rejected(self):
        @dataclass(frozen=True)
        class Broken(Event):
            def update(self, state):
                return state

        with pytest.raises(TransitionError, match="Broken.update"):
            dispatch(ProgramState(), Broken())

    def test_state_without_protocol_is_rejected(self):
        @dataclass(frozen=True)
        class LosesState(Event):
            def update(self, state):
                return {"not": "a state"}, ()

        with pytest.raises(TransitionError, match="lacks waiters"):
            dispatch(ProgramState(), LosesState())

    def test_effects_without_io_are_rejected(self):
        @dataclass(frozen=True)
        class BadEffects(Event):
            def update(self, state):
                return state, [object()]

        with pytest.raises(TransitionError, match="has no io"):
            dispatch(ProgramState(), BadEffects())

    def test_ready_failures_name_the_waiter(self):
        @dataclass(frozen=True)
        class BrokenReady(Ready):
            def update(self, state):
                return None

        @dataclass(frozen=True)
        class Claims(Waiter):
            def expected(self, event):
                return BrokenReady()

        with pytest.raises(TransitionError, match="waiter #0"):
            dispatch(ProgramState(pending=(Claims(),)), Ping())

    def test_list_and_none_effects_are_normalized(self):
        @dataclass(frozen=True)
        class ListEffects(Event):
            def update(self, state):
                return state, [Emit(Ping())]

        @dataclass(frozen=True)
        class NoEffects(Event):
            def update(self, state):
                return state, None

        assert dispatch(ProgramState(), ListEffects())[1] == (Emit(Ping()),)
        assert dispatch(ProgramState(), NoEffects())[1] == ()
