from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from pureloop import (
    Await,
    Event,
    LoggingObserver,
    ProgramState,
    TraceEntry,
    TraceRecorder,
    step,
)


@dataclass(frozen=True)
class Knock(Event):
    def update(self, state):
        return state.fail("answered"), ()


def ignore(state, waiter, event):
    return state, ()


class TestTraceEntry:
    def test_default_path(self):
        entry = TraceEntry.from_step(3, Knock(), step(ProgramState(), Knock()))

        assert entry == TraceEntry(
            iteration=3, event_type="Knock", waiter_index=None, effect_count=0, fatal=True
        )

    def test_claimed_path(self):
        state = ProgramState(pending=(Await(Knock, then=ignore),))
        entry = TraceEntry.from_step(0, Knock(), step(state, Knock()))

        assert entry.waiter_index == 0
        assert entry.fatal is False


class TestObservers:
    def test_recorder_collects_entries(self):
        recorder = TraceRecorder()
        recorder(0, Knock(), step(ProgramState(), Knock()))
        recorder(1, Knock(), step(ProgramState(), Knock()))

        assert len(recorder) == 2
        assert [e.iteration for e in recorder.entries] == [0, 1]

    def test_entries_is_a_snapshot(self):
        recorder = TraceRecorder()
        snapshot = recorder.entries
        recorder(0, Knock(), step(ProgramState(), Knock()))

        assert snapshot == []

    def test_logging_observer_writes_debug_record(self):
        messages: list[str] = []
        sink_id = logger.add(messages.append, level="DEBUG", format="{extra[component]} {message}")
        try:
            LoggingObserver()(5, Knock(), step(ProgramState(), Knock()))
        finally:
            logger.remove(sink_id)

        assert len(messages) == 1
        assert messages[0].startswith("pureloop.trace dispatch 5 Knock -> default (0 effects, fatal)")
