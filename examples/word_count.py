"""Count words in files with a per-file deadline.

This example demonstrates how to structure a pureloop program:

- All state lives in one frozen ProgramState subclass
- Reading a file and starting a deadline timer are slow effects
- Each read is a multi-step process: an Await waiter claims either the
  file contents or the deadline, whichever arrives first
- Reading the clock is a fast effect
- The program stops by setting the fatal-error slot with its report

Run with: uv run python examples/word_count.py DESIGN.md pyproject.toml
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from pathlib import Path

from frozendict import frozendict

from pureloop import Await, Call, Event, GetTime, ProgramState, Sleep, run

DEADLINE = 2.0


@dataclass(frozen=True)
class Report:
    counts: frozendict[str, int]
    failures: frozendict[str, str]
    elapsed: float

    def __str__(self) -> str:
        lines = [f"{path}: {count}" for path, count in sorted(self.counts.items())]
        lines += [f"{path}: {reason}" for path, reason in sorted(self.failures.items())]
        lines.append(f"done in {self.elapsed:.3f}s")
        return "\n".join(lines)


@dataclass(frozen=True)
class WordCount(ProgramState):
    paths: tuple[str, ...] = ()
    started: float | None = None
    counts: frozendict[str, int] = field(default_factory=frozendict)
    failures: frozendict[str, str] = field(default_factory=frozendict)


# Events


@dataclass(frozen=True)
class Started(Event):
    now: float

    def update(self, state: WordCount):
        effects = []
        for path in state.paths:
            state = state.add_waiter(
                Await((Read, ReadFailed, Deadline), then=settle, where=_for(path))
            )
            effects.append(
                Call(Path(path).read_text, on_success=_read(path), on_error=_failed(path))
            )
            effects.append(Sleep(DEADLINE, Deadline(path)))
        return replace(state, started=self.now), effects


@dataclass(frozen=True)
class Read(Event):
    path: str
    text: str

    def update(self, state):
        return state, ()


@dataclass(frozen=True)
class ReadFailed(Event):
    path: str
    reason: str

    def update(self, state):
        return state, ()


@dataclass(frozen=True)
class Deadline(Event):
    path: str

    def update(self, state):
        # The read already finished; its waiter is gone.
        return state, ()


@dataclass(frozen=True)
class Finished(Event):
    now: float

    def update(self, state: WordCount):
        return state.fail(Report(state.counts, state.failures, self.now - state.started)), ()


def _for(path: str):
    return lambda event: event.path == path


def _read(path: str):
    return lambda text: Read(path, text)


def _failed(path: str):
    return lambda exc: ReadFailed(path, f"{type(exc).__name__}: {exc}")


# Sequential process


def settle(state: WordCount, waiter: Await, event: Event):
    state = state.remove_waiter(waiter)
    match event:
        case Read(path=path, text=text):
            state = replace(state, counts=state.counts.set(path, len(text.split())))
        case ReadFailed(path=path, reason=reason):
            state = replace(state, failures=state.failures.set(path, reason))
        case Deadline(path=path):
            state = replace(state, failures=state.failures.set(path, "deadline exceeded"))
    if state.waiters():
        return state, ()
    return state, (GetTime(Finished),)


def main(argv: list[str]) -> int:
    if not argv:
        print("usage: word_count.py FILE...", file=sys.stderr)
        return 2

    paths = tuple(dict.fromkeys(argv))
    report = run(lambda: (WordCount(paths=paths), [GetTime(Started)]))
    print(report)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
