"""Shared pytest fixtures for matcha tests.

Provides:
- Fake run functions standing in for the measurement engine
- Fast engine options so real measurements finish quickly
- A reporter that records every call it receives
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from matcha.measure import Benchmark, Event
from matcha.options import Options
from matcha.reporters import GatherReporter

FAST = {"max_time": 0.02, "min_samples": 2, "min_time": 0.001, "delay": 0}


# ---------------------------------------------------------------------------
# Fake run functions
# ---------------------------------------------------------------------------


class RecordingRun:
    """Run function that records each call and completes immediately."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Options]] = []

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def __call__(self, name: str, options: Options) -> None:
        self.calls.append((name, options))


class EmittingRun(RecordingRun):
    """Like RecordingRun, but fires ``on_start``/``on_complete`` like the engine."""

    async def __call__(self, name: str, options: Options) -> None:
        await super().__call__(name, options)
        target = Benchmark(name, options.fn or (lambda: None), options)
        target.hz = 100.0
        if options.on_start is not None:
            options.on_start(Event("start", target))
        if options.on_complete is not None:
            options.on_complete(Event("complete", target))


class RecordingReporter:
    """Reporter recording ``(hook, name)`` pairs."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str | None]] = []

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        self.events.append(("start", benchmark.name))

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        self.events.append(("finish", benchmark.name))

    def on_complete(self) -> None:
        self.events.append(("complete", None))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def recording_run() -> RecordingRun:
    return RecordingRun()


@pytest.fixture()
def emitting_run() -> EmittingRun:
    return EmittingRun()


@pytest.fixture()
def gather() -> GatherReporter:
    return GatherReporter()


@pytest.fixture()
def recording_reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture()
def fast_options() -> Options:
    """Engine options that keep real measurements in the tens of milliseconds."""
    return Options.create(FAST)


@pytest.fixture()
def make_benchmark() -> Callable[..., Benchmark]:
    """Factory for finished Benchmark results with fixed statistics."""

    def _factory(
        name: str = "case",
        *,
        hz: float = 1000.0,
        error: BaseException | None = None,
        elapsed: float = 1.0,
        count: int = 10,
    ) -> Benchmark:
        bench = Benchmark(name, lambda: None)
        bench.hz = hz
        bench.error = error
        bench.count = count
        bench.times.elapsed = elapsed
        bench.stats.mean = 1 / hz if hz else 0.0
        bench.stats.deviation = 0.0001
        bench.stats.rme = 1.5
        return bench

    return _factory


