"""Default measurement engine.

Runs a function repeatedly in timed cycles and derives its rate and
sampling statistics. The execution engine only awaits
:func:`run_benchmark`; any coroutine with the same signature can stand in
for it.

Each cycle calls the function ``count`` times back to back. ``count``
grows until a cycle lasts at least ``min_time``. Cycles repeat until at
least ``min_samples`` have been taken and ``max_time`` has elapsed.
"""

from __future__ import annotations

import asyncio
import logging
import math
import statistics
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from matcha.adapter import as_exception, call_in_loop
from matcha.config import (
    DEFAULT_DELAY,
    DEFAULT_INIT_COUNT,
    DEFAULT_MAX_TIME,
    DEFAULT_MIN_SAMPLES,
    DEFAULT_MIN_TIME,
)
from matcha.options import Options

logger = logging.getLogger(__name__)

# Two-sided 95% critical value of the normal distribution.
_CRITICAL_VALUE = 1.96


@dataclass
class Stats:
    """Sampling statistics, in seconds per operation."""

    mean: float = 0.0
    deviation: float = 0.0
    variance: float = 0.0
    sem: float = 0.0
    moe: float = 0.0
    rme: float = 0.0
    sample: list[float] = field(default_factory=lambda: list[float]())


@dataclass
class Times:
    """Timing of the last cycle and of the whole run, in seconds."""

    cycle: float = 0.0
    elapsed: float = 0.0
    period: float = 0.0
    timestamp: float = 0.0


@dataclass(frozen=True)
class Event:
    """Passed to option event hooks; ``target`` is the benchmark."""

    type: str
    target: Benchmark


class Deferred:
    """Completion handle for a single deferred invocation.

    ``resolve``/``reject`` may be called from any thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._future: asyncio.Future[None] = loop.create_future()

    def resolve(self) -> None:
        call_in_loop(self._loop, self._settle, None)

    def reject(self, error: BaseException) -> None:
        call_in_loop(self._loop, self._settle, as_exception(error))

    def _settle(self, error: BaseException | None) -> None:
        if self._future.done():
            return
        if error is None:
            self._future.set_result(None)
        else:
            self._future.set_exception(error)

    def __await__(self) -> Any:
        return self._future.__await__()


class Benchmark:
    """A single named measurement and its results."""

    def __init__(self, name: str, fn: Callable[..., Any], options: Options = Options.EMPTY) -> None:
        self.name = name
        self.fn = fn
        self.options = options
        self.defer = bool(options.defer)
        self.delay = _pick(options.delay, DEFAULT_DELAY)
        self.init_count = _pick(options.init_count, DEFAULT_INIT_COUNT)
        self.max_time = _pick(options.max_time, DEFAULT_MAX_TIME)
        self.min_samples = _pick(options.min_samples, DEFAULT_MIN_SAMPLES)
        self.min_time = _pick(options.min_time, DEFAULT_MIN_TIME)

        self.count = self.init_count
        self.cycles = 0
        self.hz = 0.0
        self.error: BaseException | None = None
        self.running = False
        self.stats = Stats()
        self.times = Times()

    def __repr__(self) -> str:
        return f"<Benchmark {self.name!r} hz={self.hz:.2f}>"

    def reset(self) -> None:
        """Clear results so the benchmark can run again."""
        self.count = self.init_count
        self.cycles = 0
        self.hz = 0.0
        self.error = None
        self.stats = Stats()
        self.times = Times()
        self._emit("reset")

    async def run(self) -> Benchmark:
        """Measure until the sampling limits are met.

        Errors raised by the measured function are recorded on ``error``
        rather than raised. That includes ``CancelledError`` raised by the
        function itself; cancellation of the task running the benchmark
        still propagates.
        """
        self.running = True
        started = time.perf_counter()
        self.times.timestamp = time.time()
        self._emit("start")
        try:
            await self._sample(started)
        except (Exception, asyncio.CancelledError) as exc:
            if isinstance(exc, asyncio.CancelledError) and _being_cancelled():
                raise
            logger.debug("Benchmark %s failed", self.name, exc_info=True)
            self.error = exc
            self._emit("error")
        finally:
            self.running = False
            self.times.elapsed = time.perf_counter() - started

        self._emit("complete")
        return self

    async def _sample(self, started: float) -> None:
        sample: list[float] = []
        while True:
            sample.append(await self._cycle(started))
            self.cycles += 1
            self._emit("cycle")

            elapsed = time.perf_counter() - started
            if len(sample) >= self.min_samples and elapsed >= self.max_time:
                break
            if self.delay:
                await asyncio.sleep(self.delay)

        self._compute(sample)

    async def _cycle(self, started: float) -> float:
        while True:
            clocked = await self._clock(self.count)
            if clocked >= self.min_time or time.perf_counter() - started >= self.max_time:
                break
            if clocked > 0:
                self.count += math.ceil((self.min_time - clocked) / (clocked / self.count))
            else:
                self.count *= 2

        period = clocked / self.count
        self.times.cycle = clocked
        self.times.period = period
        self.hz = 1 / period if period else 0.0
        return period

    async def _clock(self, count: int) -> float:
        fn = self.fn
        if not self.defer:
            begin = time.perf_counter()
            for _ in range(count):
                fn()
            return time.perf_counter() - begin

        loop = asyncio.get_running_loop()
        begin = time.perf_counter()
        for _ in range(count):
            deferred = Deferred(loop)
            fn(deferred)
            await deferred
        return time.perf_counter() - begin

    def _compute(self, sample: list[float]) -> None:
        mean = statistics.fmean(sample)
        variance = statistics.variance(sample, mean) if len(sample) > 1 else 0.0
        deviation = math.sqrt(variance)
        sem = deviation / math.sqrt(len(sample))
        moe = sem * _CRITICAL_VALUE
        self.stats = Stats(
            mean=mean,
            deviation=deviation,
            variance=variance,
            sem=sem,
            moe=moe,
            rme=(moe / mean) * 100 if mean else 0.0,
            sample=sample,
        )
        self.times.period = mean
        self.hz = 1 / mean if mean else 0.0

    def _emit(self, event_type: str) -> None:
        hook = getattr(self.options, f"on_{event_type}")
        if hook is not None:
            hook(Event(event_type, self))


def _being_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


async def run_benchmark(name: str, options: Options) -> None:
    """Measure ``options.fn`` under *name*; the default run function."""
    if options.fn is None:
        msg = f"No function installed for benchmark {name!r}"
        raise ValueError(msg)
    bench = Benchmark(name, options.fn, options)
    logger.debug("Measuring %s (defer=%s)", name, bench.defer)
    await bench.run()
    logger.debug("Measured %s: %.2f ops/sec over %d cycles", name, bench.hz, bench.cycles)
